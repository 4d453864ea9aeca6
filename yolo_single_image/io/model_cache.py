"""Filename-keyed cache of downloaded model files."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIXES = (".zip", ".tar", ".tar.gz", ".tgz", ".gz", ".bz2", ".xz", ".7z")
USER_AGENT = "yolo-single-image"


class ModelCacheError(RuntimeError):
    """Base class for failures while resolving a remote model."""


class InvalidURLError(ModelCacheError):
    """The model URL is not an absolute http(s) URL."""


class UnsupportedFormatError(ModelCacheError):
    """The URL points at an archive; only direct model files are supported."""


class TransferError(ModelCacheError):
    """The model could not be downloaded completely."""


class WriteError(ModelCacheError):
    """The downloaded model could not be written to the cache directory."""


class ModelCacheProtocol(Protocol):
    """Interface the controller uses to resolve remote models."""

    def is_cached(self, file_name: str) -> bool:
        """Return True when ``file_name`` is present in the cache."""

    def cached_path(self, file_name: str) -> Path | None:
        """Return the cached file path, or None when absent."""

    def fetch(self, url: str, file_name: str) -> Path:
        """Download ``url`` into the cache as ``file_name`` and return its path."""


def is_archive_url(url: str) -> bool:
    path = urlparse(url).path.lower()
    return path.endswith(ARCHIVE_SUFFIXES)


def validate_model_url(url: str) -> str:
    """Return the stripped URL or raise :class:`InvalidURLError`."""
    candidate = (url or "").strip()
    parsed = urlparse(candidate)
    if parsed.scheme.lower() not in {"http", "https"} or not parsed.netloc:
        raise InvalidURLError(f"Invalid model URL: {url!r}")
    return candidate


class ModelCache:
    """Stores one file per model under ``directory``.

    File presence is the whole index: a cached file is trusted without any
    checksum or staleness check.
    """

    def __init__(
        self,
        directory: Path,
        *,
        session: requests.Session | None = None,
        timeout: float = 120.0,
    ) -> None:
        self.directory = Path(directory).expanduser()
        self.timeout = timeout
        self._session = session

    def path_for(self, file_name: str) -> Path:
        name = Path(file_name).name
        if not name or name != file_name:
            raise ValueError(f"Cache file name {file_name!r} must not contain directories.")
        return self.directory / name

    def is_cached(self, file_name: str) -> bool:
        return self.path_for(file_name).is_file()

    def cached_path(self, file_name: str) -> Path | None:
        path = self.path_for(file_name)
        return path if path.is_file() else None

    def fetch(self, url: str, file_name: str) -> Path:
        url = validate_model_url(url)
        if is_archive_url(url):
            raise UnsupportedFormatError(
                f"Archive downloads are not supported ({url}). "
                "Provide a direct URL to the model file."
            )
        target = self.path_for(file_name)

        logger.info("Downloading model %s from %s", file_name, url)
        payload = self._download(url)
        self._write_atomic(target, payload)
        logger.info("Cached model %s (%d bytes) at %s", file_name, len(payload), target)
        return target

    def evict(self, file_name: str) -> bool:
        path = self.cached_path(file_name)
        if path is None:
            return False
        path.unlink()
        logger.info("Evicted cached model %s", path)
        return True

    def clear(self) -> int:
        if not self.directory.is_dir():
            return 0
        removed = 0
        for path in sorted(self.directory.iterdir()):
            if path.is_file() and not path.name.startswith("."):
                path.unlink()
                removed += 1
        logger.info("Removed %d cached model(s) from %s", removed, self.directory)
        return removed

    def list_cached(self) -> list[Path]:
        if not self.directory.is_dir():
            return []
        return sorted(
            path
            for path in self.directory.iterdir()
            if path.is_file() and not path.name.startswith(".")
        )

    def _get_session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def _download(self, url: str) -> bytes:
        try:
            response = self._get_session().get(
                url,
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as exc:
            raise TransferError(f"Download timed out after {self.timeout}s: {url}") from exc
        except requests.exceptions.RequestException as exc:
            raise TransferError(f"Failed to download {url}: {exc}") from exc

        if response.status_code >= 400:
            raise TransferError(f"Download of {url} returned HTTP {response.status_code}")

        payload = response.content
        if not payload:
            raise TransferError(f"Download of {url} returned an empty payload")

        expected = response.headers.get("Content-Length")
        if expected and expected.isdigit() and int(expected) > len(payload):
            raise TransferError(
                f"Incomplete download of {url}: expected {expected} bytes, got {len(payload)}"
            )
        return payload

    def _write_atomic(self, target: Path, payload: bytes) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".download-", dir=target.parent)
        except OSError as exc:
            raise WriteError(f"Cannot prepare cache directory {target.parent}: {exc}") from exc

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            tmp_path.replace(target)
        except OSError as exc:
            raise WriteError(f"Cannot write cached model {target}: {exc}") from exc
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
