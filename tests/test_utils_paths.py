"""Tests for filesystem helper utilities."""

from __future__ import annotations

import pytest

from yolo_single_image.utils.paths import collect_images, is_image_file


def test_is_image_file_with_custom_extensions(tmp_path):
    path = tmp_path / "sample.custom"
    path.write_text("data", encoding="utf-8")

    assert not is_image_file(path)
    assert is_image_file(path, extensions=[".CUSTOM"])


def test_collect_images_filters_hidden(tmp_path):
    root = tmp_path / "root"
    subdir = root / "nested"
    hidden_dir = root / ".thumbs"
    subdir.mkdir(parents=True)
    hidden_dir.mkdir()

    visible = root / "visible.jpg"
    hidden = root / ".secret.png"
    nested = subdir / "nested.webp"
    in_hidden_dir = hidden_dir / "thumb.png"
    for candidate in (visible, hidden, nested, in_hidden_dir):
        candidate.write_text("placeholder", encoding="utf-8")
    (subdir / "notes.txt").write_text("text", encoding="utf-8")

    assert collect_images(root) == [visible]
    assert collect_images(root, recursive=True) == [nested, visible]
    assert collect_images(root, recursive=True, include_hidden=True) == [
        hidden,
        in_hidden_dir,
        nested,
        visible,
    ]


def test_collect_images_single_file(tmp_path):
    image = tmp_path / "photo.JPG"
    image.write_text("placeholder", encoding="utf-8")
    text = tmp_path / "readme.txt"
    text.write_text("text", encoding="utf-8")

    assert collect_images(image) == [image]
    assert collect_images(text) == []


def test_collect_images_missing_target(tmp_path):
    with pytest.raises(FileNotFoundError):
        collect_images(tmp_path / "missing")
