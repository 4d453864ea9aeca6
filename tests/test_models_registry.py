"""Tests for model descriptors and the model catalog."""

from __future__ import annotations

import pytest

from yolo_single_image.config import AppConfig, ModelEntry
from yolo_single_image.models.base import LocalBundle, ModelDescriptor, ModelTask, RemoteURL
from yolo_single_image.models.registry import BUILTIN_MODELS, ModelRegistry


@pytest.fixture(autouse=True)
def reset_registry():
    original = ModelRegistry._descriptors.copy()
    original_bootstrapped = ModelRegistry._bootstrap_complete
    yield
    ModelRegistry._descriptors = original
    ModelRegistry._bootstrap_complete = original_bootstrapped


def test_builtin_catalog_contents():
    ModelRegistry._descriptors = {}
    ModelRegistry._bootstrap_complete = False

    names = [descriptor.name for descriptor in ModelRegistry.list_descriptors()]

    assert names == ["yolo11n-seg", "custom-fish-model"]
    bundled = ModelRegistry.get("yolo11n-seg")
    assert bundled.task is ModelTask.SEGMENT
    assert isinstance(bundled.source, LocalBundle)
    fish = ModelRegistry.get("custom-fish-model")
    assert isinstance(fish.source, RemoteURL)
    assert fish.url.endswith(".mlmodel.zip")


def test_register_from_config_appends_entries():
    ModelRegistry._descriptors = {}
    ModelRegistry._bootstrap_complete = False
    config = AppConfig(
        models=[ModelEntry(name="extra", task="classify", url="https://example.com/extra.pt")]
    )

    ModelRegistry.register_from_config(config)

    descriptors = ModelRegistry.list_descriptors()
    assert len(descriptors) == len(BUILTIN_MODELS) + 1
    assert descriptors[-1].name == "extra"
    assert descriptors[-1].task is ModelTask.CLASSIFY


def test_get_unknown_model_lists_available():
    ModelRegistry._descriptors = {}
    ModelRegistry._bootstrap_complete = True
    ModelRegistry.register(ModelDescriptor.local("only"))

    with pytest.raises(KeyError) as excinfo:
        ModelRegistry.get("missing")

    assert "only" in str(excinfo.value)


def test_unregister_is_idempotent():
    ModelRegistry._descriptors = {}
    ModelRegistry._bootstrap_complete = True
    ModelRegistry.register(ModelDescriptor.local("temp"))

    ModelRegistry.unregister("temp")
    ModelRegistry.unregister("temp")

    assert ModelRegistry.list_descriptors() == []


@pytest.mark.parametrize("name", ["", "  ", "a/b", "a\\b", ".."])
def test_descriptor_rejects_unsafe_names(name):
    with pytest.raises(ValueError):
        ModelDescriptor.local(name)


def test_descriptor_coerces_task_and_names_file():
    descriptor = ModelDescriptor(name="demo", task="segment")

    assert descriptor.task is ModelTask.SEGMENT
    assert descriptor.file_name(".pt") == "demo.pt"
    assert descriptor.file_name("mlmodel") == "demo.mlmodel"
    assert descriptor.as_dict() == {
        "name": "demo",
        "task": "segment",
        "source": "local",
        "url": None,
    }
