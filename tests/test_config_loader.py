from pathlib import Path

import pytest

from leakwatch.config.config_loader import DEFAULT_CONFIG_PATH, ConfigLoader, parse_config
from leakwatch.consts.FailurePolicy import FailurePolicy
from leakwatch.consts.ProcessorType import ProcessorType


def _write(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")


def test_bundled_config_loads() -> None:
    config = ConfigLoader(DEFAULT_CONFIG_PATH).config_data

    assert config.path == "output.jpg"
    assert config.delay_seconds == 1.5
    assert config.iterations is None
    assert config.timeout_seconds is None
    assert config.processor == ProcessorType.PILLOW
    assert [step.op for step in config.pipeline][:2] == ["brightness", "contrast"]


def test_bundled_dev_override() -> None:
    config = ConfigLoader(DEFAULT_CONFIG_PATH, env="dev").config_data

    assert config.iterations == 20
    assert config.failure_policy == FailurePolicy.SKIP
    assert config.path == "output.jpg"


def test_env_file_overrides_top_level_keys(tmp_path) -> None:
    _write(tmp_path / "config.yaml", "path: a.jpg\ndelay_seconds: 2\nprocessor: noop\n")
    _write(tmp_path / "config_ci.yaml", "delay_seconds: 0.1\niterations: 5\n")

    config = ConfigLoader(tmp_path, env="ci").config_data

    assert config.path == "a.jpg"
    assert config.delay_seconds == 0.1
    assert config.iterations == 5
    assert config.processor == ProcessorType.NOOP


def test_defaults_for_empty_file(tmp_path) -> None:
    _write(tmp_path / "config.yaml", "")

    config = ConfigLoader(tmp_path).config_data

    assert config.path == "output.jpg"
    assert config.delay_seconds == 1.5
    assert config.failure_policy == FailurePolicy.ABORT
    assert config.max_retries == 3
    assert config.pipeline == []
    assert config.trace_heap is True


def test_missing_files_raise(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        ConfigLoader(tmp_path)
    _write(tmp_path / "config.yaml", "path: a.jpg\n")
    with pytest.raises(FileNotFoundError):
        ConfigLoader(tmp_path, env="prod")


def test_pipeline_accepts_bare_operation_names() -> None:
    config = parse_config({"pipeline": ["greyscale", {"op": "rotate", "args": {"angle": 45}}]})

    assert config.pipeline[0].op == "greyscale"
    assert config.pipeline[0].args == {}
    assert config.pipeline[1].args == {"angle": 45}


@pytest.mark.parametrize("data", [
    {"processor": "imagemagick"},
    {"failure_policy": "ignore"},
    {"delay_seconds": -1},
    {"iterations": -3},
    {"timeout_seconds": 0},
    {"max_retries": -1},
    {"max_retries": "many"},
    {"delay_seconds": None},
    {"snapshot_window": 0},
    {"pipeline": [{"args": {"factor": 1.1}}]},
    {"pipeline": [{"op": "rotate", "args": [90]}]},
    {"pipeline": [42]},
])
def test_invalid_values_raise(data) -> None:
    with pytest.raises(ValueError):
        parse_config(data)


def test_malformed_yaml_is_a_value_error(tmp_path) -> None:
    _write(tmp_path / "config.yaml", "path: [unterminated\n")

    with pytest.raises(ValueError, match="Invalid YAML"):
        ConfigLoader(tmp_path)


@pytest.mark.parametrize("text", ["- path: a.jpg\n", "just a string\n"])
def test_config_must_be_a_mapping(tmp_path, text) -> None:
    _write(tmp_path / "config.yaml", text)

    with pytest.raises(ValueError, match="mapping"):
        ConfigLoader(tmp_path)


def test_env_override_must_be_a_mapping(tmp_path) -> None:
    _write(tmp_path / "config.yaml", "path: a.jpg\n")
    _write(tmp_path / "config_dev.yaml", "- delay_seconds: 0\n")

    with pytest.raises(ValueError, match="mapping"):
        ConfigLoader(tmp_path, env="dev")


def test_snapshot_window_default_and_override() -> None:
    assert parse_config({}).snapshot_window == 1000
    assert parse_config({"snapshot_window": 10}).snapshot_window == 10
