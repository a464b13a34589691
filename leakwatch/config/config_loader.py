"""
Configuration loader for soak runs.

This module provides the ConfigLoader class for loading and validating
soak configuration from YAML files.
"""
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from leakwatch.config.pipeline_step import PipelineStep
from leakwatch.config.soak_config import SoakConfig
from leakwatch.consts.FailurePolicy import FailurePolicy
from leakwatch.consts.ProcessorType import ProcessorType
from leakwatch.util.cal_utils import DEFAULT_LEAK_THRESHOLD, DEFAULT_SNAPSHOT_WINDOW

DEFAULT_PATH = "output.jpg"
DEFAULT_DELAY_SECONDS = 1.5

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config_yaml"


class ConfigLoader:

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH, env: Optional[str] = None):
        self.config_path = config_path
        self.env = env
        self.config_data = self._load_config()

    def _load_config(self) -> SoakConfig:
        """
        Load and parse soak configuration from YAML file.
        Supports environment-specific overrides via config_<env>.yaml
        
        Returns:
            SoakConfig: Configured soak configuration instance
        """
        # Load base YAML file
        base_config_file = self.config_path / "config.yaml"
        if not base_config_file.exists():
            raise FileNotFoundError(f"Config file not found: {base_config_file}")
        data = _read_yaml(base_config_file)
        
        # Load environment-specific override if specified
        if self.env:
            env_config_file = self.config_path / f"config_{self.env}.yaml"
            if not env_config_file.exists():
                raise FileNotFoundError(f"Environment config file not found: {env_config_file}")
            # dict.update() overwrites top-level keys
            data.update(_read_yaml(env_config_file))

        return parse_config(data)


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Parse one config file; it must hold a mapping (or nothing)"""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping of settings, got {type(data).__name__}")
    return data


def parse_config(data: Dict[str, Any]) -> SoakConfig:
    """Build a SoakConfig from a parsed YAML mapping, filling in defaults"""
    config = SoakConfig()

    config.path = str(data.get("path", DEFAULT_PATH))
    config.delay_seconds = _number(float, data.get("delay_seconds", DEFAULT_DELAY_SECONDS), "delay_seconds")
    if config.delay_seconds < 0:
        raise ValueError(f"delay_seconds must be >= 0, got {config.delay_seconds}")

    iterations = data.get("iterations")
    config.iterations = None if iterations is None else _number(int, iterations, "iterations")
    if config.iterations is not None and config.iterations < 0:
        raise ValueError(f"iterations must be >= 0, got {config.iterations}")

    timeout = data.get("timeout_seconds")
    config.timeout_seconds = None if timeout is None else _number(float, timeout, "timeout_seconds")
    if config.timeout_seconds is not None and config.timeout_seconds <= 0:
        raise ValueError(f"timeout_seconds must be positive, got {config.timeout_seconds}")

    config.failure_policy = _enum(FailurePolicy, data.get("failure_policy", "abort"), "failure_policy")
    config.max_retries = _number(int, data.get("max_retries", 3), "max_retries")
    if config.max_retries < 0:
        raise ValueError(f"max_retries must be >= 0, got {config.max_retries}")
    config.processor = _enum(ProcessorType, data.get("processor", "pillow"), "processor")

    # Parse pipeline steps
    config.pipeline = [_pipeline_step(step, i) for i, step in enumerate(data.get("pipeline") or [], start=1)]

    config.output_path = data.get("output_path")
    config.out_dir = data.get("out_dir")
    config.leak_threshold_bytes = _number(float, data.get("leak_threshold_bytes", DEFAULT_LEAK_THRESHOLD), "leak_threshold_bytes")
    config.trace_heap = bool(data.get("trace_heap", True))
    config.count_objects = bool(data.get("count_objects", False))
    config.snapshot_window = _number(int, data.get("snapshot_window", DEFAULT_SNAPSHOT_WINDOW), "snapshot_window")
    if config.snapshot_window < 1:
        raise ValueError(f"snapshot_window must be >= 1, got {config.snapshot_window}")

    return config


def _pipeline_step(step: Any, index: int) -> PipelineStep:
    if isinstance(step, str):
        return PipelineStep(op=step)
    if not isinstance(step, dict) or not isinstance(step.get("op"), str):
        raise ValueError(f"Pipeline step {index} must be an operation name or a mapping with an 'op' key, got {step!r}")
    args = step.get("args") or {}
    if not isinstance(args, dict):
        raise ValueError(f"Pipeline step {index} ('{step['op']}') args must be a mapping, got {args!r}")
    return PipelineStep(op=step["op"], args=dict(args))


def _number(cast, value, key: str):
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {key} '{value}'. Expected a number") from None


def _enum(enum_cls, value, key: str):
    try:
        return enum_cls(value)
    except ValueError:
        choices = [member.value for member in enum_cls]
        raise ValueError(f"Invalid {key} '{value}'. Expected one of: {choices}") from None
