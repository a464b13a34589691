"""Configuration module for soak runs."""

from .pipeline_step import PipelineStep
from .soak_config import SoakConfig

__all__ = ["PipelineStep", "SoakConfig"]
