"""
Pipeline step configuration data class.

This module provides the PipelineStep class for representing one Pillow
operation applied by the image processor on every iteration.
"""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class PipelineStep:

    op: str
    args: Dict[str, Any] = field(default_factory=dict)
