"""Models for soak run data structures."""

from .plot_params import PlotParams
from .stat_summary import StatSummary

__all__ = ["PlotParams", "StatSummary"]
