from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass
class PlotParams:
    x: List[float]
    series: dict  # label -> values, one line per label
    xlabel: str
    ylabel: str
    title: str
    output_path: Optional[str]
    figsize: Tuple[float, float] = (10, 6)
    trend_label: Optional[str] = None  # series to overlay a least-squares line on
