import asyncio
from pathlib import Path

import pytest
from PIL import Image

from leakwatch.monitor.memory_inspector import MemoryInspector


class RecordingProcessor:
    """Async process_fn that records every path it was called with"""

    def __init__(self, fail_on=(), duration: float = 0.0):
        self.calls = []
        self.fail_on = set(fail_on)
        self.duration = duration

    async def __call__(self, path):
        self.calls.append(path)
        await asyncio.sleep(self.duration)
        if len(self.calls) in self.fail_on:
            raise RuntimeError(f"boom on call {len(self.calls)}")


@pytest.fixture
def sample_image(tmp_path: Path) -> Path:
    path = tmp_path / "output.jpg"
    Image.new("RGB", (64, 48), (200, 120, 40)).save(path, format="JPEG")
    return path


@pytest.fixture
def inspector() -> MemoryInspector:
    return MemoryInspector(trace_heap=False)


@pytest.fixture
def make_processor():
    return RecordingProcessor
