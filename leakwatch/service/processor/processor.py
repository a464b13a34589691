import asyncio
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Optional, Union

from leakwatch.service.driver.errors import ProcessingFailed
from leakwatch.service.processor.process_result import ProcessResult
from leakwatch.util.log_config import setup_logger

logger = setup_logger(__name__)


class ImageProcessor(ABC):
    """Abstract base processor.

    Subclasses implement _process(). process() times the call and folds any
    exception into the returned ProcessResult, so failure is a value rather
    than a silent hang. Calling the instance awaits process() and raises
    ProcessingFailed on error, which is the shape the driver expects.
    """

    name = "processor"

    def __init__(self) -> None:
        self.calls = 0
        self._pending: Optional[asyncio.Future] = None

    async def process(self, path: Union[str, Path]) -> ProcessResult:
        self.calls += 1
        t0 = time.perf_counter()
        try:
            await self._process(Path(path))
        except Exception as e:
            logger.debug(f"{self.name} raised on {path}: {e!r}")
            return ProcessResult(path=str(path), duration_seconds=time.perf_counter() - t0, error=e)
        return ProcessResult(path=str(path), duration_seconds=time.perf_counter() - t0)

    async def __call__(self, path: Union[str, Path]) -> ProcessResult:
        result = await self.process(path)
        if not result.ok:
            raise ProcessingFailed(path, cause=result.error)
        return result

    async def wait_idle(self) -> None:
        """Wait until work left behind by a cancelled call has finished"""
        pending = self._pending
        if pending is None:
            return
        if not pending.done():
            logger.warning(f"{self.name}: waiting for a timed-out call to finish before the next one")
            await asyncio.wait({pending})
        self._pending = None
        if not pending.cancelled() and pending.exception() is not None:
            logger.debug(f"{self.name}: timed-out call ended with {pending.exception()!r}")

    async def _offload(self, fn: Callable[..., Any], *args: Any) -> Any:
        """
        Run blocking fn in a worker thread.

        Cancelling the caller does not stop the thread, so the future is kept
        until wait_idle() has seen it finish.
        """
        self._pending = asyncio.ensure_future(asyncio.to_thread(fn, *args))
        return await asyncio.shield(self._pending)

    @abstractmethod
    async def _process(self, path: Path) -> None:
        """
        Run the external library on path and return once it has finished.
        Raise to report failure.
        """
        pass


class NoopProcessor(ImageProcessor):
    """Completes immediately; measures the harness's own baseline memory"""

    name = "noop"

    async def _process(self, path: Path) -> None:
        return None
