"""
Repeat-Loop Driver

Invokes an asynchronous processor on a fixed path over and over, taking a
memory snapshot after every completed call and waiting a fixed delay before
the next one. At most one call is in flight at any time.
"""
import asyncio
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Union

from leakwatch.consts.DriverState import DriverState
from leakwatch.consts.FailurePolicy import FailurePolicy
from leakwatch.monitor.memory_inspector import MemoryInspector
from leakwatch.monitor.memory_snapshot import MemorySnapshot
from leakwatch.service.driver.driver_run_result import DriverRunResult
from leakwatch.service.driver.errors import ProcessingFailed, ProcessingTimeout, SoakError
from leakwatch.service.sink.snapshot_sink import SnapshotSink
from leakwatch.util.cal_utils import DEFAULT_SNAPSHOT_WINDOW, TrendTracker
from leakwatch.util.conditions import ContinueCondition
from leakwatch.util.log_config import setup_logger

logger = setup_logger(__name__)

ProcessFn = Callable[[str], Awaitable[Any]]


class RepeatLoopDriver:
    """Drive repeated processor calls and report memory after each one"""

    def __init__(
        self,
        inspector: Optional[MemoryInspector] = None,
        sinks: Optional[List[SnapshotSink]] = None,
        timeout: Optional[float] = None,
        failure_policy: FailurePolicy = FailurePolicy.ABORT,
        max_retries: int = 3,
        snapshot_window: int = DEFAULT_SNAPSHOT_WINDOW,
    ):
        """
        Args:
            inspector: Memory inspector queried once per completed iteration
            sinks: Receivers of one snapshot per completed iteration, in order
            timeout: Seconds to wait for a call to complete (None: wait forever)
            failure_policy: What to do when a call fails or times out
            max_retries: Consecutive retries allowed per iteration under RETRY
            snapshot_window: How many recent snapshots the run result keeps
        """
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        if snapshot_window < 1:
            raise ValueError(f"snapshot_window must be >= 1, got {snapshot_window}")
        self.inspector = inspector or MemoryInspector()
        self.sinks = list(sinks or [])
        self.timeout = timeout
        self.failure_policy = failure_policy
        self.max_retries = max_retries
        self.snapshot_window = snapshot_window
        self.state = DriverState.IDLE
        self.result: Optional[DriverRunResult] = None
        self._stop_event = asyncio.Event()

    def stop(self) -> None:
        """Ask the loop to finish after the current call; cuts a pending delay short."""
        logger.info("Stop requested")
        self._stop_event.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    async def run(
        self,
        process_fn: ProcessFn,
        path: Union[str, Path],
        delay: float,
        continue_condition: Optional[ContinueCondition] = None,
    ) -> DriverRunResult:
        """
        Run until continue_condition() is false or stop() is called.

        Returns:
            DriverRunResult with counts, the running memory trend and the most
            recent snapshots

        Raises:
            ProcessingFailed / ProcessingTimeout when the failure policy gives up
        """
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        path = str(path)
        self._stop_event.clear()
        result = DriverRunResult(
            path=path,
            delay_seconds=delay,
            started_at=time.time(),
            trend=TrendTracker(window=self.snapshot_window),
        )
        self.result = result

        iteration = 0
        retries = 0
        retry_pending = False
        try:
            while not self._stop_event.is_set():
                if not retry_pending:
                    if continue_condition is not None and not continue_condition():
                        break
                    iteration += 1
                retry_pending = False

                self._set_state(DriverState.INVOKING)
                result.attempts += 1
                try:
                    await self._settle(process_fn)
                    await self._invoke(process_fn, path, iteration)
                except SoakError as e:
                    result.failures += 1
                    logger.error(f"Iteration {iteration} failed: {e}")
                    if self.failure_policy == FailurePolicy.ABORT:
                        result.error = str(e)
                        raise
                    if self.failure_policy == FailurePolicy.RETRY:
                        if retries >= self.max_retries:
                            logger.error(f"Iteration {iteration}: giving up after {retries} retries")
                            result.error = str(e)
                            raise
                        retries += 1
                        retry_pending = True
                        logger.warning(f"Iteration {iteration}: retry {retries}/{self.max_retries} after {delay:.3f}s")
                else:
                    retries = 0
                    result.iterations_completed += 1
                    self._record(result, iteration)

                self._set_state(DriverState.WAITING)
                await self._wait(delay)
        finally:
            self._set_state(DriverState.STOPPED)
            result.state = DriverState.STOPPED
            result.finished_at = time.time()

        logger.info(f"✓ Driver stopped: {result.iterations_completed} iteration(s), {result.failures} failure(s)")
        return result

    async def _invoke(self, process_fn: ProcessFn, path: str, iteration: int) -> None:
        try:
            if self.timeout is None:
                await process_fn(path)
            else:
                try:
                    await asyncio.wait_for(process_fn(path), timeout=self.timeout)
                except asyncio.TimeoutError:
                    raise ProcessingTimeout(path, iteration, self.timeout) from None
        except ProcessingFailed as e:
            raise ProcessingFailed(path, iteration, e.cause) from e
        except SoakError:
            raise
        except Exception as e:
            raise ProcessingFailed(path, iteration, e) from e

    async def _settle(self, process_fn: ProcessFn) -> None:
        # A timed-out call may leave work running in a worker thread
        wait_idle = getattr(process_fn, "wait_idle", None)
        if wait_idle is not None:
            await wait_idle()

    def _record(self, result: DriverRunResult, iteration: int) -> MemorySnapshot:
        snapshot = self.inspector.current_usage(iteration)
        result.trend.add(snapshot)
        for sink in self.sinks:
            sink.emit(snapshot)
        return snapshot

    async def _wait(self, delay: float) -> None:
        if self._stop_event.is_set():
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    def _set_state(self, state: DriverState) -> None:
        if state != self.state:
            logger.debug(f"Driver state {self.state.value} -> {state.value}")
        self.state = state
