import asyncio
from pathlib import Path
from typing import Callable, Optional

from leakwatch.service.processor.processor import ImageProcessor

OnComplete = Callable[..., None]
CallbackProcess = Callable[[str, OnComplete], None]


class CallbackProcessor(ImageProcessor):
    """
    Adapt a callback-style processor, process(path, on_complete), to an awaitable.

    on_complete(error=None) resolves the pending call; passing an error fails it.
    The callback may be invoked from another thread. A callback that never fires
    leaves the call pending forever unless the driver applies a timeout.
    """

    name = "callback"

    def __init__(self, process_fn: CallbackProcess):
        super().__init__()
        self.process_fn = process_fn

    async def _process(self, path: Path) -> None:
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def _resolve(error: Optional[BaseException] = None) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(None)

        def on_complete(error: Optional[BaseException] = None) -> None:
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is loop:
                _resolve(error)
            else:
                loop.call_soon_threadsafe(_resolve, error)

        self.process_fn(str(path), on_complete)
        await future
