from pathlib import Path
from typing import Optional, Union


class SoakError(Exception):
    """Base class for failures raised while driving the soak loop"""


class ProcessingFailed(SoakError):
    """The external processor reported an error for one iteration"""

    def __init__(self, path: Union[str, Path], iteration: Optional[int] = None, cause: Optional[BaseException] = None):
        self.path = str(path)
        self.iteration = iteration
        self.cause = cause
        where = f" (iteration {iteration})" if iteration is not None else ""
        super().__init__(f"Processing {self.path} failed{where}: {cause}")


class ProcessingTimeout(SoakError):
    """No completion was observed within the allowed time"""

    def __init__(self, path: Union[str, Path], iteration: Optional[int], timeout: float):
        self.path = str(path)
        self.iteration = iteration
        self.timeout = timeout
        where = f" (iteration {iteration})" if iteration is not None else ""
        super().__init__(f"Processing {self.path} did not complete within {timeout:.3f}s{where}")
