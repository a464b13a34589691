from typing import List, Optional

from leakwatch.config.pipeline_step import PipelineStep
from leakwatch.consts.FailurePolicy import FailurePolicy
from leakwatch.consts.ProcessorType import ProcessorType


class SoakConfig:
    path: str
    delay_seconds: float
    iterations: Optional[int]  # None runs until stopped
    timeout_seconds: Optional[float]
    failure_policy: FailurePolicy
    max_retries: int
    processor: ProcessorType
    pipeline: List[PipelineStep]
    output_path: Optional[str]
    out_dir: Optional[str]
    leak_threshold_bytes: float
    trace_heap: bool
    count_objects: bool
    snapshot_window: int

    def __str__(self):
        return (f"SoakConfig(\n"
                f"  path={self.path},\n"
                f"  delay_seconds={self.delay_seconds},\n"
                f"  iterations={self.iterations},\n"
                f"  timeout_seconds={self.timeout_seconds},\n"
                f"  failure_policy={self.failure_policy.value},\n"
                f"  max_retries={self.max_retries},\n"
                f"  snapshot_window={self.snapshot_window},\n"
                f"  processor={self.processor.value},\n"
                f"  pipeline={[step.op for step in self.pipeline]},\n"
                f"  out_dir={self.out_dir}\n"
                f")")
