import json
from pathlib import Path

from leakwatch.monitor.memory_snapshot import MemorySnapshot
from leakwatch.service.sink.snapshot_sink import SnapshotSink


class JsonLinesSink(SnapshotSink):
    """
    Writes one JSON object per snapshot to a .jsonl file.

    The file is truncated on open so it only ever holds one run; pass
    append=True to keep earlier records.
    """

    def __init__(self, path: Path, append: bool = False):
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "a" if append else "w", encoding="utf-8")

    def emit(self, snapshot: MemorySnapshot) -> None:
        self._file.write(json.dumps(snapshot.to_dict()) + "\n")
        # Flush per line so a killed run still leaves every record behind
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()
