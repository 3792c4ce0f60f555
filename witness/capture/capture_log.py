"""Capture log. Bounded, partitioned in-memory record of captures for one test run."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import deque
from typing import Any

from witness.models.capture import Capture

logger = logging.getLogger(__name__)

DEFAULT_PARTITION = "default"
MAX_CAPTURES_PER_PARTITION = 1000


class CaptureLog:
    """Collects captures keyed by test file, evicting the oldest record per partition.

    One instance is owned by whoever runs the tests (see ``witness.pytest_plugin``)
    and handed to the instrumentation explicitly. Mutations are serialized by a
    lock so parallel workers in the same process can append concurrently; every
    read returns a copy. The log is never shared across processes.
    """

    def __init__(self, max_per_partition: int = MAX_CAPTURES_PER_PARTITION):
        if max_per_partition < 1:
            raise ValueError("max_per_partition must be at least 1")
        self.max_per_partition = max_per_partition
        # dict preserves the order in which partitions were first touched
        self._partitions: dict[str, deque[Capture]] = {}
        self._lock = threading.Lock()

    def append(self, record: dict[str, Any] | Capture, test_file: str | None = None) -> Capture:
        """Assign id and timestamp to a record and store it.

        The partition is ``test_file`` if given, else the record's own
        ``test_file``, else ``"default"``.
        """
        fields = record.model_dump() if isinstance(record, Capture) else dict(record)
        fields.pop("id", None)
        fields.pop("timestamp", None)
        capture = Capture(
            id=uuid.uuid4().hex,
            timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            **fields,
        )
        key = test_file or capture.test_file or DEFAULT_PARTITION

        with self._lock:
            partition = self._partitions.get(key)
            if partition is None:
                partition = deque(maxlen=self.max_per_partition)
                self._partitions[key] = partition
            if len(partition) == self.max_per_partition:
                logger.debug("Capture log partition %s full, evicting oldest record", key)
            partition.append(capture)
        return capture

    def all(self) -> list[Capture]:
        with self._lock:
            return [c for partition in self._partitions.values() for c in partition]

    def by_name(self, name: str) -> list[Capture]:
        return [c for c in self.all() if c.name == name]

    def by_partition(self, key: str) -> list[Capture]:
        with self._lock:
            return list(self._partitions.get(key, ()))

    def partitions(self) -> list[str]:
        with self._lock:
            return list(self._partitions)

    def discard(self, captures: list[Capture]) -> None:
        """Remove the given records, leaving anything appended since untouched."""
        ids = {c.id for c in captures}
        with self._lock:
            for key in list(self._partitions):
                kept = [c for c in self._partitions[key] if c.id not in ids]
                if kept:
                    self._partitions[key] = deque(kept, maxlen=self.max_per_partition)
                else:
                    del self._partitions[key]

    def clear(self) -> None:
        with self._lock:
            self._partitions.clear()

    def clear_partition(self, key: str) -> None:
        with self._lock:
            self._partitions.pop(key, None)

    def size(self) -> int:
        with self._lock:
            return sum(len(p) for p in self._partitions.values())

    def __len__(self) -> int:
        return self.size()
