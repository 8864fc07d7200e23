"""Stage timing for the performance summary printed when perf logging is enabled."""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, TextIO


@dataclass
class PerfTrace:
    enabled: bool = False
    stages: list[tuple[str, float]] = field(default_factory=list)

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self.stages.append((name, (time.perf_counter() - start) * 1000))

    def print_summary(self, stream: TextIO) -> None:
        if not self.enabled:
            return
        print("Performance Summary:", file=stream)
        for name, ms in self.stages:
            print(f"  {name:<16} {ms:10.2f} ms", file=stream)
