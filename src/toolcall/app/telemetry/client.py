"""Queue-backed telemetry client with a background delivery worker."""

from __future__ import annotations

import hashlib
import queue
import socket
import threading
import time
import uuid
from typing import Dict, List, Sequence

from toolcall.domain.first_run import FirstRunMarker
from toolcall.ports.marker_store import MarkerStore

from .events import TelemetryEvent
from .sinks import TelemetrySink, default_context

DEFAULT_QUEUE_SIZE = 256
DEFAULT_FLUSH_TIMEOUT = 5.0
_BATCH_SIZE = 32
_STOP = object()


class TelemetryClient:
    """Accepts events without blocking and delivers them on a worker thread.

    Collection is enabled only when the user has not opted out and the
    first-run telemetry notice has been shown. ``flush`` drains the queue or
    gives up after ``timeout`` seconds in total; once it gives up, queued
    batches are abandoned and no further sink call starts. Events tracked
    after ``flush`` are dropped.
    """

    def __init__(
        self,
        sinks: Sequence[TelemetrySink],
        *,
        markers: MarkerStore | None = None,
        opt_out: bool = False,
        cli_version: str = "",
        queue_size: int = DEFAULT_QUEUE_SIZE,
        notice_shown: bool | None = None,
    ) -> None:
        if notice_shown is None:
            notice_shown = markers is not None and markers.exists(FirstRunMarker.TELEMETRY_NOTICE_SHOWN)
        self.enabled = bool(sinks) and not opt_out and notice_shown
        self._sinks = list(sinks)
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=queue_size)
        self._closed = False
        self._lock = threading.Lock()
        self._worker: threading.Thread | None = None
        self._abandoned = threading.Event()
        self.dropped = 0
        self.context: Dict[str, str] = default_context(cli_version)
        self.context["sessionId"] = str(uuid.uuid4())
        self.context["machineId"] = hashlib.sha256(socket.gethostname().encode("utf-8")).hexdigest()

    def track_event(self, event: TelemetryEvent) -> None:
        if not self.enabled:
            return
        with self._lock:
            if self._closed:
                self.dropped += 1
                return
            self._ensure_worker()
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self.dropped += 1

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def flush(self, timeout: float = DEFAULT_FLUSH_TIMEOUT) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            worker = self._worker
        if worker is None:
            return
        deadline = time.monotonic() + timeout
        try:
            self._queue.put(_STOP, timeout=max(0.0, deadline - time.monotonic()))
        except queue.Full:
            self._abandoned.set()
            return
        worker.join(max(0.0, deadline - time.monotonic()))
        if worker.is_alive():
            self._abandoned.set()

    @property
    def abandoned(self) -> bool:
        return self._abandoned.is_set()

    def _ensure_worker(self) -> None:
        if self._worker is None:
            self._worker = threading.Thread(target=self._run, name="toolcall-telemetry", daemon=True)
            self._worker.start()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            batch: List[TelemetryEvent] = [item]  # type: ignore[list-item]
            stop = False
            while len(batch) < _BATCH_SIZE:
                try:
                    extra = self._queue.get_nowait()
                except queue.Empty:
                    break
                if extra is _STOP:
                    stop = True
                    break
                batch.append(extra)  # type: ignore[arg-type]
            self._deliver(batch)
            if stop or self._abandoned.is_set():
                return

    def _deliver(self, batch: Sequence[TelemetryEvent]) -> None:
        for sink in self._sinks:
            if self._abandoned.is_set():
                return
            try:
                sink.deliver(batch, self.context)
            except Exception:  # noqa: BLE001 - delivery failures are never surfaced
                continue
