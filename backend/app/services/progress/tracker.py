"""
File Lifecycle Tracker

Owns the knowledgebase file collection and simulates the upload and
processing phases of every file on the asyncio event loop.

Each phase runs two independent timers:
- a repeating tick that bumps progress by a fixed step until it reaches 100
- a one-shot completion timer with a randomized duration

Only the completion timer moves a file to its next status, so progress may
hit 100% before or after the phase actually finishes.
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Union
from uuid import uuid4

from backend.app.services.progress.models import (
    ErrorKind,
    FileRecord,
    FileStatus,
    OperationResult,
    RawFile,
)
from backend.app.services.progress.timing import batch_window, uniform_phase_duration

logger = logging.getLogger(__name__)

TICK_INTERVAL_SECONDS = 0.2
PROGRESS_STEP = 10
MAX_PROGRESS = 100


class PhaseKind(str, Enum):
    UPLOAD = "upload"
    PROCESS = "process"


# phase -> status on completion
PHASE_DONE_STATUS = {
    PhaseKind.UPLOAD: FileStatus.UPLOADED,
    PhaseKind.PROCESS: FileStatus.PROCESSED,
}


class PhaseHandle:
    """Timers of one in-flight phase for one file."""

    def __init__(self, record_id: str, kind: PhaseKind, loop: asyncio.AbstractEventLoop):
        self.record_id = record_id
        self.kind = kind
        self.loop = loop
        self.tick_timer: Optional[asyncio.TimerHandle] = None
        self.completion_timer: Optional[asyncio.TimerHandle] = None

    def cancel(self):
        for timer in (self.tick_timer, self.completion_timer):
            if timer is not None:
                timer.cancel()
        self.tick_timer = None
        self.completion_timer = None


class LifecycleEngine:
    """
    Collection owner and state machine for knowledgebase files.

    Mutating operations return immediately; phases progress in the
    background on the running event loop. Refused operations come back as
    an OperationResult with an ErrorKind instead of raising.
    """

    def __init__(
        self,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        progress_step: int = PROGRESS_STEP,
        phase_duration: Optional[Callable[[], float]] = None,
        upload_window: Optional[Callable[[int], float]] = None,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.tick_interval = tick_interval
        self.progress_step = progress_step
        self.phase_duration = phase_duration or uniform_phase_duration()
        self.upload_window = upload_window or batch_window()
        self._id_factory = id_factory or (lambda: uuid4().hex)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        # Insertion ordered: snapshot order is intake order
        self._records: Dict[str, FileRecord] = {}
        self._phases: Dict[str, PhaseHandle] = {}

        self._upload_window_timer: Optional[asyncio.TimerHandle] = None
        self._upload_window_ends = 0.0
        self._closed = False

    @classmethod
    def from_settings(cls, settings: dict) -> "LifecycleEngine":
        """Build an engine from the timing values of the settings file."""
        return cls(
            tick_interval=settings["tick_interval_ms"] / 1000.0,
            progress_step=settings["progress_step"],
            phase_duration=uniform_phase_duration(
                min_ms=settings["phase_min_ms"],
                jitter_ms=settings["phase_jitter_ms"]
            ),
            upload_window=batch_window(
                base_ms=settings["batch_base_ms"],
                per_file_ms=settings["batch_per_file_ms"]
            ),
        )

    # ===============================
    # Write operations
    # ===============================

    def intake(self, raw_files: Iterable[Union[RawFile, dict]]) -> List[str]:
        """
        Register new files and start their upload phases.

        Every entry is validated before anything is created, so a bad
        entry (e.g. negative size) raises ValidationError and leaves the
        collection untouched.
        """
        self._ensure_open()

        files = [
            f if isinstance(f, RawFile) else RawFile.model_validate(f)
            for f in raw_files
        ]
        if not files:
            return []

        loop = asyncio.get_running_loop()

        # Draw all timings up front so a failing generator leaves no half-started files
        durations = [self.phase_duration() for _ in files]
        window = self.upload_window(len(files))

        new_records: Dict[str, FileRecord] = {}
        for raw in files:
            record = FileRecord(
                id=self._new_id(new_records),
                name=raw.name,
                size=raw.size,
                mime_type=raw.mime_type,
                uploaded_at=self._clock(),
                status=FileStatus.UPLOADING,
                progress=0,
            )
            new_records[record.id] = record

        self._records.update(new_records)
        new_ids = list(new_records)

        for record_id, duration in zip(new_ids, durations):
            self._start_phase(loop, record_id, PhaseKind.UPLOAD, duration)

        self._open_upload_window(loop, window)

        logger.info(f"[INTAKE] {len(files)} file(s) uploading | Total files: {len(self._records)}")
        return new_ids

    def begin_processing(self, record_id: str) -> OperationResult:
        """Move an uploaded file into the processing phase."""
        self._ensure_open()

        record = self._records.get(record_id)
        if record is None:
            return self._not_found(record_id)

        if record.status != FileStatus.UPLOADED:
            logger.warning(f"[WARN] Cannot process {record.name} ({record_id}): status is {record.status.value}")
            return OperationResult.fail(
                record_id,
                ErrorKind.INVALID_TRANSITION,
                f"File must be '{FileStatus.UPLOADED.value}' to be processed, not '{record.status.value}'"
            )

        loop = asyncio.get_running_loop()
        duration = self.phase_duration()

        record.status = FileStatus.PROCESSING
        record.progress = 0
        self._start_phase(loop, record_id, PhaseKind.PROCESS, duration)

        return OperationResult.ok(record_id, "Processing started")

    def delete(self, record_id: str) -> OperationResult:
        """Remove a file that is not in the middle of a phase."""
        record = self._records.get(record_id)
        if record is None:
            return self._not_found(record_id)

        if record.status.is_busy:
            logger.warning(f"[WARN] Cannot delete {record.name} ({record_id}): still {record.status.value}")
            return OperationResult.fail(
                record_id,
                ErrorKind.RECORD_BUSY,
                f"File is still {record.status.value}"
            )

        del self._records[record_id]
        logger.info(f"[DELETED] {record.name} ({record_id})")
        return OperationResult.ok(record_id, "File deleted")

    def shutdown(self):
        """
        Cancel every outstanding timer of every file.
        Called when the owning application stops; the collection must not
        change after this point.
        """
        if self._closed:
            return

        for phase in self._phases.values():
            phase.cancel()
        cancelled = len(self._phases)
        self._phases.clear()

        if self._upload_window_timer is not None:
            self._upload_window_timer.cancel()
            self._upload_window_timer = None

        self._closed = True
        logger.info(f"[SHUTDOWN] Cancelled {cancelled} in-flight phase(s)")

    # ===============================
    # Read operations
    # ===============================

    def snapshot(self) -> List[FileRecord]:
        """Copies of all records in intake order."""
        return [record.model_copy() for record in self._records.values()]

    def get(self, record_id: str) -> Optional[FileRecord]:
        record = self._records.get(record_id)
        return record.model_copy() if record is not None else None

    def is_ready_to_exit(self) -> bool:
        return any(r.status == FileStatus.PROCESSED for r in self._records.values())

    def is_uploading(self) -> bool:
        """True while the upload window of the latest intake is still open."""
        return self._upload_window_timer is not None

    def active_phases(self) -> int:
        return len(self._phases)

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._records)

    # ===============================
    # Phase simulation
    # ===============================

    def _start_phase(self, loop: asyncio.AbstractEventLoop, record_id: str, kind: PhaseKind, duration: float):
        phase = PhaseHandle(record_id, kind, loop)
        self._phases[record_id] = phase

        phase.tick_timer = loop.call_later(self.tick_interval, self._tick, phase)
        phase.completion_timer = loop.call_later(duration, self._complete, phase)

        logger.debug(f"[{kind.value.upper()} STARTED] {record_id} | duration {duration:.2f}s")

    def _tick(self, phase: PhaseHandle):
        phase.tick_timer = None
        # Stale callback from a phase that already finished
        if self._phases.get(phase.record_id) is not phase:
            return

        record = self._records[phase.record_id]
        record.progress = min(record.progress + self.progress_step, MAX_PROGRESS)

        if record.progress < MAX_PROGRESS:
            phase.tick_timer = phase.loop.call_later(self.tick_interval, self._tick, phase)

    def _complete(self, phase: PhaseHandle):
        phase.completion_timer = None
        if self._phases.get(phase.record_id) is not phase:
            return

        phase.cancel()
        del self._phases[phase.record_id]

        record = self._records[phase.record_id]
        done_status = PHASE_DONE_STATUS[phase.kind]
        record.status = done_status
        record.progress = MAX_PROGRESS

        logger.info(f"[OK] {record.name} ({record.id}) -> {done_status.value}")

    def _open_upload_window(self, loop: asyncio.AbstractEventLoop, window: float):
        ends_at = loop.time() + window
        if self._upload_window_timer is not None and ends_at <= self._upload_window_ends:
            return

        if self._upload_window_timer is not None:
            self._upload_window_timer.cancel()

        self._upload_window_ends = ends_at
        self._upload_window_timer = loop.call_at(ends_at, self._close_upload_window)

    def _close_upload_window(self):
        self._upload_window_timer = None
        logger.debug("[UPLOAD WINDOW CLOSED]")

    # ===============================
    # Helpers
    # ===============================

    def _new_id(self, pending: Dict[str, FileRecord]) -> str:
        record_id = self._id_factory()
        while record_id in self._records or record_id in pending:
            record_id = self._id_factory()
        return record_id

    def _not_found(self, record_id: str) -> OperationResult:
        return OperationResult.fail(record_id, ErrorKind.NOT_FOUND, "File not found")

    def _ensure_open(self):
        if self._closed:
            raise RuntimeError("Lifecycle engine has been shut down")
