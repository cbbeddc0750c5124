"""Progress events and the one-shot channel that carries them.

One producer (a publish run) and one consumer (an SSE response, the CLI).
The channel is a bounded queue: it accepts any number of start / log /
complete / error events, then exactly one terminal event, after which it is
closed for good. Iterating a channel a second time yields nothing.
"""

import queue
import threading
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.config import PROGRESS_QUEUE_SIZE
from app.core import log_error, log_info, log_warning


class EventType(str, Enum):
    START = "start"
    LOG = "log"
    COMPLETE = "complete"
    ERROR = "error"
    DONE = "done"


class TrackError(BaseModel):
    title: str
    error: str


class ProgressEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: EventType
    current: Optional[int] = None
    total: Optional[int] = None
    title: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
    uploaded_tracks: Optional[int] = Field(default=None, alias="uploadedTracks")
    card_id: Optional[str] = Field(default=None, alias="cardId")
    errors: Optional[List[TrackError]] = None
    missing: Optional[List[str]] = None
    # Set on the closing event only; per-track `error` events leave it unset.
    final: Optional[bool] = None

    @property
    def is_terminal(self) -> bool:
        return bool(self.final)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    # ---------- constructors ----------

    @classmethod
    def start(cls, current: int, total: int, title: str) -> "ProgressEvent":
        return cls(type=EventType.START, current=current, total=total, title=title)

    @classmethod
    def log(cls, message: str) -> "ProgressEvent":
        return cls(type=EventType.LOG, message=message)

    @classmethod
    def complete(cls, current: int, total: int, title: str) -> "ProgressEvent":
        return cls(type=EventType.COMPLETE, current=current, total=total, title=title)

    @classmethod
    def track_error(cls, current: int, total: int, title: str, error: str) -> "ProgressEvent":
        return cls(
            type=EventType.ERROR, current=current, total=total, title=title, error=error
        )

    @classmethod
    def done(
        cls,
        uploaded_tracks: int,
        card_id: Optional[str],
        errors: List[TrackError],
    ) -> "ProgressEvent":
        return cls(
            type=EventType.DONE,
            uploaded_tracks=uploaded_tracks,
            card_id=card_id,
            errors=errors or None,
            final=True,
        )

    @classmethod
    def failed(
        cls,
        error: str,
        errors: Optional[List[TrackError]] = None,
        missing: Optional[List[str]] = None,
    ) -> "ProgressEvent":
        return cls(
            type=EventType.ERROR,
            error=error,
            errors=errors or None,
            missing=missing or None,
            final=True,
        )


def log_event(event: ProgressEvent) -> None:
    """Mirror an event into the application log."""
    detail = event.message or event.error or event.title or ""
    if event.type is EventType.ERROR:
        log_warning(f"[Yoto] {event.type.value} {detail}")
    else:
        log_info(f"[Yoto] {event.type.value} {detail}")


class EventSink:
    """Where a publish run sends its events."""

    def emit(self, event: ProgressEvent) -> None:
        raise NotImplementedError


class NullSink(EventSink):
    """Drops events after logging them (non-streaming callers)."""

    def emit(self, event: ProgressEvent) -> None:
        log_event(event)


class ChannelClosed(RuntimeError):
    pass


class ProgressChannel(EventSink):
    def __init__(self, maxsize: int = PROGRESS_QUEUE_SIZE, put_timeout: float = 0.5) -> None:
        self._queue: "queue.Queue[ProgressEvent]" = queue.Queue(maxsize=maxsize)
        self._put_timeout = put_timeout
        self._lock = threading.Lock()
        self._closed = False
        self._consumed = False
        self._detached = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def detached(self) -> bool:
        return self._detached.is_set()

    def emit(self, event: ProgressEvent) -> None:
        with self._lock:
            if self._closed:
                raise ChannelClosed("Progress channel already received its terminal event.")
            if event.is_terminal:
                self._closed = True

        log_event(event)

        # Block while the consumer is slow, give up once it is gone.
        while not self._detached.is_set():
            try:
                self._queue.put(event, timeout=self._put_timeout)
                return
            except queue.Full:
                continue

    def detach(self) -> None:
        """Called by the consumer when it goes away; later events are dropped."""
        if not self._detached.is_set():
            if not self._closed:
                log_error("Progress consumer disconnected before the run finished.")
            self._detached.set()

    def __iter__(self) -> Iterator[ProgressEvent]:
        with self._lock:
            first = not self._consumed
            self._consumed = True
        if not first:
            return iter(())
        return self._drain()

    def _drain(self) -> Iterator[ProgressEvent]:
        while True:
            event = self._queue.get()
            yield event
            if event.is_terminal:
                return
