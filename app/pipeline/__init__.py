"""Public façade for the app.pipeline package.

This module exposes the publish pipeline: the orchestrator that uploads a
playlist and submits its card, the progress events it emits and the channel
that carries them. Other packages should import pipeline behaviour from this
façade instead of the internal submodules.
"""

from .progress import (
    ChannelClosed,
    EventSink,
    EventType,
    NullSink,
    ProgressChannel,
    ProgressEvent,
    TrackError,
)
from .publish import (
    PlaylistRunLocks,
    PublishOrchestrator,
    PublishResult,
    publish_playlist,
    start_publish_stream,
)

__all__ = [
    "PublishOrchestrator",
    "PublishResult",
    "PlaylistRunLocks",
    "publish_playlist",
    "start_publish_stream",
    "ProgressEvent",
    "EventType",
    "TrackError",
    "EventSink",
    "NullSink",
    "ProgressChannel",
    "ChannelClosed",
]
