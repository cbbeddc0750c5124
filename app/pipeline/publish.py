"""Publish a local playlist to Yoto as a playable card.

High-level flow of PublishOrchestrator.publish():

  1. preconditions (no network): credentials present, playlist exists,
     every track's audio file on disk
  2. upload + transcode each track, one at a time, in playlist order;
     a failed track is recorded and the loop moves on
  3. nothing uploaded -> AllUploadsFailed, no manifest is sent
  4. build the manifest from the successful tracks (playlist order) with
     the stored card id, if any, so Yoto updates instead of duplicating
  5. submit; persist the returned card id when it changed

run() wraps publish() for streaming callers: it emits exactly one terminal
event (done / error) on the sink, whatever happens. publish_playlist() is the
non-streaming variant: same work, intermediate events only logged.

Only one run per playlist at a time (PlaylistRunLocks).
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set

import requests

from app.config import DEFAULT_TRACK_FORMAT
from app.core import Playlist, log_error, log_progress, log_section, log_success
from app.data import PlaylistRepository
from app.yoto import (
    AllUploadsFailed,
    CredentialStore,
    ManifestTrack,
    MissingLocalAsset,
    PlaylistEmpty,
    PlaylistNotFound,
    PublishInProgress,
    PublishManifest,
    TranscodeUploader,
    UploadError,
    UploadResult,
    YotoError,
    ensure_fresh_credentials,
    extract_card_id,
    submit_manifest,
)

from .progress import EventSink, NullSink, ProgressChannel, ProgressEvent, TrackError


@dataclass
class PublishResult:
    card_id: Optional[str]
    uploaded_tracks: int
    errors: List[TrackError] = field(default_factory=list)
    manifest: Optional[PublishManifest] = None
    card: Optional[dict] = None


class PlaylistRunLocks:
    """Non-blocking per-playlist guard: a second concurrent run is refused."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._running: Set[str] = set()

    def is_running(self, playlist_id: str) -> bool:
        with self._lock:
            return playlist_id in self._running

    @contextmanager
    def hold(self, playlist_id: str) -> Iterator[None]:
        with self._lock:
            if playlist_id in self._running:
                raise PublishInProgress(
                    f"A publish run for playlist {playlist_id} is already in progress"
                )
            self._running.add(playlist_id)
        try:
            yield
        finally:
            with self._lock:
                self._running.discard(playlist_id)


class PublishOrchestrator:
    def __init__(
        self,
        credentials: CredentialStore,
        playlists: PlaylistRepository,
        uploader: Optional[TranscodeUploader] = None,
        run_locks: Optional[PlaylistRunLocks] = None,
        http=requests,
    ) -> None:
        self._credentials = credentials
        self._playlists = playlists
        self._uploader = uploader or TranscodeUploader(credentials)
        self._locks = run_locks or PlaylistRunLocks()
        self._http = http

    # ---------- preconditions ----------

    def _load_playlist(self, playlist_id: str) -> Playlist:
        playlist = self._playlists.get_playlist(playlist_id)
        if playlist is None:
            raise PlaylistNotFound("Playlist not found")
        if not playlist.tracks:
            raise PlaylistEmpty("Playlist has no songs")

        missing = [t.title for t in playlist.tracks if not self._playlists.asset_present(t)]
        if missing:
            raise MissingLocalAsset(missing)
        return playlist

    # ---------- publish ----------

    def publish(self, playlist_id: str, sink: Optional[EventSink] = None) -> PublishResult:
        sink = sink or NullSink()

        self._credentials.require()
        with self._locks.hold(playlist_id):
            playlist = self._load_playlist(playlist_id)
            credentials = ensure_fresh_credentials(self._credentials, http=self._http)

            log_section(f"Publishing '{playlist.name}' to Yoto")
            manifest_tracks, errors = self._upload_tracks(playlist, sink)

            if not manifest_tracks:
                raise AllUploadsFailed([e.model_dump() for e in errors])

            manifest = PublishManifest(
                title=playlist.name,
                tracks=manifest_tracks,
                card_id=playlist.card_id,
                user_id=credentials.user_id,
            )

            sink.emit(
                ProgressEvent.log(
                    "Updating Yoto card..." if manifest.is_update else "Creating Yoto card..."
                )
            )
            card = submit_manifest(self._credentials, manifest)

            card_id = extract_card_id(card) or playlist.card_id
            if card_id and card_id != playlist.card_id:
                self._playlists.set_card_id(playlist_id, card_id)
                sink.emit(ProgressEvent.log(f"Saved card ID: {card_id}"))

        log_success(
            f"Published '{playlist.name}': {len(manifest_tracks)} track(s), "
            f"{len(errors)} failed, card {card_id}."
        )
        return PublishResult(
            card_id=card_id,
            uploaded_tracks=len(manifest_tracks),
            errors=errors,
            manifest=manifest,
            card=card,
        )

    def _upload_tracks(self, playlist: Playlist, sink: EventSink):
        total = len(playlist.tracks)
        uploaded: List[ManifestTrack] = []
        errors: List[TrackError] = []

        def forward(message: str) -> None:
            sink.emit(ProgressEvent.log(message))

        for position, track in enumerate(playlist.tracks, start=1):
            log_progress(position, total, prefix=f"Uploading {track.title!r}")
            sink.emit(ProgressEvent.start(position, total, track.title))
            try:
                result: UploadResult = self._uploader.upload(track.local_asset_path, log=forward)
            except (UploadError, OSError, requests.RequestException) as exc:
                errors.append(TrackError(title=track.title, error=str(exc)))
                sink.emit(ProgressEvent.track_error(position, total, track.title, str(exc)))
                continue

            uploaded.append(
                ManifestTrack(
                    title=track.title,
                    track_number=position,
                    asset_key=result.asset_key,
                    duration_seconds=track.duration_seconds or result.duration_seconds or 0,
                    format=result.format or DEFAULT_TRACK_FORMAT,
                )
            )
            sink.emit(ProgressEvent.complete(position, total, track.title))

        return uploaded, errors

    def run(self, playlist_id: str, sink: EventSink) -> Optional[PublishResult]:
        """
        Streaming entrypoint: publish() plus exactly one terminal event.

        Returns the result on success, None when the terminal event was an error.
        """
        try:
            result = self.publish(playlist_id, sink)
        except MissingLocalAsset as exc:
            sink.emit(ProgressEvent.failed(str(exc), missing=exc.missing))
            return None
        except AllUploadsFailed as exc:
            sink.emit(
                ProgressEvent.failed(str(exc), errors=[TrackError(**e) for e in exc.errors])
            )
            return None
        except YotoError as exc:
            sink.emit(ProgressEvent.failed(str(exc)))
            return None
        except Exception as exc:  # noqa: BLE001
            log_error(f"Publish run for {playlist_id} crashed: {exc!r}")
            sink.emit(ProgressEvent.failed(f"Unexpected error: {exc}"))
            return None

        sink.emit(ProgressEvent.done(result.uploaded_tracks, result.card_id, result.errors))
        return result


def start_publish_stream(orchestrator: PublishOrchestrator, playlist_id: str) -> ProgressChannel:
    """
    Run a publish in a background thread and hand back its channel.

    The run is not aborted if the consumer disconnects; in-flight requests
    finish and later events are dropped.
    """
    channel = ProgressChannel()
    worker = threading.Thread(
        target=orchestrator.run,
        args=(playlist_id, channel),
        name=f"publish-{playlist_id}",
        daemon=True,
    )
    worker.start()
    return channel


def publish_playlist(orchestrator: PublishOrchestrator, playlist_id: str) -> PublishResult:
    """Non-streaming publish: raises the typed error instead of emitting it."""
    return orchestrator.publish(playlist_id, NullSink())
