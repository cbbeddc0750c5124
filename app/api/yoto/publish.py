import json
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from app.pipeline import ProgressChannel, publish_playlist, start_publish_stream
from app.state import AppState, get_state
from app.yoto import UploadError, YotoError

from ..errors import to_http_exception
from .schemas import PublishResponse, UploadTrackRequest, UploadTrackResponse

router = APIRouter()


def _sse_events(channel: ProgressChannel) -> Iterator[str]:
    try:
        for event in channel:
            yield f"data: {json.dumps(event.to_wire())}\n\n"
    finally:
        channel.detach()


@router.get("/upload-playlist/{playlist_id}/stream")
def upload_playlist_stream(playlist_id: str, state: AppState = Depends(get_state)):
    """
    Publish a playlist and stream progress as server-sent events.

    Each message is one JSON event; the stream ends after the single
    `done` / `error` event that carries `"final": true`.
    """
    channel = start_publish_stream(state.orchestrator(), playlist_id)
    return StreamingResponse(
        _sse_events(channel),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.post(
    "/upload-playlist/{playlist_id}",
    response_model=PublishResponse,
    response_model_exclude_none=True,
)
def upload_playlist(playlist_id: str, state: AppState = Depends(get_state)) -> PublishResponse:
    """
    Same publish as the streaming route, answered in one response.
    """
    try:
        result = publish_playlist(state.orchestrator(), playlist_id)
    except YotoError as e:
        raise to_http_exception(e)

    return PublishResponse(
        card_id=result.card_id,
        uploaded_tracks=result.uploaded_tracks,
        errors=result.errors or None,
    )


@router.post("/upload-track", response_model=UploadTrackResponse)
def upload_track(body: UploadTrackRequest, state: AppState = Depends(get_state)) -> UploadTrackResponse:
    """
    Upload and transcode a single playlist track, without touching any card.
    """
    playlist = state.playlists.get_playlist(body.playlist_id)
    if playlist is None or not 1 <= body.position <= len(playlist.tracks):
        raise HTTPException(status_code=404, detail="Song not found or not downloaded")

    track = playlist.tracks[body.position - 1]
    if not state.playlists.asset_present(track):
        raise HTTPException(status_code=404, detail="Song file not found on disk")

    try:
        state.credentials.require()
        result = state.uploader.upload(track.local_asset_path)
    except UploadError as e:
        raise HTTPException(
            status_code=500, detail={"error": "Failed to upload track", "details": str(e)}
        )
    except YotoError as e:
        raise to_http_exception(e)

    return UploadTrackResponse(asset_key=result.asset_key, deduplicated=result.deduplicated)
