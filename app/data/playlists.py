import os
import threading
from typing import Callable, Dict, List, Optional

from app.config import PLAYLISTS_FILE
from app.core import Playlist, PlaylistTrack, log_warning, read_json, write_json

# JSON layout:
#   {
#     "<playlist_id>": {
#       "name": "Bedtime",
#       "yoto_card_id": "abc12" | null,
#       "tracks": [{"title": "...", "file_path": "...", "duration": 182}, ...]
#     }
#   }


def _parse_playlist(playlist_id: str, payload: Dict) -> Playlist:
    tracks: List[PlaylistTrack] = []
    for item in payload.get("tracks") or []:
        if not isinstance(item, dict):
            continue
        tracks.append(
            PlaylistTrack(
                title=item.get("title") or "Untitled",
                local_asset_path=item.get("file_path"),
                duration_seconds=item.get("duration"),
            )
        )
    return Playlist(
        id=playlist_id,
        name=payload.get("name") or playlist_id,
        card_id=payload.get("yoto_card_id"),
        tracks=tracks,
    )


def _serialize_playlist(playlist: Playlist) -> Dict:
    return {
        "name": playlist.name,
        "yoto_card_id": playlist.card_id,
        "tracks": [
            {
                "title": t.title,
                "file_path": t.local_asset_path,
                "duration": t.duration_seconds,
            }
            for t in playlist.tracks
        ],
    }


class PlaylistRepository:
    """
    Read side of the playlist storage used by the publisher.

    Only what publishing needs lives here: ordered tracks, the stored Yoto
    card id, and a file presence check (injectable for tests).
    """

    def __init__(
        self,
        path: str = PLAYLISTS_FILE,
        file_exists: Callable[[str], bool] = os.path.isfile,
    ) -> None:
        self._path = path
        self._file_exists = file_exists
        self._lock = threading.Lock()

    def _load_all(self) -> Dict[str, Dict]:
        def _on_error(e: Exception) -> None:
            log_warning("Playlists file is corrupted; ignoring it.")

        data = read_json(self._path, default={}, on_error=_on_error)
        if not isinstance(data, dict):
            log_warning("Playlists file has invalid structure; using empty dict.")
            return {}
        return data

    def get_playlist(self, playlist_id: str) -> Optional[Playlist]:
        payload = self._load_all().get(playlist_id)
        if not isinstance(payload, dict):
            return None
        return _parse_playlist(playlist_id, payload)

    def get_tracks(self, playlist_id: str) -> List[PlaylistTrack]:
        playlist = self.get_playlist(playlist_id)
        return playlist.tracks if playlist else []

    def save_playlist(self, playlist: Playlist) -> None:
        with self._lock:
            data = self._load_all()
            data[playlist.id] = _serialize_playlist(playlist)
            write_json(self._path, data)

    def set_card_id(self, playlist_id: str, card_id: Optional[str]) -> None:
        with self._lock:
            data = self._load_all()
            payload = data.get(playlist_id)
            if not isinstance(payload, dict):
                raise KeyError(playlist_id)
            payload["yoto_card_id"] = card_id
            write_json(self._path, data)

    def asset_present(self, track: PlaylistTrack) -> bool:
        return bool(track.local_asset_path) and self._file_exists(track.local_asset_path)
