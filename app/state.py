"""Process-wide state shared by the API routes and the CLI."""

from typing import Optional

from app.data import PlaylistRepository
from app.pipeline import PlaylistRunLocks, PublishOrchestrator
from app.yoto import CredentialStore, DeviceAuthFlow, TranscodeUploader


class AppState:
    def __init__(
        self,
        credentials: Optional[CredentialStore] = None,
        playlists: Optional[PlaylistRepository] = None,
        device_auth: Optional[DeviceAuthFlow] = None,
        uploader: Optional[TranscodeUploader] = None,
    ) -> None:
        self.credentials = credentials or CredentialStore()
        self.playlists = playlists or PlaylistRepository()
        self.device_auth = device_auth or DeviceAuthFlow(self.credentials)
        self.uploader = uploader or TranscodeUploader(self.credentials)
        self.run_locks = PlaylistRunLocks()

    def orchestrator(self) -> PublishOrchestrator:
        return PublishOrchestrator(
            credentials=self.credentials,
            playlists=self.playlists,
            uploader=self.uploader,
            run_locks=self.run_locks,
        )


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = AppState()
    return _state


def reset_state(state: Optional[AppState] = None) -> AppState:
    """Swap the process state (tests, or after changing data paths)."""
    global _state
    _state = state or AppState()
    return _state
