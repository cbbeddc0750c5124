import base64
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from app.core import Credentials, Playlist, PlaylistTrack
from app.data import PlaylistRepository
from app.yoto import CredentialStore, PollPolicy, TranscodeUploader


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        json_data: Any = None,
        text: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self._json = json_data
        self.text = text if text is not None else json.dumps(json_data or {})

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class FakeSession:
    """
    requests.Session stand-in.

    Routes are (method, url fragment) -> list of responses served in order;
    the last response repeats once the list is exhausted.
    """

    def __init__(self) -> None:
        self.headers: Dict[str, str] = {}
        self.calls: List[Dict[str, Any]] = []
        self.closed = False
        self._routes: List[Dict[str, Any]] = []

    def add(self, method: str, url_part: str, *responses: FakeResponse) -> None:
        self._routes.append(
            {"method": method.upper(), "url_part": url_part, "responses": list(responses)}
        )

    def request(self, method: str, url: str, **kwargs) -> FakeResponse:
        self.calls.append({"method": method.upper(), "url": url, **kwargs})
        for route in self._routes:
            if route["method"] == method.upper() and route["url_part"] in url:
                responses = route["responses"]
                if len(responses) > 1:
                    return responses.pop(0)
                return responses[0]
        raise AssertionError(f"Unexpected request: {method} {url}")

    def get(self, url: str, **kwargs) -> FakeResponse:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs) -> FakeResponse:
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs) -> FakeResponse:
        return self.request("PUT", url, **kwargs)

    def close(self) -> None:
        self.closed = True

    def calls_to(self, method: str, url_part: str) -> List[Dict[str, Any]]:
        return [
            c for c in self.calls if c["method"] == method.upper() and url_part in c["url"]
        ]


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_jwt(claims: Dict[str, Any]) -> str:
    def _b64(data: bytes) -> str:
        return base64.urlsafe_b64encode(data).decode().rstrip("=")

    header = _b64(json.dumps({"alg": "none"}).encode())
    body = _b64(json.dumps(claims).encode())
    return f"{header}.{body}.signature"


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def credential_store(tmp_path: Path, fake_session: FakeSession) -> CredentialStore:
    return CredentialStore(
        path=str(tmp_path / "credentials.json"),
        session_factory=lambda: fake_session,
    )


@pytest.fixture
def logged_in_store(credential_store: CredentialStore) -> CredentialStore:
    credential_store.save(
        Credentials(
            access_token=make_jwt({"sub": "user-123", "exp": 4_102_444_800}),
            refresh_token="refresh-abc",
            user_id="user-123",
        )
    )
    return credential_store


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def uploader(logged_in_store: CredentialStore, sleeps: List[float]) -> TranscodeUploader:
    return TranscodeUploader(
        logged_in_store,
        policy=PollPolicy(interval_seconds=2, max_attempts=30),
        sleep=sleeps.append,
    )


@pytest.fixture
def playlist_repo(tmp_path: Path) -> PlaylistRepository:
    return PlaylistRepository(path=str(tmp_path / "playlists.json"))


def write_audio(directory: Path, name: str, content: bytes) -> str:
    path = directory / name
    path.write_bytes(content)
    return str(path)


@pytest.fixture
def three_track_playlist(tmp_path: Path, playlist_repo: PlaylistRepository) -> Playlist:
    audio_dir = tmp_path / "audio"
    audio_dir.mkdir()
    playlist = Playlist(
        id="pl-1",
        name="Bedtime",
        tracks=[
            PlaylistTrack("Song One", write_audio(audio_dir, "one.mp3", b"one"), 101),
            PlaylistTrack("Song Two", write_audio(audio_dir, "two.mp3", b"two"), 102),
            PlaylistTrack("Song Three", write_audio(audio_dir, "three.mp3", b"three"), 103),
        ],
    )
    playlist_repo.save_playlist(playlist)
    return playlist
