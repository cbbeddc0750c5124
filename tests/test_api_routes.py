import json
import os
from typing import Iterator, List

import pytest
from fastapi.testclient import TestClient

from api_main import app
from app.core import Playlist
from app.data import PlaylistRepository
from app.state import AppState, get_state
from app.yoto import CredentialStore, DeviceAuthFlow, TranscodeUploader

from conftest import FakeClock, FakeResponse, FakeSession, make_jwt


@pytest.fixture
def auth_http() -> FakeSession:
    return FakeSession()


def _client(state: AppState) -> Iterator[TestClient]:
    app.dependency_overrides[get_state] = lambda: state
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(
    logged_in_store: CredentialStore,
    playlist_repo: PlaylistRepository,
    uploader: TranscodeUploader,
    auth_http: FakeSession,
) -> Iterator[TestClient]:
    state = AppState(
        credentials=logged_in_store,
        playlists=playlist_repo,
        device_auth=DeviceAuthFlow(logged_in_store, http=auth_http, clock=FakeClock()),
        uploader=uploader,
    )
    yield from _client(state)


@pytest.fixture
def anonymous_client(
    credential_store: CredentialStore, playlist_repo: PlaylistRepository, auth_http: FakeSession
) -> Iterator[TestClient]:
    state = AppState(
        credentials=credential_store,
        playlists=playlist_repo,
        device_auth=DeviceAuthFlow(credential_store, http=auth_http, clock=FakeClock()),
    )
    yield from _client(state)


def _sse_events(body: str) -> List[dict]:
    return [
        json.loads(line[len("data: "):])
        for line in body.splitlines()
        if line.startswith("data: ")
    ]


def _serve_uploads(session: FakeSession, count: int) -> None:
    session.add(
        "GET",
        "/media/transcode/audio/uploadUrl",
        *[FakeResponse(200, {"upload": {"uploadId": f"up-{n}"}}) for n in range(1, count + 1)],
    )
    for n in range(1, count + 1):
        session.add(
            "GET",
            f"/media/upload/up-{n}/",
            FakeResponse(200, {"transcode": {"transcodedSha256": f"asset-{n}", "transcodedAt": "now"}}),
        )


# ---------- Health / auth ----------


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_auth_status(client: TestClient) -> None:
    assert client.get("/api/yoto/auth/status").json() == {
        "configured": True,
        "hasToken": True,
        "hasUserId": True,
    }


def test_auth_status_logged_out(anonymous_client: TestClient) -> None:
    assert anonymous_client.get("/api/yoto/auth/status").json() == {
        "configured": False,
        "hasToken": False,
        "hasUserId": False,
    }


def test_save_credentials_requires_both_tokens(anonymous_client: TestClient) -> None:
    response = anonymous_client.post("/api/yoto/auth", json={"token": "abc"})

    assert response.status_code == 400


def test_save_credentials_decodes_user_id(
    anonymous_client: TestClient, credential_store: CredentialStore
) -> None:
    token = make_jwt({"sub": "user-77"})

    response = anonymous_client.post(
        "/api/yoto/auth", json={"token": token, "refreshToken": "refresh-1"}
    )

    assert response.status_code == 200
    assert credential_store.get().user_id == "user-77"


def test_logout_clears_credentials(client: TestClient, logged_in_store: CredentialStore) -> None:
    response = client.delete("/api/yoto/auth")

    assert response.status_code == 200
    assert logged_in_store.get() is None


def test_device_login_round_trip(
    anonymous_client: TestClient, auth_http: FakeSession, credential_store: CredentialStore
) -> None:
    auth_http.add(
        "POST",
        "/oauth/device/code",
        FakeResponse(
            200,
            {
                "device_code": "dev-1",
                "user_code": "ABCD-EFGH",
                "verification_uri": "https://login.yotoplay.com/activate",
                "expires_in": 300,
                "interval": 5,
            },
        ),
    )
    auth_http.add(
        "POST",
        "/oauth/token",
        FakeResponse(403, {"error": "authorization_pending"}),
        FakeResponse(
            200, {"access_token": make_jwt({"sub": "user-5"}), "refresh_token": "refresh-5"}
        ),
    )

    code = anonymous_client.post("/api/yoto/auth/device-code").json()
    assert code["deviceCode"] == "dev-1"
    assert code["userCode"] == "ABCD-EFGH"
    assert code["verificationUriComplete"] == "https://login.yotoplay.com/activate"
    assert code["expiresIn"] == 300

    pending = anonymous_client.post("/api/yoto/auth/poll", json={"deviceCode": "dev-1"})
    assert pending.json() == {"status": "pending", "interval": 5.0}

    approved = anonymous_client.post("/api/yoto/auth/poll", json={"deviceCode": "dev-1"})
    assert approved.json() == {"status": "success"}
    assert credential_store.get().user_id == "user-5"


def test_poll_unknown_code_is_expired(anonymous_client: TestClient, auth_http: FakeSession) -> None:
    response = anonymous_client.post("/api/yoto/auth/poll", json={"deviceCode": "nope"})

    assert response.status_code == 400
    assert response.json()["status"] == "expired"
    assert auth_http.calls == []


# ---------- Cards ----------


def test_cards_proxy(client: TestClient, fake_session: FakeSession) -> None:
    fake_session.add("GET", "/card/mine", FakeResponse(200, {"cards": [{"cardId": "c1"}]}))

    response = client.get("/api/yoto/cards")

    assert response.status_code == 200
    assert response.json() == {"cards": [{"cardId": "c1"}]}


def test_cards_require_login(anonymous_client: TestClient) -> None:
    response = anonymous_client.get("/api/yoto/cards")

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "Yoto credentials not configured"


# ---------- Publish ----------


def test_stream_publish_emits_sse_events(
    client: TestClient,
    fake_session: FakeSession,
    three_track_playlist: Playlist,
) -> None:
    _serve_uploads(fake_session, 3)
    fake_session.add("POST", "/content", FakeResponse(200, {"card": {"cardId": "card-new"}}))

    response = client.get("/api/yoto/upload-playlist/pl-1/stream")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = _sse_events(response.text)
    assert events[0] == {"type": "start", "current": 1, "total": 3, "title": "Song One"}
    assert events[-1] == {
        "type": "done",
        "uploadedTracks": 3,
        "cardId": "card-new",
        "final": True,
    }
    assert [e["type"] for e in events].count("complete") == 3


def test_stream_publish_reports_missing_songs(
    client: TestClient,
    fake_session: FakeSession,
    three_track_playlist: Playlist,
) -> None:
    os.remove(three_track_playlist.tracks[2].local_asset_path)

    events = _sse_events(client.get("/api/yoto/upload-playlist/pl-1/stream").text)

    assert events == [
        {
            "type": "error",
            "error": "Some songs not downloaded",
            "missing": ["Song Three"],
            "final": True,
        }
    ]
    assert fake_session.calls == []


def test_publish_without_stream(
    client: TestClient,
    fake_session: FakeSession,
    three_track_playlist: Playlist,
) -> None:
    _serve_uploads(fake_session, 3)
    fake_session.add("POST", "/content", FakeResponse(200, {"cardId": "card-new"}))

    response = client.post("/api/yoto/upload-playlist/pl-1")

    assert response.status_code == 200
    assert response.json() == {"success": True, "cardId": "card-new", "uploadedTracks": 3}


def test_publish_unknown_playlist_is_404(client: TestClient) -> None:
    response = client.post("/api/yoto/upload-playlist/missing")

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "Playlist not found"


def test_upload_single_track(
    client: TestClient,
    fake_session: FakeSession,
    three_track_playlist: Playlist,
) -> None:
    _serve_uploads(fake_session, 1)

    response = client.post(
        "/api/yoto/upload-track", json={"playlistId": "pl-1", "position": 1}
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "assetKey": "asset-1", "deduplicated": True}
    assert fake_session.calls_to("POST", "/content") == []


def test_upload_track_out_of_range(client: TestClient, three_track_playlist: Playlist) -> None:
    response = client.post(
        "/api/yoto/upload-track", json={"playlistId": "pl-1", "position": 4}
    )

    assert response.status_code == 404
