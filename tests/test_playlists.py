import json
from pathlib import Path

import pytest

from app.core import Playlist, PlaylistTrack
from app.data import PlaylistRepository


def test_tracks_keep_their_order(playlist_repo: PlaylistRepository, three_track_playlist: Playlist) -> None:
    tracks = playlist_repo.get_tracks("pl-1")

    assert [t.title for t in tracks] == ["Song One", "Song Two", "Song Three"]
    assert [t.duration_seconds for t in tracks] == [101, 102, 103]
    assert playlist_repo.get_playlist("pl-1").card_id is None


def test_unknown_playlist(playlist_repo: PlaylistRepository) -> None:
    assert playlist_repo.get_playlist("nope") is None
    assert playlist_repo.get_tracks("nope") == []


def test_set_card_id_persists(tmp_path: Path, three_track_playlist: Playlist) -> None:
    path = tmp_path / "playlists.json"
    PlaylistRepository(path=str(path)).set_card_id("pl-1", "card-1")

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk["pl-1"]["yoto_card_id"] == "card-1"
    assert PlaylistRepository(path=str(path)).get_playlist("pl-1").card_id == "card-1"


def test_set_card_id_on_unknown_playlist(playlist_repo: PlaylistRepository) -> None:
    with pytest.raises(KeyError):
        playlist_repo.set_card_id("nope", "card-1")


def test_asset_presence_uses_injected_check(tmp_path: Path) -> None:
    repo = PlaylistRepository(path=str(tmp_path / "p.json"), file_exists=lambda p: p == "/a.mp3")

    assert repo.asset_present(PlaylistTrack("A", "/a.mp3"))
    assert not repo.asset_present(PlaylistTrack("B", "/b.mp3"))
    assert not repo.asset_present(PlaylistTrack("C", None))


def test_corrupted_file_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "playlists.json"
    path.write_text("{not json", encoding="utf-8")

    assert PlaylistRepository(path=str(path)).get_playlist("pl-1") is None
