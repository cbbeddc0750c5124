"""Card manifests and the Yoto content endpoints.

A card is submitted with POST /content; including `cardId` turns the call
into an update of that card instead of creating a new one.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from app.config import DEFAULT_COVER_URL, DEFAULT_TRACK_FORMAT, REQUEST_TIMEOUT_SECONDS, YOTO_API_BASE
from app.core import log_debug

from .credentials import CredentialStore, raise_for_auth
from .errors import ManifestSubmitFailed, RemoteRequestFailed


@dataclass
class ManifestTrack:
    """One uploaded track; `track_number` is its 1-based position in the source playlist."""

    title: str
    track_number: int
    asset_key: str
    duration_seconds: int = 0
    format: str = DEFAULT_TRACK_FORMAT


@dataclass
class PublishManifest:
    title: str
    tracks: List[ManifestTrack] = field(default_factory=list)
    card_id: Optional[str] = None
    user_id: Optional[str] = None
    cover_url: str = DEFAULT_COVER_URL

    @property
    def is_update(self) -> bool:
        return bool(self.card_id)

    def to_payload(self) -> Dict[str, Any]:
        chapters = [
            {
                "key": f"{index:02d}",
                "title": track.title,
                "tracks": [
                    {
                        "key": "01",
                        "title": track.title,
                        "format": track.format,
                        "trackUrl": f"yoto:#{track.asset_key}",
                        "type": "audio",
                        "duration": track.duration_seconds or 0,
                    }
                ],
            }
            for index, track in enumerate(self.tracks)
        ]

        payload: Dict[str, Any] = {
            "title": self.title,
            "content": {
                "activity": "yoto_Player",
                "chapters": chapters,
                "config": {"onlineOnly": False},
                "version": "1",
            },
            "metadata": {"cover": {"imageL": self.cover_url}},
            "userId": self.user_id,
        }
        if self.card_id:
            payload["cardId"] = self.card_id
        return payload


def extract_card_id(card_data: Any) -> Optional[str]:
    if not isinstance(card_data, dict):
        return None
    card = card_data.get("card")
    if isinstance(card, dict) and card.get("cardId"):
        return card["cardId"]
    return card_data.get("cardId")


def submit_manifest(store: CredentialStore, manifest: PublishManifest) -> Dict[str, Any]:
    """Create or update the card. Returns the decoded response body."""
    session = store.session()
    payload = manifest.to_payload()
    log_debug(f"Submitting manifest: {str(payload)[:300]}")

    try:
        r = session.post(
            f"{YOTO_API_BASE}/content", json=payload, timeout=REQUEST_TIMEOUT_SECONDS
        )
    except requests.RequestException as exc:
        raise ManifestSubmitFailed(
            f"Failed to create card: {exc}", description=str(exc)
        ) from exc

    raise_for_auth(r)
    if not r.ok:
        raise ManifestSubmitFailed(
            f"Failed to create card: {r.status_code} - {r.text}",
            status_code=r.status_code,
            description=r.text,
        )

    try:
        return r.json()
    except ValueError:
        return {}


def _get_json(store: CredentialStore, path: str, what: str) -> Any:
    session = store.session()
    try:
        r = session.get(f"{YOTO_API_BASE}{path}", timeout=REQUEST_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        raise RemoteRequestFailed(f"Failed to fetch {what}", description=str(exc)) from exc

    raise_for_auth(r)
    if not r.ok:
        raise RemoteRequestFailed(
            f"Yoto API error: {r.status_code}",
            status_code=r.status_code,
            description=r.text,
        )
    return r.json()


def list_cards(store: CredentialStore) -> Any:
    """Cards owned by the logged-in account."""
    return _get_json(store, "/card/mine", "Yoto cards")


def get_card(store: CredentialStore, card_id: str) -> Any:
    return _get_json(store, f"/content/{card_id}", "Yoto card")
