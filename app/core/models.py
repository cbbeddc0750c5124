from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Credentials:
    """
    Long-lived Yoto credentials.

    - access_token  : bearer token for api.yotoplay.com
    - refresh_token : used to mint a new access token
    - user_id       : `sub` claim of the access token, None if it could not be decoded
    """

    access_token: str
    refresh_token: str
    user_id: Optional[str] = None


@dataclass
class PlaylistTrack:
    title: str
    local_asset_path: Optional[str]
    duration_seconds: Optional[int] = None


@dataclass
class Playlist:
    """A locally stored playlist, tracks in their persisted order."""

    id: str
    name: str
    card_id: Optional[str] = None
    tracks: List[PlaylistTrack] = field(default_factory=list)
