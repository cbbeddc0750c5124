from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.pipeline import TrackError


class UploadTrackRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    playlist_id: str = Field(alias="playlistId")
    # 1-based position of the track in the playlist
    position: int


class UploadTrackResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    asset_key: str = Field(alias="assetKey")
    deduplicated: bool


class PublishResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    card_id: Optional[str] = Field(default=None, alias="cardId")
    uploaded_tracks: int = Field(alias="uploadedTracks")
    errors: Optional[List[TrackError]] = None
