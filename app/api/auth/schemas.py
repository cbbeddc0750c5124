"""Pydantic schemas for the Yoto auth API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AuthStatusResponse(_CamelModel):
    configured: bool
    has_token: bool = Field(alias="hasToken")
    has_user_id: bool = Field(alias="hasUserId")


class SaveCredentialsRequest(_CamelModel):
    token: Optional[str] = None
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")
    user_id: Optional[str] = Field(default=None, alias="userId")


class DeviceCodeResponse(_CamelModel):
    device_code: str = Field(alias="deviceCode")
    user_code: str = Field(alias="userCode")
    verification_uri: str = Field(alias="verificationUri")
    verification_uri_complete: str = Field(alias="verificationUriComplete")
    expires_in: int = Field(alias="expiresIn")
    interval: float


class PollRequest(_CamelModel):
    device_code: str = Field(alias="deviceCode")


class PollResponse(_CamelModel):
    status: str
    interval: Optional[float] = None
