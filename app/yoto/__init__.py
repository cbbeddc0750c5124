"""Public façade for the app.yoto package.

This module exposes the Yoto integration: credential storage, device-code
login, the transcoding uploader and the card content endpoints. Callers
should import these symbols from this façade instead of the internal
modules.
"""

from .auth import (
    DeviceAuthFlow,
    DeviceAuthState,
    DeviceSession,
    PollResult,
    PollStatus,
    decode_user_id,
    ensure_fresh_credentials,
    refresh_credentials,
    token_expired,
)
from .content import (
    ManifestTrack,
    PublishManifest,
    extract_card_id,
    get_card,
    list_cards,
    submit_manifest,
)
from .credentials import CredentialStore, yoto_headers
from .errors import (
    AllUploadsFailed,
    AuthDenied,
    AuthRequestFailed,
    CodeExpired,
    ManifestSubmitFailed,
    MissingLocalAsset,
    NotAuthenticated,
    PlaylistEmpty,
    PlaylistNotFound,
    PublishInProgress,
    RemoteRequestFailed,
    TranscodeTimeout,
    TransferFailed,
    UploadError,
    UploadRequestFailed,
    YotoError,
)
from .polling import DEVICE_LOGIN_POLICY, TRANSCODE_POLICY, PollPolicy
from .transcode import (
    SlotKind,
    TranscodeStatus,
    TranscodeUploader,
    UploadResult,
    UploadSlot,
)

__all__ = [
    "CredentialStore",
    "yoto_headers",
    "DeviceAuthFlow",
    "DeviceAuthState",
    "DeviceSession",
    "PollResult",
    "PollStatus",
    "decode_user_id",
    "token_expired",
    "refresh_credentials",
    "ensure_fresh_credentials",
    "PollPolicy",
    "DEVICE_LOGIN_POLICY",
    "TRANSCODE_POLICY",
    "TranscodeUploader",
    "UploadResult",
    "UploadSlot",
    "SlotKind",
    "TranscodeStatus",
    "ManifestTrack",
    "PublishManifest",
    "submit_manifest",
    "extract_card_id",
    "list_cards",
    "get_card",
    "YotoError",
    "AuthRequestFailed",
    "CodeExpired",
    "AuthDenied",
    "NotAuthenticated",
    "RemoteRequestFailed",
    "UploadError",
    "UploadRequestFailed",
    "TransferFailed",
    "TranscodeTimeout",
    "PlaylistNotFound",
    "PlaylistEmpty",
    "MissingLocalAsset",
    "PublishInProgress",
    "AllUploadsFailed",
    "ManifestSubmitFailed",
]
