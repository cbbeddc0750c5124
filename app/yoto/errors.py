"""Error types for the Yoto integration and the publish pipeline.

Every error keeps the remote-supplied human readable text (if any) in
`description` so callers can show it verbatim.
"""

from typing import Dict, List, Optional


class YotoError(Exception):
    def __init__(self, message: str, description: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.description = description

    def __str__(self) -> str:
        return self.message


# ---------- Auth ----------


class AuthRequestFailed(YotoError):
    """Device-code / token endpoint unreachable or answered non-2xx."""


class CodeExpired(YotoError):
    """The device code expired (or its login session was discarded)."""


class AuthDenied(YotoError):
    """The user denied the login, or the grant was rejected as invalid."""


class NotAuthenticated(YotoError):
    """No usable credentials, or the remote rejected the current token."""


# ---------- Remote API ----------


class RemoteRequestFailed(YotoError):
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        description: Optional[str] = None,
    ) -> None:
        super().__init__(message, description)
        self.status_code = status_code


# ---------- Per-track upload ----------


class UploadError(YotoError):
    """Failure of one file's upload pipeline; siblings keep going."""


class UploadRequestFailed(UploadError):
    pass


class TransferFailed(UploadError):
    pass


class TranscodeTimeout(UploadError):
    pass


# ---------- Publish ----------


class PlaylistNotFound(YotoError):
    pass


class PlaylistEmpty(YotoError):
    pass


class MissingLocalAsset(YotoError):
    def __init__(self, missing: List[str]) -> None:
        super().__init__("Some songs not downloaded")
        self.missing = missing


class PublishInProgress(YotoError):
    pass


class AllUploadsFailed(YotoError):
    def __init__(self, errors: List[Dict[str, str]]) -> None:
        super().__init__("All uploads failed")
        self.errors = errors


class ManifestSubmitFailed(RemoteRequestFailed):
    pass
