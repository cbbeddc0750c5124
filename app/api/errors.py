from fastapi import HTTPException

from app.yoto import (
    AllUploadsFailed,
    AuthRequestFailed,
    MissingLocalAsset,
    NotAuthenticated,
    PlaylistEmpty,
    PlaylistNotFound,
    PublishInProgress,
    RemoteRequestFailed,
    YotoError,
)


def to_http_exception(exc: YotoError) -> HTTPException:
    """Map a Yoto / publish error to the HTTP status the frontend expects."""
    detail = {"error": str(exc)}
    if exc.description:
        detail["details"] = exc.description

    if isinstance(exc, NotAuthenticated):
        return HTTPException(status_code=401, detail=detail)
    if isinstance(exc, PlaylistNotFound):
        return HTTPException(status_code=404, detail=detail)
    if isinstance(exc, MissingLocalAsset):
        detail["missing"] = exc.missing
        return HTTPException(status_code=400, detail=detail)
    if isinstance(exc, PlaylistEmpty):
        return HTTPException(status_code=400, detail=detail)
    if isinstance(exc, PublishInProgress):
        return HTTPException(status_code=409, detail=detail)
    if isinstance(exc, AllUploadsFailed):
        detail["errors"] = exc.errors
        return HTTPException(status_code=500, detail=detail)
    if isinstance(exc, (AuthRequestFailed, RemoteRequestFailed)):
        return HTTPException(status_code=502, detail=detail)
    return HTTPException(status_code=500, detail=detail)
