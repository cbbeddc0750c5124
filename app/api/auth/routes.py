from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from app.core import Credentials, log_step
from app.state import AppState, get_state
from app.yoto import (
    AuthDenied,
    AuthRequestFailed,
    CodeExpired,
    NotAuthenticated,
    PollStatus,
    decode_user_id,
    refresh_credentials,
)

from ..errors import to_http_exception
from .schemas import (
    AuthStatusResponse,
    DeviceCodeResponse,
    PollRequest,
    PollResponse,
    SaveCredentialsRequest,
)

router = APIRouter()


@router.get("/status", response_model=AuthStatusResponse, response_model_by_alias=True)
def auth_status(state: AppState = Depends(get_state)) -> AuthStatusResponse:
    """
    Whether Yoto credentials are stored.
    """
    credentials = state.credentials.get()
    has_token = credentials is not None
    has_user_id = bool(credentials and credentials.user_id)
    return AuthStatusResponse(
        configured=has_token and has_user_id,
        has_token=has_token,
        has_user_id=has_user_id,
    )


@router.post("")
def save_credentials(
    body: SaveCredentialsRequest, state: AppState = Depends(get_state)
) -> dict:
    """
    Store a token pair obtained elsewhere. Both tokens are required; the user
    id is decoded from the access token when not given.
    """
    if not body.token or not body.refresh_token:
        raise HTTPException(
            status_code=400, detail="Both token and refreshToken are required"
        )

    state.credentials.save(
        Credentials(
            access_token=body.token,
            refresh_token=body.refresh_token,
            user_id=body.user_id or decode_user_id(body.token),
        )
    )
    return {"success": True, "message": "Yoto credentials saved"}


@router.delete("")
def logout(state: AppState = Depends(get_state)) -> dict:
    state.device_auth.cancel()
    state.credentials.clear()
    return {"success": True, "message": "Yoto credentials cleared"}


@router.post("/refresh")
def refresh(state: AppState = Depends(get_state)) -> dict:
    try:
        credentials = refresh_credentials(state.credentials)
    except NotAuthenticated as e:
        raise to_http_exception(e)
    return {"success": True, "userId": credentials.user_id}


@router.post("/device-code", response_model=DeviceCodeResponse, response_model_by_alias=True)
def start_device_login(state: AppState = Depends(get_state)) -> DeviceCodeResponse:
    """
    Start a device login. Any previous login attempt is discarded.
    """
    try:
        session = state.device_auth.request_code()
    except AuthRequestFailed as e:
        raise to_http_exception(e)

    return DeviceCodeResponse(
        device_code=session.device_code,
        user_code=session.user_code,
        verification_uri=session.verification_uri,
        verification_uri_complete=session.verification_uri_complete,
        expires_in=session.expires_in_seconds,
        interval=session.poll_interval_seconds,
    )


@router.post("/poll", response_model=PollResponse, response_model_exclude_none=True)
def poll_device_login(body: PollRequest, state: AppState = Depends(get_state)):
    """
    One authorization check. The frontend calls this again after `interval`
    seconds while the status is "pending".
    """
    log_step("Polling Yoto device login...")
    try:
        result = state.device_auth.poll(body.device_code)
    except CodeExpired as e:
        return JSONResponse(
            status_code=400,
            content={"status": "expired", "error": str(e), "details": e.description or str(e)},
        )
    except (AuthDenied, AuthRequestFailed) as e:
        return JSONResponse(
            status_code=400,
            content={"status": "error", "error": str(e), "details": e.description or str(e)},
        )

    if result.status is PollStatus.APPROVED:
        return PollResponse(status="success")
    return PollResponse(status="pending", interval=result.interval_seconds)


@router.delete("/device")
def cancel_device_login(state: AppState = Depends(get_state)) -> dict:
    state.device_auth.cancel()
    return {"success": True}
