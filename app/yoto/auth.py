"""Yoto device-code login.

Flow (OAuth 2.0 device authorization grant):

  request_code()  -> user opens verification_uri and types user_code
  poll(code)      -> pending / slow_down (keep polling) | approved | denied / expired

At most one DeviceSession exists: request_code() replaces the previous one,
cancel() drops it, and any terminal poll outcome discards it. Sessions are
never persisted. Expiry is enforced locally from the clock, before any
request goes out.
"""

import base64
import json
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import requests

from app.config import (
    DEVICE_CODE_DEFAULT_EXPIRES_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
    YOTO_AUDIENCE,
    YOTO_CLIENT_ID,
    YOTO_DEVICE_CODE_URL,
    YOTO_SCOPE,
    YOTO_TOKEN_URL,
)
from app.core import Credentials, log_info, log_step, log_success, log_warning

from .credentials import CredentialStore
from .errors import AuthDenied, AuthRequestFailed, CodeExpired, NotAuthenticated
from .polling import DEVICE_LOGIN_POLICY, PollPolicy

DEVICE_CODE_GRANT = "urn:ietf:params:oauth:grant-type:device_code"


class DeviceAuthState(str, Enum):
    IDLE = "idle"
    CODE_REQUESTED = "code_requested"
    POLLING = "polling"
    APPROVED = "approved"
    DENIED = "denied"
    EXPIRED = "expired"
    ERROR = "error"


class PollStatus(str, Enum):
    PENDING = "pending"
    SLOW_DOWN = "slow_down"
    APPROVED = "approved"


@dataclass
class DeviceSession:
    device_code: str
    user_code: str
    verification_uri: str
    verification_uri_complete: str
    created_at: float
    expires_in_seconds: int
    poll_interval_ms: int

    @property
    def expires_at(self) -> float:
        return self.created_at + self.expires_in_seconds

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class PollResult:
    status: PollStatus
    interval_seconds: float


# ---------- Token helpers ----------


def decode_token_claims(token: str) -> Optional[dict]:
    """
    Decode the claims segment of a JWT without verifying it.

    Returns None when the token is not a decodable JWT.
    """
    try:
        segment = token.split(".")[1]
        padded = segment + "=" * (-len(segment) % 4)
        claims = json.loads(base64.urlsafe_b64decode(padded))
    except (IndexError, ValueError, UnicodeDecodeError, AttributeError):
        return None
    return claims if isinstance(claims, dict) else None


def decode_user_id(token: str) -> Optional[str]:
    claims = decode_token_claims(token)
    if not claims:
        log_warning("Could not decode the access token; user id left unset.")
        return None
    return claims.get("sub")


def token_expired(token: str, now: Optional[float] = None, leeway: int = 30) -> bool:
    """True when the token's `exp` claim is (nearly) past. Opaque tokens never expire here."""
    claims = decode_token_claims(token)
    if not claims or "exp" not in claims:
        return False
    now = time.time() if now is None else now
    try:
        return float(claims["exp"]) < now + leeway
    except (TypeError, ValueError):
        return False


def _credentials_from_token_response(
    payload: dict, fallback_refresh_token: Optional[str] = None
) -> Credentials:
    if not isinstance(payload, dict):
        raise AuthRequestFailed("Token response is not a JSON object.")
    access_token = payload.get("access_token")
    refresh_token = payload.get("refresh_token") or fallback_refresh_token
    if not access_token or not refresh_token:
        raise AuthRequestFailed(
            "Token response did not include both an access and a refresh token."
        )
    return Credentials(
        access_token=access_token,
        refresh_token=refresh_token,
        user_id=decode_user_id(access_token),
    )


def refresh_credentials(store: CredentialStore, http=requests) -> Credentials:
    """
    Exchange the stored refresh token for a new pair and persist it.

    Any failure means the account has to log in again (NotAuthenticated).
    """
    current = store.require()
    log_step("Refreshing Yoto access token...")
    try:
        r = http.post(
            YOTO_TOKEN_URL,
            data={
                "grant_type": "refresh_token",
                "client_id": YOTO_CLIENT_ID,
                "refresh_token": current.refresh_token,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise NotAuthenticated("Token refresh failed.", description=str(exc)) from exc

    if not r.ok:
        raise NotAuthenticated(
            f"Token refresh failed: {r.status_code}", description=r.text
        )

    try:
        credentials = _credentials_from_token_response(
            r.json(), fallback_refresh_token=current.refresh_token
        )
    except (ValueError, AuthRequestFailed) as exc:
        raise NotAuthenticated("Token refresh returned an unusable response.") from exc

    store.save(credentials)
    log_success("Yoto access token refreshed.")
    return credentials


def ensure_fresh_credentials(store: CredentialStore, http=requests) -> Credentials:
    """Stored credentials, refreshed once first if the access token has expired."""
    credentials = store.require()
    if token_expired(credentials.access_token):
        return refresh_credentials(store, http=http)
    return credentials


# ---------- Device flow ----------


class DeviceAuthFlow:
    def __init__(
        self,
        store: CredentialStore,
        http=requests,
        clock: Callable[[], float] = time.time,
        sleep: Optional[Callable[[float], None]] = None,
        policy: PollPolicy = DEVICE_LOGIN_POLICY,
    ) -> None:
        self._store = store
        self._http = http
        self._clock = clock
        self._sleep = sleep
        self._policy = policy
        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._session: Optional[DeviceSession] = None
        self._state = DeviceAuthState.IDLE

    @property
    def state(self) -> DeviceAuthState:
        return self._state

    @property
    def session(self) -> Optional[DeviceSession]:
        return self._session

    def request_code(self) -> DeviceSession:
        """Ask the authorization server for a new device/user code pair."""
        log_step("Requesting Yoto device code...")
        try:
            r = self._http.post(
                YOTO_DEVICE_CODE_URL,
                data={
                    "client_id": YOTO_CLIENT_ID,
                    "scope": YOTO_SCOPE,
                    "audience": YOTO_AUDIENCE,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            raise AuthRequestFailed(
                "Failed to start device login", description=str(exc)
            ) from exc

        if not r.ok:
            raise AuthRequestFailed(
                f"Device authorization failed: {r.status_code}", description=r.text
            )

        try:
            data = r.json()
        except ValueError as exc:
            raise AuthRequestFailed(
                "Device authorization returned invalid JSON", description=r.text
            ) from exc

        if not isinstance(data, dict):
            raise AuthRequestFailed(
                "Device authorization response is not a JSON object", description=r.text
            )
        if not data.get("device_code") or not data.get("user_code"):
            raise AuthRequestFailed(
                "Device authorization response is missing the device code",
                description=r.text,
            )

        interval = data.get("interval") or self._policy.interval_seconds
        session = DeviceSession(
            device_code=data["device_code"],
            user_code=data["user_code"],
            verification_uri=data.get("verification_uri", ""),
            verification_uri_complete=data.get("verification_uri_complete")
            or data.get("verification_uri", ""),
            created_at=self._clock(),
            expires_in_seconds=int(
                data.get("expires_in") or DEVICE_CODE_DEFAULT_EXPIRES_SECONDS
            ),
            poll_interval_ms=int(float(interval) * 1000),
        )

        with self._lock:
            # Replacing the session wakes and stops any loop polling the old one.
            self._session = session
            self._state = DeviceAuthState.CODE_REQUESTED
            self._wake.set()
            self._wake = threading.Event()

        log_info(
            f"Device code issued: enter {session.user_code} at {session.verification_uri}"
        )
        return session

    def cancel(self) -> None:
        with self._lock:
            if self._session is not None:
                log_info("Device login cancelled.")
            self._discard(DeviceAuthState.IDLE)

    def _discard(self, state: DeviceAuthState) -> None:
        self._session = None
        self._state = state
        self._wake.set()

    def _active_session(self, device_code: str) -> DeviceSession:
        session = self._session
        if session is None or session.device_code != device_code:
            raise CodeExpired("No active login session for this code; start again.")
        if session.is_expired(self._clock()):
            self._discard(DeviceAuthState.EXPIRED)
            raise CodeExpired("Code expired")
        return session

    def _fail(self, state: DeviceAuthState, error):
        self._discard(state)
        return error

    def poll(self, device_code: str) -> PollResult:
        """Issue one authorization check for the active session."""
        with self._lock:
            session = self._active_session(device_code)
            self._state = DeviceAuthState.POLLING

        try:
            r = self._http.post(
                YOTO_TOKEN_URL,
                data={
                    "grant_type": DEVICE_CODE_GRANT,
                    "device_code": device_code,
                    "client_id": YOTO_CLIENT_ID,
                    "audience": YOTO_AUDIENCE,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            with self._lock:
                raise self._fail(
                    DeviceAuthState.ERROR,
                    AuthRequestFailed("Token poll failed", description=str(exc)),
                ) from exc

        try:
            payload = r.json()
        except ValueError:
            payload = None

        with self._lock:
            if self._session is not session:
                # Cancelled or replaced while the request was in flight.
                raise CodeExpired("Login session was cancelled.")

            if r.ok:
                try:
                    credentials = _credentials_from_token_response(payload)
                except AuthRequestFailed as exc:
                    raise self._fail(DeviceAuthState.ERROR, exc)
                self._store.save(credentials)
                self._discard(DeviceAuthState.APPROVED)
                log_success("Yoto login approved.")
                return PollResult(PollStatus.APPROVED, session.poll_interval_seconds)

            if not isinstance(payload, dict):
                raise self._fail(
                    DeviceAuthState.ERROR,
                    AuthRequestFailed(
                        f"Token request failed: {r.status_code}", description=r.text
                    ),
                )

            error = payload.get("error")
            description = payload.get("error_description") or error

            if error == "authorization_pending":
                return PollResult(PollStatus.PENDING, session.poll_interval_seconds)

            if error == "slow_down":
                policy = PollPolicy(
                    interval_seconds=session.poll_interval_seconds,
                    slow_down_step=self._policy.slow_down_step,
                ).slowed_down(payload.get("interval"))
                session.poll_interval_ms = int(policy.interval_seconds * 1000)
                log_info(f"Yoto asked to slow down; polling every {policy.interval_seconds:g}s.")
                return PollResult(PollStatus.SLOW_DOWN, policy.interval_seconds)

            if error == "expired_token":
                raise self._fail(
                    DeviceAuthState.EXPIRED,
                    CodeExpired("Code expired", description=description),
                )

            state = (
                DeviceAuthState.DENIED
                if error in ("access_denied", "invalid_grant")
                else DeviceAuthState.ERROR
            )
            log_warning(f"Yoto login failed: {description}")
            raise self._fail(
                state, AuthDenied(f"Login failed: {error}", description=description)
            )

    def wait_for_approval(self, session: DeviceSession) -> Optional[Credentials]:
        """
        Poll `session` until it resolves.

        Returns the stored credentials on approval and None when the session
        was cancelled or replaced. Denial and expiry raise.
        """
        interval = session.poll_interval_seconds
        while True:
            if self._session is not session:
                return None
            result = self.poll(session.device_code)
            if result.status is PollStatus.APPROVED:
                return self._store.get()
            interval = result.interval_seconds or interval
            self._wait(interval)

    def _wait(self, seconds: float) -> None:
        if self._sleep is not None:
            self._sleep(seconds)
        else:
            self._wake.wait(seconds)
