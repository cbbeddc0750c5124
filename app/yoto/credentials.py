"""Credential store for the Yoto account.

Credentials live in a small JSON file (atomic writes through app.core). The
store caches them in memory together with an authenticated requests.Session;
both are rebuilt after every save() or clear(), so a login, a refresh or a
logout is picked up by the next remote call.
"""

import threading
from typing import Callable, Dict, Optional

import requests

from app.config import CREDENTIALS_FILE
from app.core import Credentials, log_info, log_warning, read_json, remove_file, write_json

from .errors import NotAuthenticated


def yoto_headers(access_token: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {access_token}",
        "Accept": "application/json, text/plain, */*",
        "Content-Type": "application/json",
    }


def raise_for_auth(response) -> None:
    """Turn a 401 from the Yoto API into NotAuthenticated."""
    if response.status_code == 401:
        raise NotAuthenticated(
            "Yoto rejected the access token; log in again.",
            description=response.text,
        )


class CredentialStore:
    def __init__(
        self,
        path: str = CREDENTIALS_FILE,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self._path = path
        self._session_factory = session_factory
        self._lock = threading.RLock()
        self._loaded = False
        self._credentials: Optional[Credentials] = None
        self._session: Optional[requests.Session] = None

    def _load(self) -> Optional[Credentials]:
        def _on_error(e: Exception) -> None:
            log_warning("Credentials file is corrupted; ignoring it.")

        data = read_json(self._path, default=None, on_error=_on_error)
        if not isinstance(data, dict):
            return None

        access_token = data.get("access_token")
        refresh_token = data.get("refresh_token")
        if not access_token or not refresh_token:
            log_warning("Credentials file holds a partial token pair; ignoring it.")
            return None

        return Credentials(
            access_token=access_token,
            refresh_token=refresh_token,
            user_id=data.get("user_id"),
        )

    def get(self) -> Optional[Credentials]:
        with self._lock:
            if not self._loaded:
                self._credentials = self._load()
                self._loaded = True
            return self._credentials

    def require(self) -> Credentials:
        credentials = self.get()
        if credentials is None:
            raise NotAuthenticated("Yoto credentials not configured")
        return credentials

    def save(self, credentials: Credentials) -> None:
        if not credentials.access_token or not credentials.refresh_token:
            raise ValueError("Both access_token and refresh_token are required.")

        with self._lock:
            write_json(
                self._path,
                {
                    "access_token": credentials.access_token,
                    "refresh_token": credentials.refresh_token,
                    "user_id": credentials.user_id,
                },
            )
            self._credentials = credentials
            self._loaded = True
            self._invalidate_session()
        log_info(f"Yoto credentials saved (user id: {credentials.user_id or 'unknown'}).")

    def clear(self) -> None:
        with self._lock:
            remove_file(self._path)
            self._credentials = None
            self._loaded = True
            self._invalidate_session()
        log_info("Yoto credentials cleared.")

    def session(self) -> requests.Session:
        """Authenticated session for api.yotoplay.com, built lazily."""
        with self._lock:
            credentials = self.require()
            if self._session is None:
                session = self._session_factory()
                session.headers.update(yoto_headers(credentials.access_token))
                self._session = session
            return self._session

    def _invalidate_session(self) -> None:
        if self._session is not None:
            self._session.close()
        self._session = None
