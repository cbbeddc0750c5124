"""Upload one local audio file to Yoto's transcoding service.

Steps, strictly sequential:

  1. sha256 over the raw bytes
  2. GET  /media/transcode/audio/uploadUrl          -> uploadId (+ uploadUrl)
  3. PUT  <uploadUrl>                               (skipped when Yoto already has the hash)
  4. GET  /media/upload/{uploadId}/transcoded       every 2s, 30 attempts max
  5. -> UploadResult(asset_key)

Every step writes a line to the `log` callable so callers can surface live
progress. Failures raise an UploadError subclass for this file only; a 401
anywhere raises NotAuthenticated.
"""

import hashlib
import os
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import requests

from app.config import (
    REQUEST_TIMEOUT_SECONDS,
    TRANSFER_TIMEOUT_SECONDS,
    YOTO_API_BASE,
)
from app.core import log_debug

from .credentials import CredentialStore, raise_for_auth
from .errors import TranscodeTimeout, TransferFailed, UploadRequestFailed
from .polling import TRANSCODE_POLICY, PollPolicy

LogFn = Callable[[str], None]


def _no_log(message: str) -> None:
    pass


class SlotKind(str, Enum):
    NEW = "new"
    # Yoto already holds content with this hash: no transfer target is issued.
    EXISTING = "existing"


@dataclass(frozen=True)
class UploadSlot:
    upload_id: str
    kind: SlotKind
    upload_url: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "UploadSlot":
        upload = payload.get("upload") if isinstance(payload, dict) else None
        upload = upload if isinstance(upload, dict) else {}
        upload_id = upload.get("uploadId")
        if not upload_id:
            raise UploadRequestFailed(f"No uploadId in response: {payload}")
        upload_url = upload.get("uploadUrl")
        if upload_url:
            return cls(upload_id=upload_id, kind=SlotKind.NEW, upload_url=upload_url)
        return cls(upload_id=upload_id, kind=SlotKind.EXISTING)


class TranscodePhase(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class TranscodeStatus:
    phase: TranscodePhase
    progress_phase: Optional[str] = None
    percent: Optional[float] = None
    asset_key: Optional[str] = None
    duration_seconds: Optional[int] = None
    format: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "TranscodeStatus":
        if not isinstance(payload, dict):
            payload = {}
        info = payload.get("transcode") or payload.get("transcoded") or payload
        if not isinstance(info, dict):
            info = {}

        progress = info.get("progress") if isinstance(info.get("progress"), dict) else {}
        asset_key = info.get("transcodedSha256") or info.get("key")
        finished = progress.get("phase") == "complete" or bool(info.get("transcodedAt"))

        media = info.get("transcodedInfo") if isinstance(info.get("transcodedInfo"), dict) else {}
        duration = media.get("duration")

        return cls(
            phase=TranscodePhase.COMPLETE if finished and asset_key else TranscodePhase.IN_PROGRESS,
            progress_phase=progress.get("phase"),
            percent=progress.get("percent"),
            asset_key=asset_key,
            duration_seconds=int(round(duration)) if isinstance(duration, (int, float)) else None,
            format=media.get("format"),
        )


@dataclass(frozen=True)
class UploadResult:
    asset_key: str
    deduplicated: bool = False
    duration_seconds: Optional[int] = None
    format: Optional[str] = None


class TranscodeUploader:
    def __init__(
        self,
        store: CredentialStore,
        policy: PollPolicy = TRANSCODE_POLICY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self._policy = policy
        self._sleep = sleep

    def upload(self, file_path: str, log: LogFn = _no_log) -> UploadResult:
        session = self._store.session()

        with open(file_path, "rb") as f:
            data = f.read()
        sha256 = hashlib.sha256(data).hexdigest()
        filename = os.path.basename(file_path)

        log("Getting upload URL...")
        slot = self.request_slot(session, sha256, filename)

        if slot.kind is SlotKind.NEW:
            log("Uploading to S3...")
            self.transfer(session, slot, data)
        else:
            log("File already uploaded, checking transcoding...")

        log("Waiting for transcoding...")
        status = self.wait_for_transcode(session, slot.upload_id, log)
        log("Transcoding complete!")

        return UploadResult(
            asset_key=status.asset_key,
            deduplicated=slot.kind is SlotKind.EXISTING,
            duration_seconds=status.duration_seconds,
            format=status.format,
        )

    def request_slot(self, session, sha256: str, filename: str) -> UploadSlot:
        try:
            r = session.get(
                f"{YOTO_API_BASE}/media/transcode/audio/uploadUrl",
                params={"sha256": sha256, "filename": filename},
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            raise UploadRequestFailed(f"Failed to get upload URL: {exc}") from exc

        raise_for_auth(r)
        if not r.ok:
            raise UploadRequestFailed(
                f"Failed to get upload URL: {r.status_code} - {r.text}",
                description=r.text,
            )

        try:
            payload = r.json()
        except ValueError as exc:
            raise UploadRequestFailed(f"Invalid upload URL response: {r.text}") from exc
        return UploadSlot.from_payload(payload)

    def transfer(self, session, slot: UploadSlot, data: bytes) -> None:
        try:
            # The pre-signed URL carries its own auth; drop the bearer header.
            r = session.put(
                slot.upload_url,
                data=data,
                headers={"Content-Type": "audio/mpeg", "Authorization": None},
                timeout=TRANSFER_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            raise TransferFailed(f"Failed to upload to S3: {exc}") from exc

        if not r.ok:
            raise TransferFailed(f"Failed to upload to S3: {r.status_code}")

    def wait_for_transcode(self, session, upload_id: str, log: LogFn = _no_log) -> TranscodeStatus:
        url = f"{YOTO_API_BASE}/media/upload/{upload_id}/transcoded"
        max_attempts = self._policy.max_attempts

        for attempt in self._policy.attempts():
            self._sleep(self._policy.interval_seconds)

            try:
                r = session.get(
                    url, params={"loudnorm": "false"}, timeout=REQUEST_TIMEOUT_SECONDS
                )
            except requests.RequestException as exc:
                log(f"Status check failed: {exc}")
                r = None

            if r is not None:
                raise_for_auth(r)
                if r.ok:
                    try:
                        status = TranscodeStatus.from_payload(r.json())
                    except ValueError:
                        status = TranscodeStatus(phase=TranscodePhase.IN_PROGRESS)
                    log_debug(f"Transcode status for {upload_id}: {status}")

                    if status.phase is TranscodePhase.COMPLETE:
                        return status
                    if status.progress_phase:
                        log(
                            f"Transcode progress: {status.progress_phase} "
                            f"{status.percent or 0}%"
                        )
                else:
                    log(f"Status check failed: {r.status_code}")

            log(f"Transcoding... ({attempt}/{max_attempts})")

        raise TranscodeTimeout("Transcoding timed out or failed")
