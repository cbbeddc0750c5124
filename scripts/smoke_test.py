#!/usr/bin/env python3
"""
Smoke test for a running yoto-playlist-publisher backend.

It runs through:
- health
- auth status
- card listing (only when credentials are stored)
- optionally, a full streamed publish of one playlist

Run with:
    python scripts/smoke_test.py                 # read-only checks
    python scripts/smoke_test.py <playlist_id>   # also publishes (creates/updates a card)
"""

import json
import sys
from typing import Any, Dict

import requests

BASE_URL = "http://localhost:3001"

STREAM_TIMEOUT_SECONDS = 600


def call(method: str, path: str, **kwargs) -> Dict[str, Any]:
    """Helper to call the API and print concise output."""
    url = f"{BASE_URL}{path}"
    print(f"\n=== {method.upper()} {path} ===")
    try:
        resp = requests.request(method, url, timeout=30, **kwargs)
    except requests.RequestException as e:
        print(f"❌ Request failed: {e}")
        sys.exit(1)

    print(f"Status: {resp.status_code}")

    if resp.status_code >= 400:
        print("❌ Error response:")
        print(resp.text)
        sys.exit(1)

    try:
        data = resp.json()
    except ValueError:
        print("❌ Non-JSON response:")
        print(resp.text)
        sys.exit(1)

    snippet = json.dumps(data, indent=2)[:500]
    print(snippet)
    if len(snippet) == 500:
        print("…(truncated)…")

    return data


def test_publish_stream(playlist_id: str) -> None:
    """Publish one playlist over SSE and check the stream ends with one final event."""
    path = f"/api/yoto/upload-playlist/{playlist_id}/stream"
    print(f"\n=== GET {path} (stream) ===")

    finals = []
    with requests.get(f"{BASE_URL}{path}", stream=True, timeout=STREAM_TIMEOUT_SECONDS) as resp:
        if resp.status_code != 200:
            print(f"❌ Stream returned {resp.status_code}: {resp.text}")
            sys.exit(1)

        for line in resp.iter_lines(decode_unicode=True):
            if not line or not line.startswith("data: "):
                continue
            event = json.loads(line[len("data: "):])
            print(f"  {event}")
            if event.get("final"):
                finals.append(event)

    if len(finals) != 1:
        print(f"❌ Expected exactly one final event, got {len(finals)}.")
        sys.exit(1)

    final = finals[0]
    if final.get("type") != "done":
        print(f"❌ Publish failed: {final.get('error')}")
        sys.exit(1)

    print(
        f"ℹ️ Card {final.get('cardId')} published with "
        f"{final.get('uploadedTracks')} track(s)."
    )


def main() -> None:
    print("📀 Smoke Test: yoto-playlist-publisher backend\n")

    call("get", "/api/health")

    status = call("get", "/api/yoto/auth/status")
    if not status.get("hasToken"):
        print("\n⏭  Not logged in to Yoto; skipping card checks.")
        return

    cards = call("get", "/api/yoto/cards")
    if not isinstance(cards, (dict, list)):
        print("❌ /api/yoto/cards did not return JSON content.")
        sys.exit(1)

    if len(sys.argv) > 1:
        test_publish_stream(sys.argv[1])
    else:
        print("\n⏭  No playlist id given; skipping publish.")

    print("\n✅ Smoke test passed.")


if __name__ == "__main__":
    main()
