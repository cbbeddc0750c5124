"""Command-line entrypoint.

  python main.py login                 # device-code login
  python main.py logout
  python main.py status
  python main.py publish <playlist_id> # upload + create/update the card
"""

import sys

from app.core import configure_logging, log_error, log_info, log_success, log_warning
from app.pipeline import EventType, ProgressEvent, start_publish_stream
from app.state import get_state
from app.yoto import AuthDenied, AuthRequestFailed, CodeExpired


def _print_event(event: ProgressEvent) -> None:
    if event.type is EventType.START:
        print(f"[{event.current}/{event.total}] Starting: {event.title}")
    elif event.type is EventType.LOG:
        print(f"    {event.message}")
    elif event.type is EventType.COMPLETE:
        print(f"[{event.current}/{event.total}] ✓ Completed: {event.title}")
    elif event.type is EventType.ERROR and not event.is_terminal:
        print(f"[{event.current}/{event.total}] ✗ Failed: {event.title} - {event.error}")
    elif event.type is EventType.ERROR:
        print(f"Error: {event.error}")
        for title in event.missing or []:
            print(f"    not downloaded: {title}")
        for err in event.errors or []:
            print(f"    {err.title}: {err.error}")
    elif event.type is EventType.DONE:
        print(f"✓ Card {event.card_id} published with {event.uploaded_tracks} track(s).")
        for err in event.errors or []:
            print(f"    failed: {err.title} - {err.error}")


def login() -> int:
    flow = get_state().device_auth
    try:
        session = flow.request_code()
    except AuthRequestFailed as e:
        log_error(f"{e} {e.description or ''}")
        return 1

    print("To connect your Yoto account, visit:")
    print(f"  {session.verification_uri}")
    print(f"and enter the code: {session.user_code}")
    print(f"(or open {session.verification_uri_complete})")
    print(f"The code expires in {session.expires_in_seconds // 60} minutes.")

    try:
        credentials = flow.wait_for_approval(session)
    except (CodeExpired, AuthDenied, AuthRequestFailed) as e:
        log_error(e.description or str(e))
        return 1
    except KeyboardInterrupt:
        flow.cancel()
        log_warning("Login cancelled.")
        return 1

    if credentials is None:
        log_warning("Login cancelled.")
        return 1
    log_success(f"Connected to Yoto (user {credentials.user_id or 'unknown'}).")
    return 0


def logout() -> int:
    get_state().credentials.clear()
    log_success("Disconnected from Yoto.")
    return 0


def status() -> int:
    credentials = get_state().credentials.get()
    if credentials is None:
        log_info("Not connected to Yoto.")
        return 1
    log_info(f"Connected to Yoto as {credentials.user_id or 'unknown user'}.")
    return 0


def publish(playlist_id: str) -> int:
    channel = start_publish_stream(get_state().orchestrator(), playlist_id)
    ok = False
    try:
        for event in channel:
            _print_event(event)
            ok = event.type is EventType.DONE
    finally:
        channel.detach()
    return 0 if ok else 1


def main(argv: list) -> int:
    configure_logging()

    if not argv:
        print(__doc__)
        return 2

    command, args = argv[0], argv[1:]
    if command == "login":
        return login()
    if command == "logout":
        return logout()
    if command == "status":
        return status()
    if command == "publish" and len(args) == 1:
        return publish(args[0])

    print(__doc__)
    return 2


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
