import json
import os
from pathlib import Path
import tempfile
from typing import Any, Callable, Optional


def ensure_parent_dir(path: Path | str) -> None:
    """Create the directory holding `path` if it is missing."""
    parent = os.path.dirname(os.fspath(path))
    if parent:
        os.makedirs(parent, exist_ok=True)


def write_json(path: str | Path, data: Any) -> None:
    """
    Persist `data` as JSON with an atomic replace.

    The document is written to a sibling temp file, fsynced, then moved over
    the target with os.replace, so readers see either the old file or the
    complete new one. Credentials and playlist state both go through here.
    """
    target_path = Path(path)
    ensure_parent_dir(target_path)

    fd, tmp_name = tempfile.mkstemp(
        dir=str(target_path.parent),
        prefix=target_path.name,
        suffix=".tmp",
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, target_path)
    except Exception:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def read_json(
    path: str | Path,
    default: Any = None,
    *,
    on_error: Optional[Callable[[Exception], None]] = None,
) -> Any:
    """
    Load a JSON document.

    - missing file -> `default`
    - unparsable file -> `default` (on_error is told about it)
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return default
    except json.JSONDecodeError as e:
        if on_error:
            on_error(e)
        return default


def remove_file(path: str | Path) -> bool:
    """Delete `path` if present. Returns True when something was removed."""
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    return True
