"""Public façade for the app.core package.

Logging helpers, JSON persistence utilities and the base records shared by
the Yoto client, the playlist storage and the publish pipeline. Import these
cross-cutting concerns from here rather than from the submodules.
"""

from .fs_utils import ensure_parent_dir, read_json, remove_file, write_json
from .logging_config import configure_logging
from .logging_utils import (
    log_debug,
    log_error,
    log_info,
    log_progress,
    log_section,
    log_step,
    log_success,
    log_warning,
)
from .models import Credentials, Playlist, PlaylistTrack

__all__ = [
    "configure_logging",
    "log_section",
    "log_info",
    "log_step",
    "log_success",
    "log_warning",
    "log_error",
    "log_debug",
    "log_progress",
    "ensure_parent_dir",
    "write_json",
    "read_json",
    "remove_file",
    "Credentials",
    "Playlist",
    "PlaylistTrack",
]
