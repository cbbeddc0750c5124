"""Public façade for the app.data package.

Local playlist storage as seen by the publisher. Callers should use this
façade instead of importing from the internal modules directly.
"""

from .playlists import PlaylistRepository

__all__ = [
    "PlaylistRepository",
]
