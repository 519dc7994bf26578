"""In-process cache of server moderation views."""

import threading
import time
from typing import Any, Final

from ..config import settings
from ..logging_config import get_logger

logger = get_logger(__name__)


class ServerCache:
    """Caches serialized server views keyed by server id.

    Entries expire after ``ttl_seconds`` (0 keeps them until invalidated).
    Every invalidation bumps the server's generation; a view loaded under an
    older generation is never stored.
    """

    def __init__(self, ttl_seconds: int = 300):
        self._ttl_seconds = ttl_seconds
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}
        self._generations: dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, server_id: str) -> dict[str, Any] | None:
        with self._lock:
            cached = self._entries.get(server_id)
            if cached is None:
                return None
            stored_at, view = cached
            if self._ttl_seconds and time.monotonic() - stored_at > self._ttl_seconds:
                del self._entries[server_id]
                return None
            return view

    def generation(self, server_id: str) -> int:
        """Current generation of a server, read before loading its view."""
        with self._lock:
            return self._generations.get(server_id, 0)

    def set(
        self, server_id: str, view: dict[str, Any], generation: int | None = None
    ) -> bool:
        """Store a view.

        Args:
            server_id: Server the view belongs to
            view: Serialized moderation view
            generation: Generation read before the view was loaded. The view is
                dropped if the server was invalidated since.

        Returns:
            True if the view was stored
        """
        with self._lock:
            if (
                generation is not None
                and self._generations.get(server_id, 0) != generation
            ):
                logger.debug(
                    "Stale server view not cached",
                    server_id=server_id,
                    generation=generation,
                )
                return False
            self._entries[server_id] = (time.monotonic(), view)
            return True

    def invalidate(self, server_id: str) -> bool:
        """Drop the cached view of a server.

        Returns:
            True if an entry was dropped
        """
        with self._lock:
            self._generations[server_id] = self._generations.get(server_id, 0) + 1
            dropped = self._entries.pop(server_id, None) is not None
        logger.debug("Server cache invalidated", server_id=server_id, dropped=dropped)
        return dropped

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


# Global cache instance
server_cache: Final = ServerCache(ttl_seconds=settings.server_cache_ttl_seconds)
