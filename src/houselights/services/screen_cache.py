"""In-memory cache of screen assignments and screen capacities."""

import logging
import threading

logger = logging.getLogger(__name__)


class ScreenDetailCache:
    """
    Two keyed caches filled by the enricher.

    * ``showing id → screen number``, only valid for the day it was observed
      because showing ids can be reused across days.
    * ``screen number → seat count``, stable for as long as the auditorium is.

    Entries never expire on their own; the engine calls ``invalidate_all``
    when the schedule window moves to a new day. Each map has its own lock,
    and the two maps are never updated together.
    """

    def __init__(self) -> None:
        self._showing_screen: dict[str, int] = {}
        self._screen_capacity: dict[int, int] = {}
        self._screen_lock = threading.Lock()
        self._capacity_lock = threading.Lock()

    def lookup(self, showing_id: str) -> tuple[int, int] | None:
        """Return ``(screen_number, capacity)`` if both are cached, else None."""
        screen = self.screen_for(showing_id)
        if screen is None:
            return None

        capacity = self.capacity_for(screen)
        if capacity is None:
            return None

        return screen, capacity

    def screen_for(self, showing_id: str) -> int | None:
        with self._screen_lock:
            return self._showing_screen.get(showing_id)

    def capacity_for(self, screen_number: int) -> int | None:
        """Cached seat count for a screen; a non-positive entry is evicted and missed."""
        with self._capacity_lock:
            capacity = self._screen_capacity.get(screen_number)
            if capacity is not None and capacity <= 0:
                logger.warning(
                    f"Evicting corrupt capacity {capacity} for screen {screen_number}"
                )
                del self._screen_capacity[screen_number]
                return None
            return capacity

    def record_screen(self, showing_id: str, screen_number: int) -> None:
        if screen_number <= 0:
            logger.warning(f"Refusing to cache screen {screen_number} for showing {showing_id}")
            return
        with self._screen_lock:
            self._showing_screen[showing_id] = screen_number

    def record_capacity(self, screen_number: int, capacity: int) -> None:
        if capacity <= 0:
            logger.warning(f"Refusing to cache capacity {capacity} for screen {screen_number}")
            return
        with self._capacity_lock:
            self._screen_capacity[screen_number] = capacity

    def invalidate_all(self) -> None:
        with self._screen_lock, self._capacity_lock:
            self._showing_screen.clear()
            self._screen_capacity.clear()
        logger.info("Screen detail cache cleared")

    @property
    def screens(self) -> int:
        """Number of cached showing → screen entries."""
        with self._screen_lock:
            return len(self._showing_screen)

    @property
    def capacities(self) -> int:
        """Number of cached screen → capacity entries."""
        with self._capacity_lock:
            return len(self._screen_capacity)
