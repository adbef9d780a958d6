"""Movie catalog entry."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Movie:
    """
    Movie metadata from the cinema's movie catalog.

    Keyed by ``id`` in a poll result; replaced wholesale on every cycle.
    """

    id: str
    title: str
    certificate: str = ""
    runtime_minutes: int = 0
