"""Domain models for one poll cycle."""

from houselights.models.movie import Movie
from houselights.models.showing import CycleSummary, PollResult, RawShowing, Showing

__all__ = ["CycleSummary", "Movie", "PollResult", "RawShowing", "Showing"]
