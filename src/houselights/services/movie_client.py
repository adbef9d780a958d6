"""Client for the cinema's movie catalog."""

import logging
from collections.abc import Iterable

import httpx
from pydantic import ValidationError

from houselights.models import Movie
from houselights.schemas.upstream import MovieEntry

logger = logging.getLogger(__name__)


class MovieClient:
    """Fetches title, certificate and runtime for a batch of movie ids."""

    def __init__(self, client: httpx.AsyncClient, api_url: str) -> None:
        self.client = client
        self.api_url = api_url

    async def fetch(self, movie_ids: Iterable[str]) -> dict[str, Movie]:
        """
        Fetch metadata for ``movie_ids`` in a single request.

        Args:
            movie_ids: Movie ids referenced by the schedule (duplicates allowed)

        Returns:
            Mapping of movie id to Movie. Empty if the request fails; callers
            must tolerate showings whose movie is missing.
        """
        ids = list(dict.fromkeys(mid for mid in movie_ids if mid))
        if not ids:
            return {}

        logger.info(f"Fetching {len(ids)} movies...")

        try:
            response = await self.client.post(
                self.api_url,
                params=[("ids", mid) for mid in ids],
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Could not fetch movies: {e!r}")
            return {}

        if not isinstance(data, list):
            logger.error(f"Movie catalog returned {type(data).__name__}, expected a list")
            return {}

        movies: dict[str, Movie] = {}
        for raw in data:
            movie = self._parse_movie(raw)
            if movie:
                movies[movie.id] = movie

        missing = len(set(ids) - movies.keys())
        if missing:
            logger.warning(f"{missing} scheduled movies are missing from the catalog")

        return movies

    def _parse_movie(self, raw: object) -> Movie | None:
        try:
            entry = MovieEntry.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Skipping malformed movie entry: {e}")
            return None

        if not entry.id or not entry.title:
            logger.warning(f"Skipping movie without id or title: {raw!r}")
            return None

        return Movie(
            id=entry.id,
            title=entry.title,
            certificate=entry.certificate or "",
            runtime_minutes=entry.runtime,
        )
