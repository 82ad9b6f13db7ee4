"""
Movie Facts — TMDB Client

Design patterns:
  - Repository: abstracts the TMDB search endpoint behind one method
  - Adapter: normalizes raw results to MovieSearchItem

One httpx.AsyncClient per process, built at start-up and closed at
shutdown. No cache and no retry: a failed call raises UpstreamError and
the caller decides what to show instead.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.errors import UpstreamError
from app.models import MovieSearchItem

logger = logging.getLogger(__name__)

MAX_RESULTS = 8


class TMDBClient:
    """Async client for TMDB API v3 movie search."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.themoviedb.org/3",
        image_base: str = "https://image.tmdb.org/t/p/w200",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.image_base = image_base
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def search_movies(self, query: str) -> List[Dict[str, Any]]:
        """Execute /search/movie and return the raw `results` list."""
        params = {"query": query, "page": 1, "include_adult": "false"}
        try:
            resp = await self._client.get("/search/movie", params=params)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"TMDB request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise UpstreamError(f"TMDB API error: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError("TMDB returned a non-JSON payload") from exc

        if not isinstance(data, dict) or data.get("status_code") or not isinstance(data.get("results"), list):
            raise UpstreamError(f"TMDB returned an error payload: {data!r:.200}")

        results = data["results"]
        if not all(isinstance(movie, dict) for movie in results):
            raise UpstreamError("TMDB returned a non-object entry in results")
        return results

    def to_item(self, movie: Dict[str, Any]) -> MovieSearchItem:
        poster_path = movie.get("poster_path")
        return MovieSearchItem(
            id=movie["id"],
            title=movie.get("title") or "",
            year=_extract_year(movie.get("release_date")),
            poster=f"{self.image_base}{poster_path}" if poster_path else None,
            overview=movie.get("overview") or "",
        )

    async def aclose(self) -> None:
        if not self._client.is_closed:
            await self._client.aclose()


def _extract_year(date_str: Optional[str]) -> Optional[int]:
    if date_str and len(date_str) >= 4:
        try:
            return int(date_str[:4])
        except ValueError:
            pass
    return None
