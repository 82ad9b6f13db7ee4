"""
Movie Facts — Movie Search Proxy

Forwards autocomplete queries to TMDB. Any failure (no credentials,
non-success response, malformed payload, zero results) falls back to a
small fixed catalog, and if nothing in the catalog matches, to a single
"use what I typed" suggestion.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from app.clients.tmdb import MAX_RESULTS, TMDBClient
from app.errors import UpstreamError
from app.models import MovieSearchItem, MovieSearchResponse

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2

# (title, year, overview)
FALLBACK_CATALOG: Tuple[Tuple[str, int, str], ...] = (
    ("Home Alone", 1990,
     "8-year-old Kevin is accidentally left behind when his family goes on vacation."),
    ("Home Alone 2: Lost in New York", 1992,
     "Kevin ends up in New York City alone and must defend a hotel from burglars."),
    ("The Shawshank Redemption", 1994,
     "Two imprisoned men bond over years, finding solace and redemption."),
    ("The Godfather", 1972,
     "The aging patriarch of an organized crime dynasty transfers control to his reluctant son."),
    ("Titanic", 1997,
     "A seventeen-year-old aristocrat falls in love with a kind but poor artist aboard the "
     "luxurious, ill-fated R.M.S. Titanic."),
    ("Avatar", 2009,
     "A paraplegic Marine dispatched to the moon Pandora on a unique mission."),
    ("The Dark Knight", 2008,
     "Batman faces the Joker, a criminal mastermind who wants to plunge Gotham City into anarchy."),
    ("Forrest Gump", 1994,
     "The presidencies of Kennedy and Johnson through the eyes of an Alabama man with an IQ of 75."),
    ("Inception", 2010,
     "A thief who steals corporate secrets through dream-sharing technology."),
    ("The Matrix", 1999,
     "A computer hacker learns from mysterious rebels about the true nature of his reality."),
    ("Pulp Fiction", 1994,
     "The lives of two mob hitmen, a boxer, and others intertwine in four tales of violence "
     "and redemption."),
    ("The Lion King", 1994,
     "A young lion prince flees his kingdom after his father's death."),
)


def fallback_movies(query: str) -> List[MovieSearchItem]:
    """Catalog titles containing `query` (case-insensitive), or a custom-entry item."""
    query_lower = query.lower()
    matches = [entry for entry in FALLBACK_CATALOG if query_lower in entry[0].lower()]

    if matches:
        return [
            MovieSearchItem(id=f"fallback-{i}", title=title, year=year, poster=None, overview=overview)
            for i, (title, year, overview) in enumerate(matches)
        ]

    raw = query.strip()
    return [
        MovieSearchItem(
            id="custom-input",
            title=raw,
            year=None,
            poster=None,
            overview=f"Add {raw} as your favorite movie",
        )
    ]


def _fallback_response(query: str) -> MovieSearchResponse:
    return MovieSearchResponse(results=fallback_movies(query), fallback=True)


async def search_movies(query: Optional[str], tmdb: Optional[TMDBClient]) -> MovieSearchResponse:
    """
    Autocomplete search.

    Queries shorter than MIN_QUERY_LENGTH return no results and make no
    outbound call. Upstream failures never surface as errors.
    """
    if not query or len(query) < MIN_QUERY_LENGTH:
        return MovieSearchResponse(results=[])

    if tmdb is None:
        return _fallback_response(query)

    try:
        raw = await tmdb.search_movies(query)
        items = [tmdb.to_item(movie) for movie in raw[:MAX_RESULTS]]
    except UpstreamError as exc:
        logger.warning("TMDB search failed for %r: %s", query, exc)
        return _fallback_response(query)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("TMDB returned malformed results for %r: %s", query, exc)
        return _fallback_response(query)

    if not items:
        return _fallback_response(query)

    return MovieSearchResponse(results=items)
