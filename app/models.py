"""
Movie Facts — Pydantic Models

Request/response contracts for the HTTP API plus the small value types
shared between the search proxy and the fact generator.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ── Movie search ─────────────────────────────────────────


class MovieSearchItem(BaseModel):
    """One autocomplete suggestion."""

    id: Union[int, str]
    title: str
    year: Optional[int] = None
    poster: Optional[str] = None
    overview: str = ""


class MovieSearchResponse(BaseModel):
    results: List[MovieSearchItem] = Field(default_factory=list)
    fallback: Optional[bool] = None


# ── Facts ────────────────────────────────────────────────


class FactSource(str, Enum):
    """Provenance of a displayed fact."""

    LLM = "openai"
    TABLE = "fallback"
    GENERIC = "generic"


class GeneratedFact(BaseModel):
    text: str
    source: FactSource


class GenerateFactRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    movie: Optional[str] = None
    request_id: Optional[int] = Field(default=None, alias="requestId")
    exclude_fact: Optional[str] = Field(default=None, alias="excludeFact")


class FactResponse(BaseModel):
    fact: str
    source: FactSource


# ── Users / favorite movie ───────────────────────────────


class UserOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    favorite_movie: Optional[str] = Field(default=None, alias="favoriteMovie")


class FavoriteMovieRequest(BaseModel):
    """
    Canonical body is {"favoriteMovie": "..."}.
    The older {"movie": "..."} shape is still read but logged as deprecated.
    """

    model_config = ConfigDict(populate_by_name=True)

    favorite_movie: Optional[str] = Field(default=None, alias="favoriteMovie")
    movie: Optional[str] = None


class FavoriteMovieResponse(BaseModel):
    user: UserOut
    message: str


class UserResponse(BaseModel):
    user: UserOut


class MovieFactResponse(BaseModel):
    movie: str
    fact: str
    source: FactSource
    user: UserOut
