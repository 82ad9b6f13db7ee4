"""
Movie Facts — FastAPI Application

REST endpoints for movie search, the favorite-movie preference and
fact generation. Collaborators are built once in the lifespan, kept on
app.state and injected into the handlers with Depends.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware

from app import auth
from app.auth import SessionStore, create_oauth, get_current_user_id
from app.clients import ChatClient, create_llm
from app.clients.tmdb import TMDBClient
from app.config import Settings, settings
from app.database import Database, User
from app.errors import InvalidTitleError, UserNotFoundError
from app.facts import FactGenerator, FactLLM
from app.models import (
    FactResponse,
    FavoriteMovieRequest,
    FavoriteMovieResponse,
    GenerateFactRequest,
    MovieFactResponse,
    MovieSearchResponse,
    UserOut,
    UserResponse,
)
from app.preferences import PreferenceStore
from app.search import search_movies

logger = logging.getLogger(__name__)


# ── Lifespan: startup/shutdown ────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize and tear down shared resources."""
    cfg: Settings = app.state.settings
    logging.basicConfig(
        level=cfg.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    )
    logger.info("Movie Facts starting up…")

    database = Database(cfg.database_url, echo=cfg.database_echo)
    await database.create_all()
    app.state.database = database
    app.state.preferences = PreferenceStore(database)
    app.state.session_store = SessionStore(database, max_age=timedelta(days=cfg.session_max_age_days))
    app.state.oauth = create_oauth(cfg)

    if cfg.tmdb_enabled:
        app.state.tmdb = TMDBClient(
            cfg.tmdb_api_key,
            base_url=cfg.tmdb_base_url,
            image_base=cfg.tmdb_image_base,
            timeout=cfg.tmdb_timeout,
        )
        logger.info("   TMDB: %s", cfg.tmdb_base_url)
    else:
        app.state.tmdb = None
        logger.info("   TMDB: no API key, search uses the fallback catalog")

    if cfg.llm_enabled:
        llm = create_llm(api_key=cfg.openai_api_key, model=cfg.openai_model, timeout=cfg.openai_timeout)
        app.state.fact_generator = FactGenerator(FactLLM(ChatClient(llm)))
        logger.info("   LLM: %s", cfg.openai_model)
    else:
        app.state.fact_generator = FactGenerator(None)
        logger.info("   LLM: no API key, facts come from the fallback table")

    yield  # app runs here

    logger.info("Movie Facts shutting down…")
    if app.state.tmdb is not None:
        await app.state.tmdb.aclose()
    await database.dispose()


# ── Dependencies ──────────────────────────────────────────


def get_preferences(request: Request) -> PreferenceStore:
    return request.app.state.preferences


def get_fact_generator(request: Request) -> FactGenerator:
    return request.app.state.fact_generator


def get_tmdb(request: Request) -> Optional[TMDBClient]:
    return request.app.state.tmdb


def get_database(request: Request) -> Database:
    return request.app.state.database


def _user_out(user: User) -> UserOut:
    return UserOut(id=user.id, name=user.name, email=user.email, favorite_movie=user.favorite_movie)


async def _load_user(store: PreferenceStore, user_id: str) -> User:
    try:
        user = await store.fetch_by_id(user_id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching user %s", user_id)
        raise HTTPException(status_code=500, detail=f"Internal server error: {exc}")
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ── App factory ───────────────────────────────────────────


def create_app(cfg: Settings = settings) -> FastAPI:
    app = FastAPI(
        title="Movie Facts",
        version="1.0.0",
        description="Pick a favorite movie, get trivia about it",
        lifespan=lifespan,
    )
    app.state.settings = cfg

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=cfg.session_secret,
        max_age=cfg.session_max_age_days * 24 * 3600,
        same_site="lax",
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        t0 = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - t0) * 1000
        logger.info(
            "%s %s → %d (%.0f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": "Invalid request body", "errors": jsonable_encoder(exc.errors())})

    app.include_router(auth.router)
    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:

    # ── Health endpoint ───────────────────────────────────

    @app.get("/api/health")
    async def health(
        database: Database = Depends(get_database),
        store: PreferenceStore = Depends(get_preferences),
    ):
        """Health check — database connectivity plus optional integrations."""
        cfg: Settings = app.state.settings
        status_: Dict[str, Any] = {
            "status": "ok",
            "database": "unknown",
            "llm": cfg.llm_enabled,
            "tmdb": cfg.tmdb_enabled,
        }
        try:
            await database.ping()
            status_["database"] = "ok"
            status_["user_count"] = await store.count_users()
        except SQLAlchemyError as exc:
            status_["database"] = f"error: {exc}"
            status_["status"] = "degraded"
        return status_

    # ── Movie search ──────────────────────────────────────

    @app.get(
        "/api/search-movies",
        response_model=MovieSearchResponse,
        response_model_exclude_unset=True,
    )
    async def search(q: Optional[str] = None, tmdb: Optional[TMDBClient] = Depends(get_tmdb)):
        """Autocomplete suggestions; falls back to a fixed catalog when TMDB is unavailable."""
        return await search_movies(q, tmdb)

    # ── Favorite movie ────────────────────────────────────

    @app.post("/api/user/favorite-movie", response_model=FavoriteMovieResponse)
    async def set_favorite_movie(
        body: FavoriteMovieRequest,
        response: Response,
        user_id: str = Depends(get_current_user_id),
        store: PreferenceStore = Depends(get_preferences),
    ):
        title = body.favorite_movie
        if title is None and body.movie is not None:
            # TODO: drop the {"movie"} body once the old set-movie clients are gone
            logger.warning("Deprecated body shape {'movie'} used by user %s", user_id)
            response.headers["Deprecation"] = "true"
            title = body.movie

        try:
            user = await store.set_favorite(user_id, title)
        except InvalidTitleError:
            raise HTTPException(status_code=400, detail="Favorite movie is required")
        except UserNotFoundError:
            raise HTTPException(status_code=404, detail="User not found")
        except SQLAlchemyError as exc:
            logger.exception("Error updating favorite movie")
            raise HTTPException(status_code=500, detail=f"Failed to save favorite movie: {exc}")

        return FavoriteMovieResponse(user=_user_out(user), message="Favorite movie updated successfully")

    @app.get("/api/user/favorite-movie", response_model=UserResponse)
    async def get_favorite_movie(
        user_id: str = Depends(get_current_user_id),
        store: PreferenceStore = Depends(get_preferences),
    ):
        user = await _load_user(store, user_id)
        return UserResponse(user=_user_out(user))

    # ── Facts ─────────────────────────────────────────────

    @app.post("/api/generate-fact", response_model=FactResponse)
    async def generate_fact(
        body: GenerateFactRequest,
        generator: FactGenerator = Depends(get_fact_generator),
    ):
        """Fact for a caller-supplied title. Always 200 once the title is valid."""
        try:
            fact = await generator.generate(
                body.movie,
                request_id=body.request_id,
                exclude_fact=body.exclude_fact,
            )
        except InvalidTitleError:
            raise HTTPException(status_code=400, detail="Movie name is required")
        return FactResponse(fact=fact.text, source=fact.source)

    @app.get("/api/movie-fact", response_model=MovieFactResponse)
    async def movie_fact(
        user_id: str = Depends(get_current_user_id),
        store: PreferenceStore = Depends(get_preferences),
        generator: FactGenerator = Depends(get_fact_generator),
    ):
        """Fact for the signed-in user's stored favorite movie."""
        user = await _load_user(store, user_id)
        if not user.favorite_movie or not user.favorite_movie.strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No favorite movie set. Please set your favorite movie first using /api/user/favorite-movie",
            )

        fact = await generator.generate(user.favorite_movie)
        return MovieFactResponse(
            movie=user.favorite_movie,
            fact=fact.text,
            source=fact.source,
            user=_user_out(user),
        )

    # ── Landing page ──────────────────────────────────────

    @app.get("/", response_class=HTMLResponse)
    async def root():
        """Minimal landing page with sign-in and API docs links."""
        return HTMLResponse(
            content="""<!DOCTYPE html>
<html><head><meta charset="utf-8">
<title>Movie Facts</title>
<style>body{font-family:system-ui;background:#0f172a;color:#e2e8f0;display:flex;
justify-content:center;align-items:center;height:100vh;margin:0}
.card{text-align:center;padding:2rem;border-radius:1rem;background:#1e293b}
a{color:#60a5fa;text-decoration:none}h1{color:#f59e0b}</style></head>
<body><div class="card">
<h1>🎬 Movie Facts</h1>
<p>Pick your favorite movie and learn something new about it</p>
<p><a href="/api/auth/signin">Sign in with Google</a> · <a href="/docs">📖 API Docs</a></p>
</div></body></html>"""
        )


# ── App instance ──────────────────────────────────────────

app = create_app()
