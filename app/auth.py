"""
Movie Facts — Authentication

Google sign-in is delegated to Authlib; sign-in sessions are persisted
through the ORM and referenced from Starlette's signed session cookie.
The rest of the application only ever sees an opaque user id, obtained
through the `get_current_user_id` dependency.
"""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Any, Dict, Optional

from authlib.integrations.starlette_client import OAuth, OAuthError
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from app.config import Settings
from app.database import Account, AuthSession, Database, User, utcnow

logger = logging.getLogger(__name__)

SESSION_COOKIE_KEY = "session_token"
PROVIDER = "google"


def create_oauth(settings: Settings) -> OAuth:
    """Build the OAuth registry with the Google OpenID Connect client."""
    oauth = OAuth()
    oauth.register(
        name=PROVIDER,
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        server_metadata_url=settings.google_metadata_url,
        client_kwargs={"scope": "openid email profile"},
    )
    return oauth


# ── Session persistence ───────────────────────────────────


class SessionStore:
    """Users, linked accounts and sign-in sessions."""

    def __init__(self, database: Database, *, max_age: timedelta = timedelta(days=30)):
        self.database = database
        self.max_age = max_age

    async def upsert_oauth_user(
        self,
        provider: str,
        provider_account_id: str,
        *,
        email: Optional[str] = None,
        name: Optional[str] = None,
        image: Optional[str] = None,
    ) -> User:
        """Return the user linked to this provider account, creating both on first sign-in."""
        async with self.database.session() as session:
            result = await session.execute(
                select(User)
                .join(Account)
                .where(Account.provider == provider, Account.provider_account_id == provider_account_id)
            )
            user = result.scalar_one_or_none()

            if user is None:
                user = User(email=email, name=name, image=image)
                user.accounts.append(Account(provider=provider, provider_account_id=provider_account_id))
                session.add(user)
                logger.info("Created user for %s account %s", provider, provider_account_id)
            else:
                user.name = name or user.name
                user.image = image or user.image
                user.updated_at = utcnow()

            await session.commit()
            await session.refresh(user)
            return user

    async def create_session(self, user_id: str) -> AuthSession:
        record = AuthSession(
            session_token=secrets.token_urlsafe(32),
            user_id=user_id,
            expires=utcnow() + self.max_age,
        )
        async with self.database.session() as session:
            session.add(record)
            await session.commit()
        return record

    async def resolve(self, token: Optional[str]) -> Optional[str]:
        """User id for a live session token; expired sessions are removed."""
        if not token:
            return None

        async with self.database.session() as session:
            result = await session.execute(
                select(AuthSession).where(AuthSession.session_token == token)
            )
            record = result.scalar_one_or_none()
            if record is None:
                return None
            if record.expires <= utcnow():
                await session.delete(record)
                await session.commit()
                return None
            return record.user_id

    async def delete(self, token: str) -> None:
        async with self.database.session() as session:
            await session.execute(delete(AuthSession).where(AuthSession.session_token == token))
            await session.commit()


# ── Dependencies ──────────────────────────────────────────


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


async def get_current_user_id(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> str:
    """Opaque id of the signed-in user, or 401."""
    try:
        user_id = await store.resolve(request.session.get(SESSION_COOKIE_KEY))
    except SQLAlchemyError as exc:
        logger.exception("Error resolving session")
        raise HTTPException(status_code=500, detail=f"Internal server error: {exc}")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user_id


# ── Routes ────────────────────────────────────────────────

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/signin")
async def signin(request: Request):
    """Redirect to the Google consent screen."""
    oauth: OAuth = request.app.state.oauth
    redirect_uri = request.url_for("auth_callback")
    return await oauth.google.authorize_redirect(request, str(redirect_uri))


@router.get("/callback/google", name="auth_callback")
async def callback(request: Request, store: SessionStore = Depends(get_session_store)):
    """Finish the OAuth exchange, persist a session and return to the app."""
    oauth: OAuth = request.app.state.oauth
    try:
        token = await oauth.google.authorize_access_token(request)
    except OAuthError as exc:
        logger.warning("OAuth callback rejected: %s", exc.error)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign-in failed")

    userinfo: Dict[str, Any] = token.get("userinfo") or {}
    if not userinfo.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign-in failed")

    user = await store.upsert_oauth_user(
        PROVIDER,
        str(userinfo["sub"]),
        email=userinfo.get("email"),
        name=userinfo.get("name"),
        image=userinfo.get("picture"),
    )
    record = await store.create_session(user.id)
    request.session[SESSION_COOKIE_KEY] = record.session_token
    logger.info("User %s signed in", user.id)
    return RedirectResponse(url="/")


@router.post("/signout")
async def signout(request: Request, store: SessionStore = Depends(get_session_store)):
    token = request.session.pop(SESSION_COOKIE_KEY, None)
    if token:
        await store.delete(token)
    return {"status": "signed_out"}


@router.get("/session")
async def current_session(request: Request, store: SessionStore = Depends(get_session_store)):
    """The signed-in user, or an empty object."""
    user_id = await store.resolve(request.session.get(SESSION_COOKIE_KEY))
    if user_id is None:
        return {}
    async with store.database.session() as session:
        user = await session.get(User, user_id)
    if user is None:
        return {}
    return {"user": {"id": user.id, "name": user.name, "email": user.email, "image": user.image}}
