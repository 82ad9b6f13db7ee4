"""
Movie Facts — User Preference Store

Thin wrapper over the ORM: read a user by id, update their favorite
movie. Storage errors propagate unchanged to the caller.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, select

from app.database import Database, User, utcnow
from app.errors import UserNotFoundError, clean_title

logger = logging.getLogger(__name__)


class PreferenceStore:
    """Per-user favorite-movie persistence."""

    def __init__(self, database: Database):
        self.database = database

    async def fetch_by_id(self, user_id: str) -> Optional[User]:
        async with self.database.session() as session:
            return await session.get(User, user_id)

    async def set_favorite(self, user_id: str, title: str) -> User:
        """
        Store `title` (trimmed) as the user's favorite movie.

        Raises InvalidTitleError before touching storage when the title is
        blank, and UserNotFoundError when the user does not exist.
        """
        title = clean_title(title)

        async with self.database.session() as session:
            user = await session.get(User, user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            user.favorite_movie = title
            user.updated_at = utcnow()
            await session.commit()
            await session.refresh(user)

        logger.info("User %s favorite movie set to %r", user_id, title)
        return user

    async def count_users(self) -> int:
        async with self.database.session() as session:
            result = await session.execute(select(func.count()).select_from(User))
            return int(result.scalar_one())
