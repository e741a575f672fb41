"""Encrypted OAuth token storage."""

import logging
from datetime import datetime

from fundbadge.services.encryption import TokenEncryptor
from fundbadge.storage.repository import Database, UserTokenRepository

logger = logging.getLogger(__name__)


class TokenStorage:
    """Stores GitHub OAuth tokens encrypted at rest.

    ``get_user_token`` is the credential lookup used by the funding
    pipeline; it decrypts the token and stamps ``last_used_at``.
    """

    def __init__(self, db: Database, encryptor: TokenEncryptor) -> None:
        self.db = db
        self.encryptor = encryptor

    async def save_user_token(
        self,
        github_username: str,
        github_user_id: str,
        access_token: str,
        scope: str,
        expires_at: datetime | None = None,
    ) -> None:
        async with self.db.get_session() as session:
            await UserTokenRepository(session).upsert(
                github_username=github_username,
                github_user_id=github_user_id,
                access_token=self.encryptor.encrypt(access_token),
                scope=scope,
                expires_at=expires_at,
            )
        logger.info(f"User token saved for {github_username}")

    async def get_user_token(self, github_username: str) -> str | None:
        async with self.db.get_session() as session:
            repo = UserTokenRepository(session)
            record = await repo.get_by_username(github_username)
            if record is None:
                return None
            await repo.touch(record)
            return self.encryptor.decrypt(record.access_token)

    async def delete_user_token(self, github_username: str) -> bool:
        async with self.db.get_session() as session:
            deleted = await UserTokenRepository(session).delete(github_username)
        if deleted:
            logger.info(f"User token deleted for {github_username}")
        return deleted

    async def has_token(self, github_username: str) -> bool:
        async with self.db.get_session() as session:
            return await UserTokenRepository(session).count(github_username) > 0
