"""Repository pattern for database access."""

from datetime import UTC, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from fundbadge.storage.models import Base, UserToken


class Database:
    """Database connection manager."""

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self._engine = None
        self._session_factory = None

    async def connect(self) -> None:
        """Initialize database connection."""
        if self._engine is None:
            kwargs: dict = {"echo": self.echo}
            if "sqlite" in self.url:
                kwargs["connect_args"] = {"check_same_thread": False}
            else:
                kwargs["pool_size"] = 5
                kwargs["max_overflow"] = 10
            self._engine = create_async_engine(self.url, **kwargs)
            self._session_factory = async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def create_tables(self) -> None:
        """Create all tables."""
        if self._engine:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

    def get_session(self) -> AsyncSession:
        """Get a database session."""
        if self._session_factory is None:
            raise RuntimeError("Database not connected")
        return self._session_factory()


class UserTokenRepository:
    """Repository for stored OAuth tokens."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_username(self, github_username: str) -> UserToken | None:
        """Get a token record by GitHub username."""
        result = await self.session.execute(
            select(UserToken).where(UserToken.github_username == github_username)
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        github_username: str,
        github_user_id: str,
        access_token: str,
        scope: str,
        expires_at: datetime | None = None,
    ) -> UserToken:
        """Insert or update the token record for a username."""
        record = await self.get_by_username(github_username)
        if record is None:
            record = UserToken(
                github_username=github_username,
                github_user_id=github_user_id,
                access_token=access_token,
                scope=scope,
                expires_at=expires_at,
            )
            self.session.add(record)
        else:
            record.github_user_id = github_user_id
            record.access_token = access_token
            record.scope = scope
            record.expires_at = expires_at
            record.updated_at = datetime.now(UTC)

        await self.session.commit()
        await self.session.refresh(record)
        return record

    async def touch(self, record: UserToken) -> None:
        """Record that a token was just used."""
        record.last_used_at = datetime.now(UTC)
        await self.session.commit()

    async def delete(self, github_username: str) -> bool:
        """Delete the token record for a username."""
        result = await self.session.execute(
            delete(UserToken).where(UserToken.github_username == github_username)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def count(self, github_username: str) -> int:
        """Count token records for a username."""
        result = await self.session.execute(
            select(func.count(UserToken.id)).where(
                UserToken.github_username == github_username
            )
        )
        return result.scalar_one()
