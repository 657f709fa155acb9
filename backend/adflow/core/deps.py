from collections.abc import AsyncGenerator

from fastapi import Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from adflow.core.config import settings
from adflow.core.idempotency import check_idempotency
from adflow.db.session import async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield one async session per request; closed when the request ends."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def idempotency_guard(
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
) -> None:
    """Reject a replayed Idempotency-Key. Requests without the header pass."""
    if not idempotency_key:
        return
    if not await check_idempotency(idempotency_key, ttl=settings.idempotency_ttl_seconds):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Duplicate request (Idempotency-Key already used)",
        )
