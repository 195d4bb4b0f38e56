from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, or_, case, literal
from sqlalchemy.exc import IntegrityError
from .models import ShortUrl, UtcDateTime
from typing import Optional, List
from datetime import datetime

CODE_CONSTRAINT_MARKERS = ("uq_short_urls_code", "short_urls.code")

def is_code_conflict(exc: IntegrityError) -> bool:
    # PostgreSQL names the constraint, SQLite names the column
    message = str(exc.orig).lower()
    return any(marker in message for marker in CODE_CONSTRAINT_MARKERS)

def _not_expired(now: Optional[datetime]):
    if now is None:
        return ()
    return (or_(ShortUrl.expires_at.is_(None), ShortUrl.expires_at > now),)

async def exists(db: AsyncSession, code: str) -> bool:
    result = await db.execute(select(ShortUrl.id).where(ShortUrl.code == code).limit(1))
    return result.first() is not None

async def insert(db: AsyncSession, record: ShortUrl) -> ShortUrl:
    db.add(record)
    # Flushing surfaces the unique constraint while the transaction is still open
    await db.flush()
    return record

async def find_by_code(db: AsyncSession, code: str, for_update: bool = False) -> Optional[ShortUrl]:
    stmt = select(ShortUrl).where(ShortUrl.code == code)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()

async def find_by_code_active(db: AsyncSession, code: str, now: Optional[datetime] = None) -> Optional[ShortUrl]:
    result = await db.execute(
        select(ShortUrl).where(ShortUrl.code == code, ShortUrl.is_active.is_(True), *_not_expired(now))
    )
    return result.scalar_one_or_none()

async def increment_click(
    db: AsyncSession,
    code: str,
    now: datetime,
    expires_after: Optional[datetime] = None,
) -> Optional[ShortUrl]:
    result = await db.execute(
        update(ShortUrl)
        .where(ShortUrl.code == code, ShortUrl.is_active.is_(True), *_not_expired(expires_after))
        .values(
            click_count=ShortUrl.click_count + 1,
            # Never move backwards when concurrent clicks commit out of order
            last_click_at=case((ShortUrl.last_click_at > now, ShortUrl.last_click_at), else_=literal(now, UtcDateTime())),
            updated_at=now,
        )
        .returning(ShortUrl)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()

async def save(db: AsyncSession, record: ShortUrl) -> ShortUrl:
    db.add(record)
    await db.flush()
    return record

async def delete(db: AsyncSession, record: ShortUrl):
    await db.delete(record)
    await db.flush()

async def list_all(db: AsyncSession) -> List[ShortUrl]:
    result = await db.execute(select(ShortUrl).order_by(ShortUrl.id))
    return list(result.scalars().all())
