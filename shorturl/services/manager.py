"""Business rules for short URL records.

The manager is the only reader and writer of ``ShortUrl`` rows. Each public
operation runs in its own session and transaction. Code uniqueness is
ultimately enforced by the ``uq_short_urls_code`` constraint; the existence
checks made here only let the common case fail early with a clear error.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from functools import partial
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .. import crud
from ..exceptions import CodeConflictError, StorageFailureError, UrlNotFoundError
from ..models import ShortUrl, utcnow
from ..observability import URLS_CREATED_TOTAL
from ..utils import CodeGenerator
from ..validators import is_blank, validate_code, validate_url

logger = logging.getLogger(__name__)


class ShortUrlManager:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        generator: Optional[CodeGenerator] = None,
        enforce_expiry: bool = False,
    ):
        self.session_factory = session_factory
        self.generator = generator or CodeGenerator()
        self.enforce_expiry = enforce_expiry

    @asynccontextmanager
    async def _transaction(self, conflict_code: Optional[str] = None):
        try:
            async with self.session_factory() as db:
                async with db.begin():
                    yield db
        except IntegrityError as exc:
            if conflict_code is not None and crud.is_code_conflict(exc):
                raise CodeConflictError(conflict_code) from exc
            logger.error(f"Integrity violation not tied to a code: {exc.orig}")
            raise StorageFailureError("Storage rejected the write") from exc
        except SQLAlchemyError as exc:
            logger.exception("Storage failure")
            raise StorageFailureError("Storage is unavailable") from exc

    def _expiry_cutoff(self, now: datetime) -> Optional[datetime]:
        return now if self.enforce_expiry else None

    async def create(
        self,
        original_url: str,
        custom_code: Optional[str] = None,
        owner_id: Optional[int] = None,
    ) -> ShortUrl:
        """Persist a new short URL.

        A non-blank ``custom_code`` is used verbatim; otherwise a random code
        is drawn. Raises ``CodeConflictError`` if the custom code is taken.
        """
        original_url = validate_url(original_url)

        if not is_blank(custom_code):
            record = await self._insert(validate_code(custom_code), original_url, owner_id)
        else:
            record = await self._insert_generated(original_url, owner_id)

        URLS_CREATED_TOTAL.inc()
        logger.info(f"Created short URL {record.code} -> {record.original_url}")
        return record

    async def _insert_generated(self, original_url: str, owner_id: Optional[int]) -> ShortUrl:
        # A concurrent writer can still claim the code between the check and the insert
        for _ in range(self.generator.max_attempts):
            async with self._transaction() as db:
                code = await self.generator.generate(partial(crud.exists, db))
            try:
                return await self._insert(code, original_url, owner_id)
            except CodeConflictError:
                logger.warning(f"Generated code {code} was claimed concurrently, drawing another")

        raise StorageFailureError("Could not store a generated code")

    async def _insert(self, code: str, original_url: str, owner_id: Optional[int]) -> ShortUrl:
        async with self._transaction(conflict_code=code) as db:
            if await crud.exists(db, code):
                logger.warning(f"Code conflict on create: {code}")
                raise CodeConflictError(code)

            now = utcnow()
            record = ShortUrl(
                code=code,
                original_url=original_url,
                owner_id=owner_id,
                click_count=0,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            return await crud.insert(db, record)

    async def resolve(self, code: str) -> ShortUrl:
        """Active record for ``code``; inactive and missing records both raise ``UrlNotFoundError``."""
        async with self._transaction() as db:
            record = await crud.find_by_code_active(db, code, now=self._expiry_cutoff(utcnow()))
        if record is None:
            raise UrlNotFoundError(code)
        return record

    async def find_any(self, code: str) -> ShortUrl:
        async with self._transaction() as db:
            record = await crud.find_by_code(db, code)
        if record is None:
            raise UrlNotFoundError(code)
        return record

    async def list(self) -> List[ShortUrl]:
        async with self._transaction() as db:
            return await crud.list_all(db)

    async def record_click(self, code: str) -> ShortUrl:
        """Count one click on the active record and return it.

        Lookup and increment are a single UPDATE, so concurrent clicks on the
        same code never lose an increment.
        """
        now = utcnow()
        async with self._transaction() as db:
            record = await crud.increment_click(db, code, now, expires_after=self._expiry_cutoff(now))
        if record is None:
            raise UrlNotFoundError(code)
        return record

    async def update(
        self,
        code: str,
        original_url: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        custom_code: Optional[str] = None,
    ) -> ShortUrl:
        """Partially update a record in any state. Blank or omitted fields are left alone."""
        new_code = None if is_blank(custom_code) else validate_code(custom_code)
        new_url = None if is_blank(original_url) else validate_url(original_url)

        async with self._transaction(conflict_code=new_code) as db:
            record = await crud.find_by_code(db, code, for_update=True)
            if record is None:
                raise UrlNotFoundError(code)

            if new_code is not None and new_code != record.code:
                if await crud.exists(db, new_code):
                    logger.warning(f"Code conflict on update of {code}: {new_code}")
                    raise CodeConflictError(new_code)
                logger.info(f"Reassigning code {record.code} -> {new_code}")
                record.code = new_code

            if new_url is not None:
                record.original_url = new_url
            if expires_at is not None:
                record.expires_at = expires_at

            record.updated_at = utcnow()
            return await crud.save(db, record)

    async def toggle_active(self, code: str) -> ShortUrl:
        async with self._transaction() as db:
            record = await crud.find_by_code(db, code, for_update=True)
            if record is None:
                raise UrlNotFoundError(code)

            record.is_active = not record.is_active
            record.updated_at = utcnow()
            await crud.save(db, record)

        logger.info(f"Short URL {code} is now {'active' if record.is_active else 'inactive'}")
        return record

    async def delete(self, code: str):
        async with self._transaction() as db:
            record = await crud.find_by_code(db, code, for_update=True)
            if record is None:
                raise UrlNotFoundError(code)
            await crud.delete(db, record)

        logger.info(f"Deleted short URL {code}")
