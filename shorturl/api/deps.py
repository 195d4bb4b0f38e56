from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import settings
from ..database import get_session_factory
from ..services.manager import ShortUrlManager
from ..utils import CodeGenerator

generator = CodeGenerator(length=settings.CODE_LENGTH, max_attempts=settings.MAX_CODE_ATTEMPTS)

def get_manager(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ShortUrlManager:
    return ShortUrlManager(session_factory, generator=generator, enforce_expiry=settings.ENFORCE_EXPIRY)
