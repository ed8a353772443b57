from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from credibot.core.config import settings

# Only used when STORAGE_BACKEND="sql"; the engine connects lazily
engine = create_async_engine(settings.DATABASE_URL, echo=False)

AsyncSessionLocal = async_sessionmaker(
    bind=engine, class_=AsyncSession, expire_on_commit=False
)
