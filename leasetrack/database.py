"""
Single async engine and session factory for leasetrack.

The API and the suggestion pipeline share the same connection pool. The
pipeline opens one session per concurrent write, so it takes the session
*factory* rather than a session.
"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from leasetrack.config import DATABASE_URL

# Connection timeout (seconds) so a stalled DB does not hang a batch forever
_connect_args = {"timeout": 15} if "asyncpg" in DATABASE_URL else {}
engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    connect_args=_connect_args,
    pool_size=5,
    max_overflow=5,
    pool_pre_ping=True,
    pool_recycle=300,
)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


def get_session_factory() -> async_sessionmaker:
    return AsyncSessionLocal
