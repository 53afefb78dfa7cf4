from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Centralized session factory so routers never build their own."""
    return async_sessionmaker(
        autocommit=False,
        class_=AsyncSession,
        autoflush=True,
        expire_on_commit=False,
        bind=engine,
    )
