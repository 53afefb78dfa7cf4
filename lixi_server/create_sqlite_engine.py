import pathlib

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from lixi_server.load_settings import database_url


def create_sqlite_engine(url: str = database_url) -> AsyncEngine:
    """Create the async engine, making sure the SQLite file's folder exists."""
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        pathlib.Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_async_engine(url=url, echo=False)
