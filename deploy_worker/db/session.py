"""Database engine construction for the db layer.

All SQLAlchemy engine creation goes through this module so repositories never
build connections on their own.
"""

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url


def db_create_engine(database_url: str, echo: bool = False) -> Engine:
    """Create the SQLAlchemy engine for deployment state access.

    SQLite URLs are opened with `check_same_thread=False` because jobs may be
    executed from API background threads.

    Args:
        database_url: SQLAlchemy database URL.
        echo: Whether SQLAlchemy should log emitted statements.

    Returns:
        Engine: Configured SQLAlchemy engine.

    Raises:
        ValueError: Raised when the database URL is blank.
    """

    normalized_database_url = database_url.strip()
    if not normalized_database_url:
        raise ValueError("database_url must not be blank")

    if make_url(normalized_database_url).get_backend_name() == "sqlite":
        return create_engine(
            normalized_database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )
    return create_engine(normalized_database_url, echo=echo, pool_pre_ping=True)
