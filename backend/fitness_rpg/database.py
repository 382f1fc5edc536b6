"""Database handle and session management."""

from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from fitness_rpg.exceptions import PersistenceError

# Base class for models
Base = declarative_base()


class Database:
    """
    Explicitly constructed store handle.

    Nothing connects until ``open()`` is called; ``close()`` disposes the
    connection pool. The handle is passed to whoever needs sessions instead
    of being reached through module state.
    """
    
    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine_kwargs = engine_kwargs
        self.engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
    
    @property
    def is_open(self) -> bool:
        return self.engine is not None
    
    def open(self) -> "Database":
        """Create the engine and session factory. Opening twice is a no-op."""
        if self.engine is not None:
            return self
        
        kwargs = {"pool_pre_ping": True}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # In-memory databases live as long as their one connection
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_size"] = 5
            kwargs["max_overflow"] = 10
        kwargs.update(self.engine_kwargs)
        
        self.engine = create_engine(self.url, **kwargs)
        self._session_factory = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )
        return self
    
    def create_all(self) -> None:
        """Create tables for every registered model."""
        import fitness_rpg.models  # noqa: F401  (registers tables on Base)
        
        if self.engine is None:
            raise PersistenceError("Database is not open")
        Base.metadata.create_all(bind=self.engine)
    
    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self._session_factory = None
    
    @contextmanager
    def session(self) -> Iterator[Session]:
        """Check out a session; it is closed on every exit path."""
        if self._session_factory is None:
            raise PersistenceError("Database is not open")
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()


def get_db(request: Request) -> Iterator[Session]:
    """Dependency for getting database session."""
    database: Database = request.app.state.database
    with database.session() as db:
        yield db
