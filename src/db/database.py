"""Dataset store: one SQLite connection pool per open dataset."""

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from sqlalchemy import (
    Engine,
    create_engine,
    event as sa_event,
    func,
    inspect,
    select,
    text,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.config import settings
from src.core.catalog.errors import StoreNotOpenError, StoreOpenError
from src.core.logging import get_logger
from src.db.models import Base, EquipmentStatsModel, ItemModel, LocalizedItemModel

logger = get_logger(__name__)


def _unicode_lower(value: object) -> object:
    return value.lower() if isinstance(value, str) else value


class DatasetStore:
    """Owns the engine for exactly one dataset at a time.

    Usage::

        store = DatasetStore()
        store.open("1. Live/ItemDatabase.sqlite")
        with store.session() as db:
            ...
        store.close()

    ``open`` on an already open store closes the previous dataset first.
    """

    def __init__(self) -> None:
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker[Session]] = None
        self._location: Optional[Path] = None

    def __enter__(self) -> "DatasetStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def location(self) -> Optional[Path]:
        return self._location

    def open(self, location: str | Path) -> "DatasetStore":
        """Open (or create) the SQLite file at ``location``.

        A file that did not exist before gets the schema created.
        Raises StoreOpenError when the storage cannot be opened or an
        existing file lacks the item tables.
        """
        self.close()

        path = Path(location)
        # 0바이트 파일은 이전 생성이 중단된 것으로 보고 새로 만든다
        create_new = not path.exists() or (path.is_file() and path.stat().st_size == 0)

        engine = create_engine(
            f"sqlite:///{path}",
            connect_args={"check_same_thread": False},  # searches run off-thread
            echo=settings.DEBUG,
        )

        @sa_event.listens_for(engine, "connect")
        def _register_functions(dbapi_conn, connection_record):
            # SQLite 내장 lower()는 ASCII만 처리한다
            dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)

        missing: list[str] = []
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT count(*) FROM sqlite_master"))
                if not create_new:
                    inspector = inspect(conn)
                    missing = [
                        name
                        for name in Base.metadata.tables
                        if not inspector.has_table(name)
                    ]
        except SQLAlchemyError as e:
            engine.dispose()
            raise StoreOpenError(path, str(e)) from e

        # A SQLite file without the item tables belongs to some other tool
        if missing:
            engine.dispose()
            raise StoreOpenError(
                path, f"not an item database (missing tables: {', '.join(sorted(missing))})"
            )

        self._engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autocommit=False, autoflush=False
        )
        self._location = path

        if create_new:
            try:
                self.create_schema()
            except SQLAlchemyError as e:
                self.close()
                raise StoreOpenError(path, f"schema creation failed: {e}") from e

        logger.info(
            "Opened dataset store %s (%s)", path, "new" if create_new else "existing"
        )
        return self

    def create_schema(self) -> None:
        """Create the three tables and their indexes on a fresh file."""
        Base.metadata.create_all(bind=self._require_engine())
        logger.info("Created dataset schema at %s", self._location)

    def close(self) -> None:
        """Release the engine. Safe to call when nothing is open."""
        if self._engine is None:
            return
        self._engine.dispose()
        logger.debug("Closed dataset store %s", self._location)
        self._engine = None
        self._session_factory = None
        self._location = None

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Yield a session and ensure it is closed after use."""
        if self._session_factory is None:
            raise StoreNotOpenError("No dataset store is open")
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """Yield a session inside one transaction: commit on success, rollback on error."""
        with self.session() as db:
            with db.begin():
                yield db

    def is_empty(self) -> bool:
        """True iff the items table has no rows."""
        with self.session() as db:
            count = db.scalar(select(func.count()).select_from(ItemModel))
        return count == 0

    def counts(self) -> dict[str, int]:
        """Row counts per table."""
        with self.session() as db:
            return {
                model.__tablename__: db.scalar(
                    select(func.count()).select_from(model)
                )
                or 0
                for model in (ItemModel, EquipmentStatsModel, LocalizedItemModel)
            }

    def _require_engine(self) -> Engine:
        if self._engine is None:
            raise StoreNotOpenError("No dataset store is open")
        return self._engine
