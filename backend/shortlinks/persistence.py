"""
Persistence providers for the engine state.

A provider loads the full StoreState at start-up and saves a full snapshot
after every mutation. Providers raise PersistenceError on any failure so
the store can roll back its in-memory change.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from .database import Base, make_engine, make_session_factory
from .entities import ClickEvent, Mapping, StoreState
from .errors import PersistenceError
from .logging_config import get_logger
from .models import Click, Link

logger = get_logger(__name__)


class StateRepository(ABC):
    """Durable home of the mapping table and the click log."""

    @abstractmethod
    def load(self) -> StoreState:
        """Return the last saved state, or an empty one."""

    @abstractmethod
    def save(self, state: StoreState) -> None:
        """Persist the full snapshot. Raises PersistenceError on failure."""

    def describe(self) -> str:
        return type(self).__name__

    def close(self) -> None:
        pass


class MemoryRepository(StateRepository):
    """Keeps a private deep copy of the last saved state."""

    def __init__(self, state: Optional[StoreState] = None):
        self._state = state.model_copy(deep=True) if state else StoreState()
        self.save_count = 0

    def load(self) -> StoreState:
        return self._state.model_copy(deep=True)

    def save(self, state: StoreState) -> None:
        self._state = state.model_copy(deep=True)
        self.save_count += 1

    def describe(self) -> str:
        return "memory"


def _write_json_atomic(path: Path, payload: Any) -> None:
    """Write JSON to a temp file beside ``path`` and rename it into place."""
    _write_bytes_atomic(path, json.dumps(payload, indent=2).encode("utf-8"))


def _write_bytes_atomic(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def _read_bytes(path: Path) -> Optional[bytes]:
    return path.read_bytes() if path.exists() else None


def _read_json(path: Path) -> Any:
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


class JsonFileRepository(StateRepository):
    """
    Stores mappings and clicks in two JSON documents.

    ``data_file`` holds ``{"url_mappings": {...}, "alias_mappings": {...}}``
    keyed by short code; alias mappings appear in both tables.
    ``analytics_file`` holds the click log as a JSON array. The click log
    is written first and put back if the mappings write then fails, so a
    failed save leaves both files as they were.
    """

    def __init__(self, data_file: str, analytics_file: str):
        self.data_file = Path(data_file)
        self.analytics_file = Path(analytics_file)

    def load(self) -> StoreState:
        try:
            data = _read_json(self.data_file) or {}
            clicks_raw = _read_json(self.analytics_file) or []
        except (OSError, ValueError) as e:
            logger.error(f"Error loading data from {self.data_file}: {e}")
            raise PersistenceError(f"Failed to load stored data: {e}") from e

        mappings: Dict[str, Mapping] = {}
        for table in ("url_mappings", "alias_mappings"):
            for code, raw in (data.get(table) or {}).items():
                if code not in mappings:
                    mappings[code] = Mapping.model_validate(raw)

        clicks = [ClickEvent.model_validate(raw) for raw in clicks_raw]
        logger.info(f"Loaded {len(mappings)} mappings and {len(clicks)} clicks from {self.data_file}")
        return StoreState(mappings=list(mappings.values()), clicks=clicks)

    def save(self, state: StoreState) -> None:
        url_mappings: Dict[str, Any] = {}
        alias_mappings: Dict[str, Any] = {}
        for mapping in state.mappings:
            raw = mapping.model_dump(mode="json", exclude_none=True)
            url_mappings[mapping.short_code] = raw
            if mapping.is_alias:
                alias_mappings[mapping.short_code] = raw
        clicks: List[Any] = [click.model_dump(mode="json") for click in state.clicks]

        try:
            previous_clicks = _read_bytes(self.analytics_file)
            _write_json_atomic(self.analytics_file, clicks)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save clicks to {self.analytics_file}: {e}")
            raise PersistenceError() from e

        try:
            _write_json_atomic(
                self.data_file,
                {"url_mappings": url_mappings, "alias_mappings": alias_mappings},
            )
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save data to {self.data_file}: {e}")
            self._restore_clicks(previous_clicks)
            raise PersistenceError() from e

    def _restore_clicks(self, previous: Optional[bytes]) -> None:
        """Put the click log back as it was before a failed save."""
        try:
            if previous is None:
                self.analytics_file.unlink()
            else:
                _write_bytes_atomic(self.analytics_file, previous)
        except OSError as e:
            logger.error(f"Could not restore {self.analytics_file} after failed save: {e}")
            raise PersistenceError(f"Click log may not match stored links: {e}") from e

    def describe(self) -> str:
        return f"json:{self.data_file}"


class SqlRepository(StateRepository):
    """Stores the snapshot in the ``links`` and ``clicks`` tables."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = make_engine(database_url)
        self.SessionLocal = make_session_factory(self.engine)
        Base.metadata.create_all(bind=self.engine)

    def load(self) -> StoreState:
        try:
            with self.SessionLocal() as session:
                links = session.scalars(select(Link).order_by(Link.created_at, Link.id)).all()
                clicks = session.scalars(select(Click).order_by(Click.id)).all()
                state = StoreState(
                    mappings=[
                        Mapping(
                            id=link.id,
                            original_url=link.original_url,
                            short_code=link.short_code,
                            custom_alias=link.custom_alias,
                            created_at=link.created_at,
                            expires_at=link.expires_at,
                            click_count=link.click_count,
                            is_active=link.is_active,
                        )
                        for link in links
                    ],
                    clicks=[
                        ClickEvent(
                            timestamp=click.timestamp,
                            ip=click.ip,
                            user_agent=click.user_agent or "",
                            short_code=click.short_code,
                        )
                        for click in clicks
                    ],
                )
        except SQLAlchemyError as e:
            logger.error(f"Error loading data from database: {e}")
            raise PersistenceError(f"Failed to load stored data: {e}") from e

        logger.info(f"Loaded {len(state.mappings)} mappings and {len(state.clicks)} clicks from database")
        return state

    def save(self, state: StoreState) -> None:
        try:
            with self.SessionLocal.begin() as session:
                session.execute(delete(Click))
                session.execute(delete(Link))
                session.add_all([
                    Link(
                        id=mapping.id,
                        short_code=mapping.short_code,
                        original_url=mapping.original_url,
                        custom_alias=mapping.custom_alias,
                        created_at=mapping.created_at,
                        expires_at=mapping.expires_at,
                        click_count=mapping.click_count,
                        is_active=mapping.is_active,
                    )
                    for mapping in state.mappings
                ])
                session.add_all([
                    Click(
                        short_code=click.short_code,
                        timestamp=click.timestamp,
                        ip=click.ip,
                        user_agent=click.user_agent,
                    )
                    for click in state.clicks
                ])
        except SQLAlchemyError as e:
            logger.error(f"Failed to save data to database: {e}")
            raise PersistenceError() from e

    def describe(self) -> str:
        return f"sql:{self.engine.url.render_as_string(hide_password=True)}"

    def close(self) -> None:
        self.engine.dispose()


def repository_from_settings(settings) -> StateRepository:
    """Build the provider selected by ``STORAGE_BACKEND``."""
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "json":
        return JsonFileRepository(settings.DATA_FILE, settings.ANALYTICS_FILE)
    if backend == "sql":
        return SqlRepository(settings.DATABASE_URL)
    if backend == "memory":
        return MemoryRepository()
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
