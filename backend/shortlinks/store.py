"""
The authoritative table of short codes.

Generated codes and custom aliases share one key space. Every alias
mapping is indexed in the code table and in the alias index, and lookups
consult both, so callers never need to know which kind a code is.

All state lives behind ``MappingStore.lock``. The same lock guards the
click log and is shared with ClickAnalytics, so every check-then-act
sequence in the engine runs inside a single critical section.
"""

import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from .aliases import AliasValidator
from .codes import CodeGenerator
from .entities import ClickEvent, Mapping, StoreState
from .errors import Expired, InvalidURL, NotFound, PersistenceError
from .logging_config import get_logger
from .persistence import StateRepository
from .utils import is_valid_url, utc_now

logger = get_logger(__name__)

DEFAULT_ALIAS_TTL = timedelta(days=30)


class MappingStore:
    """Mapping table, alias index and click log with durable snapshots."""

    def __init__(
        self,
        repository: StateRepository,
        generator: Optional[CodeGenerator] = None,
        validator: Optional[AliasValidator] = None,
        clock: Callable[[], datetime] = utc_now,
        alias_ttl: timedelta = DEFAULT_ALIAS_TTL,
    ):
        self.repository = repository
        self.generator = generator or CodeGenerator()
        self.validator = validator or AliasValidator()
        self.clock = clock
        self.alias_ttl = alias_ttl
        self.lock = threading.RLock()

        self._codes: Dict[str, Mapping] = {}
        self._aliases: Dict[str, Mapping] = {}
        self._clicks: List[ClickEvent] = []

        state = repository.load()
        for mapping in state.mappings:
            self._add(mapping)
        self._clicks.extend(state.clicks)

    def _add(self, mapping: Mapping) -> None:
        self._codes[mapping.short_code] = mapping
        if mapping.is_alias:
            self._aliases[mapping.short_code] = mapping

    def _discard(self, mapping: Mapping) -> None:
        self._codes.pop(mapping.short_code, None)
        self._aliases.pop(mapping.short_code, None)

    def _lookup(self, code: str) -> Optional[Mapping]:
        mapping = self._codes.get(code)
        if mapping is None:
            mapping = self._aliases.get(code)
        return mapping

    def _commit(self, undo: Callable[[], None]) -> None:
        """Persist the snapshot; on failure revert the in-memory change."""
        try:
            self.repository.save(self.snapshot())
        except PersistenceError:
            undo()
            raise

    @staticmethod
    def _require_valid_url(original_url: str) -> None:
        if not is_valid_url(original_url):
            raise InvalidURL()

    def __contains__(self, code: str) -> bool:
        with self.lock:
            return code in self._codes or code in self._aliases

    def __len__(self) -> int:
        with self.lock:
            return len(self._codes)

    def get(self, code: str) -> Optional[Mapping]:
        """Return a copy of the mapping under ``code``, active or not."""
        with self.lock:
            mapping = self._lookup(code)
            return mapping.model_copy() if mapping else None

    def mappings(self, active_only: bool = False) -> List[Mapping]:
        with self.lock:
            found = [
                m.model_copy() for m in self._codes.values()
                if m.is_active or not active_only
            ]
        return sorted(found, key=lambda m: m.created_at)

    def clicks(self) -> List[ClickEvent]:
        with self.lock:
            return list(self._clicks)

    def snapshot(self) -> StoreState:
        with self.lock:
            return StoreState(mappings=list(self._codes.values()), clicks=list(self._clicks))

    def insert_generated(self, original_url: str) -> Mapping:
        """Allocate a fresh code for ``original_url``. Never expires."""
        self._require_valid_url(original_url)

        with self.lock:
            code = self.generator.allocate(self.__contains__)
            mapping = Mapping(
                original_url=original_url,
                short_code=code,
                created_at=self.clock(),
            )
            self._add(mapping)
            self._commit(lambda: self._discard(mapping))
            created = mapping.model_copy()

        logger.info(f"Created link: {code} -> {original_url[:50]}")
        return created

    def insert_alias(self, original_url: str, alias: str) -> Mapping:
        """
        Bind ``alias`` to ``original_url`` for ``alias_ttl``.

        Validation and insertion happen under one lock acquisition, so two
        requests for the same alias cannot both pass the availability check.
        """
        self._require_valid_url(original_url)

        with self.lock:
            self.validator.validate(alias, is_taken=self.__contains__)
            now = self.clock()
            mapping = Mapping(
                original_url=original_url,
                short_code=alias,
                custom_alias=alias,
                created_at=now,
                expires_at=now + self.alias_ttl,
            )
            self._add(mapping)
            self._commit(lambda: self._discard(mapping))
            created = mapping.model_copy()

        logger.info(f"Created alias: {alias} -> {original_url[:50]} (expires {created.expires_at})")
        return created

    def resolve(self, code: str) -> Mapping:
        """
        Return the active mapping under ``code``.

        Raises:
            NotFound: no mapping, or the mapping is inactive.
            Expired: the mapping was active but past its expiry; it is
                deactivated and persisted before this is raised.
        """
        with self.lock:
            mapping = self._lookup(code)
            if mapping is None or not mapping.is_active:
                raise NotFound()

            if mapping.is_expired(self.clock()):
                mapping.is_active = False
                self._commit(lambda: setattr(mapping, "is_active", True))
                logger.info(f"Deactivated expired alias on lookup: {code}")
                raise Expired()

            return mapping.model_copy()

    def sweep_expired(self) -> int:
        """Deactivate every active mapping past its expiry. Idempotent."""
        with self.lock:
            now = self.clock()
            expired = [m for m in self._codes.values() if m.is_active and m.is_expired(now)]
            if not expired:
                return 0

            for mapping in expired:
                mapping.is_active = False

            def undo():
                for m in expired:
                    m.is_active = True

            self._commit(undo)

        logger.info(f"Deactivated {len(expired)} expired aliases")
        return len(expired)

    def deactivate(self, code: str) -> Mapping:
        """Soft-delete the mapping under ``code``; its history is kept."""
        with self.lock:
            mapping = self._lookup(code)
            if mapping is None:
                raise NotFound()

            if mapping.is_active:
                mapping.is_active = False
                self._commit(lambda: setattr(mapping, "is_active", True))
                logger.info(f"Deactivated link: {code}")

            return mapping.model_copy()

    def append_click(self, event: ClickEvent, increment: bool) -> None:
        """Append ``event`` to the click log, optionally counting it."""
        with self.lock:
            mapping = self._lookup(event.short_code)
            counted = increment and mapping is not None

            self._clicks.append(event)
            if counted:
                mapping.click_count += 1

            def undo():
                self._clicks.pop()
                if counted:
                    mapping.click_count -= 1

            self._commit(undo)
