from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from .aliases import AliasValidator
from .analytics import ClickAnalytics
from .codes import CodeGenerator
from .config import Settings
from .entities import AnalyticsReport, Mapping
from .errors import Expired, NotFound, ValidationError
from .logging_config import get_logger
from .persistence import StateRepository, repository_from_settings
from .store import MappingStore
from .utils import utc_now

logger = get_logger(__name__)


class ResolutionService:
    """Entry point for creating, resolving and reporting on short links."""
    
    def __init__(self, store: MappingStore, analytics: ClickAnalytics):
        self.store = store
        self.analytics = analytics
    
    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
        repository: Optional[StateRepository] = None,
    ) -> "ResolutionService":
        """Wire the engine together from configuration."""
        store = MappingStore(
            repository or repository_from_settings(settings),
            generator=CodeGenerator(
                length=settings.DEFAULT_CODE_LENGTH,
                max_attempts=settings.MAX_CODE_ATTEMPTS,
            ),
            validator=AliasValidator(
                min_length=settings.MIN_ALIAS_LENGTH,
                max_length=settings.MAX_ALIAS_LENGTH,
            ),
            clock=clock,
            alias_ttl=timedelta(days=settings.ALIAS_EXPIRY_DAYS),
        )
        analytics = ClickAnalytics(store, recent_limit=settings.RECENT_CLICKS_LIMIT)
        logger.info(f"Engine ready with {len(store)} mappings ({store.repository.describe()})")
        return cls(store, analytics)
    
    def create(self, original_url: str, custom_alias: Optional[str] = None) -> Mapping:
        """
        Create a short link, under ``custom_alias`` when one is given.
        
        Raises:
            ValidationError: bad URL or rejected alias.
            CapacityExhausted: no free generated code could be found.
            PersistenceError: the new mapping could not be saved.
        """
        try:
            if custom_alias:
                return self.store.insert_alias(original_url, custom_alias)
            return self.store.insert_generated(original_url)
        except ValidationError as e:
            logger.warning(f"Rejected create for {original_url[:50]!r}: {e.code}")
            raise
    
    def resolve(self, code: str, client_ip: str, user_agent: str = "") -> Mapping:
        """
        Look up ``code`` and record the click in the same critical section.
        
        Expired aliases are reported as NotFound.
        """
        with self.store.lock:
            try:
                mapping = self.store.resolve(code)
            except Expired:
                raise NotFound() from None
            self.analytics.record(mapping.short_code, client_ip, user_agent)
            return self.store.get(mapping.short_code)
    
    def report(self, code: str) -> AnalyticsReport:
        return self.analytics.report(code)
    
    def sweep_expired(self) -> int:
        count = self.store.sweep_expired()
        if count > 0:
            logger.info(f"Sweep deactivated {count} expired aliases")
        return count
    
    def deactivate(self, code: str) -> Mapping:
        return self.store.deactivate(code)
    
    def list_mappings(self, active_only: bool = False) -> List[Mapping]:
        return self.store.mappings(active_only=active_only)
    
    def health_check(self) -> Dict[str, Any]:
        return {
            "storage": self.store.repository.describe(),
            "mappings": len(self.store),
        }
    
    def close(self) -> None:
        self.store.repository.close()
