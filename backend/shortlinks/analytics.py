"""
Click recording and reporting.

A mapping's ``click_count`` counts unique visitors per UTC day, summed
across days: repeat visits from one IP on the same day are kept in the
click log but do not bump the counter. ``unique_clicks`` in a report is
the number of distinct IPs over the whole history of the code.

Only the current UTC day's visitors are kept for deduplication, and only
the most recent clicks per code are kept for reports; the full log lives
in the store.
"""

from collections import defaultdict, deque
from datetime import date, datetime, timezone
from typing import Callable, Deque, Dict, Optional, Set, Tuple

from .entities import AnalyticsReport, ClickEvent
from .errors import NotFound
from .logging_config import get_logger
from .store import MappingStore

logger = get_logger(__name__)

RECENT_CLICKS_LIMIT = 10


def utc_day(timestamp: datetime) -> date:
    return timestamp.astimezone(timezone.utc).date()


class ClickAnalytics:
    """Derived click indexes over the store's click log."""

    def __init__(
        self,
        store: MappingStore,
        clock: Optional[Callable[[], datetime]] = None,
        recent_limit: int = RECENT_CLICKS_LIMIT,
    ):
        self.store = store
        self.clock = clock or store.clock
        self.recent_limit = max(recent_limit, 0)

        self._recent: Dict[str, Deque[ClickEvent]] = defaultdict(self._new_recent)
        self._ips: Dict[str, Set[str]] = defaultdict(set)
        self._day: date = utc_day(self.clock())
        self._seen_today: Set[Tuple[str, str]] = set()

        with store.lock:
            for event in store.clicks():
                self._index(event)

    def _new_recent(self) -> Deque[ClickEvent]:
        return deque(maxlen=self.recent_limit)

    def _roll_day(self, day: date) -> None:
        """Forget the visitors of any day other than ``day``."""
        if day != self._day:
            self._day = day
            self._seen_today.clear()

    def _index(self, event: ClickEvent) -> None:
        self._recent[event.short_code].append(event)
        self._ips[event.short_code].add(event.ip)
        if utc_day(event.timestamp) == self._day:
            self._seen_today.add((event.short_code, event.ip))

    def record(self, short_code: str, ip: str, user_agent: str = "") -> ClickEvent:
        """
        Append a click for ``short_code`` and count it if it is the first
        one from ``ip`` for this code on the current UTC day.

        Raises:
            NotFound: no mapping exists under ``short_code``.
            PersistenceError: the click could not be saved; nothing changed.
        """
        with self.store.lock:
            mapping = self.store.get(short_code)
            if mapping is None:
                raise NotFound()

            event = ClickEvent(
                timestamp=self.clock(),
                ip=ip,
                user_agent=user_agent or "",
                short_code=short_code,
            )
            self._roll_day(utc_day(event.timestamp))
            first_today = (short_code, ip) not in self._seen_today

            self.store.append_click(event, increment=first_today and mapping.is_active)
            self._index(event)

        if not first_today:
            logger.debug(f"Repeat click on {short_code} from {ip} today; not counted")
        return event

    def report(self, short_code: str) -> AnalyticsReport:
        """
        Aggregate clicks for ``short_code``, active or not.

        An alias past its expiry is reported inactive even before the
        sweep or a lookup has deactivated it.
        """
        with self.store.lock:
            mapping = self.store.get(short_code)
            if mapping is None:
                raise NotFound()

            return AnalyticsReport(
                short_code=mapping.short_code,
                original_url=mapping.original_url,
                total_clicks=mapping.click_count,
                unique_clicks=len(self._ips.get(short_code, ())),
                recent_clicks=list(self._recent.get(short_code, ())),
                created_at=mapping.created_at,
                expires_at=mapping.expires_at,
                is_active=mapping.is_active and not mapping.is_expired(self.clock()),
            )
