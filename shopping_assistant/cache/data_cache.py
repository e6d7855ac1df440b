"""In-memory TTL cache for catalog data, policies and brand guidelines.

Live catalog data uses the short TTL (5 minutes by default), slow-changing
documents such as policies use the long one (30 minutes). Expired entries are
dropped lazily on ``get`` and by a periodic sweep that runs on an APScheduler
background thread while the service is started.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    data: Any
    timestamp: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


class DataCache:
    """Process-wide cache service. Construct once, inject into callers."""

    def __init__(self, config: Optional[Config] = None, clock: Callable[[], float] = time.time):
        self.config = config or Config()
        self.catalog_ttl = self.config.CATALOG_CACHE_TTL_SECONDS
        self.policy_ttl = self.config.POLICY_CACHE_TTL_SECONDS
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._scheduler: Optional[BackgroundScheduler] = None

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expired(self._clock()):
                del self._entries[key]
                return None
            return entry.data

    def set(self, key: str, data: Any, ttl: Optional[float] = None) -> None:
        entry = CacheEntry(data=data, timestamp=self._clock(), ttl=self.catalog_ttl if ttl is None else ttl)
        with self._lock:
            self._entries[key] = entry

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup(self) -> int:
        """Remove every expired entry; returns how many were dropped."""
        now = self._clock()
        with self._lock:
            stale = [key for key, entry in self._entries.items() if entry.expired(now)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug(f"Cache sweep removed {len(stale)} expired entries")
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """Start the periodic sweep."""
        if self.running:
            logger.warning("DataCache sweep already running")
            return

        scheduler = BackgroundScheduler(daemon=True)
        scheduler.add_job(
            self.cleanup,
            IntervalTrigger(seconds=self.config.CACHE_SWEEP_INTERVAL_SECONDS),
            id="data_cache_cleanup",
            replace_existing=True,
            name="Catalog cache sweep",
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(f"DataCache sweep started (every {self.config.CACHE_SWEEP_INTERVAL_SECONDS}s)")

    def stop(self) -> None:
        """Stop the periodic sweep; cached entries are kept."""
        if self._scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("DataCache sweep stopped")
        self._scheduler = None


def get_catalog_cache_key(shop_domain: str) -> str:
    return f"catalog:{shop_domain}"


def get_source_cache_key(shop_domain: str, source_id: int, limit: int, offset: int) -> str:
    return f"catalog-source:{shop_domain}:{source_id}:{limit}:{offset}"


def get_policies_cache_key(shop_domain: str) -> str:
    return f"policies:{shop_domain}"


def get_brand_guidelines_cache_key(shop_domain: str) -> str:
    return f"brand-guidelines:{shop_domain}"
