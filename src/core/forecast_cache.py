# src/core/forecast_cache.py
"""
In-memory TTL cache for forecast and metrics results.

Lives outside the engine: engine functions never read or write it. Callers
memoise pure engine calls under a typed key and invalidate by model id when
the model's assumptions change.
"""
from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Set, TypeVar

from src.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ForecastCacheKey:
    model_id: str
    periods: int
    discount_rate: Optional[float] = None  # None for forecast-only entries
    kind: str = "forecast"  # "forecast", "metrics", "analysis", ...


@dataclass
class _Entry:
    value: Any
    expires_at: float


class ForecastCache:
    """
    TTL cache keyed by ForecastCacheKey.

    When full, the oldest entry is evicted. invalidate_model() drops every
    entry for a model through a per-model key index.
    """

    def __init__(
        self,
        ttl_s: float | None = None,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_s = settings.FORECAST_CACHE_TTL_S if ttl_s is None else ttl_s
        self.max_entries = (
            settings.FORECAST_CACHE_MAX_ENTRIES if max_entries is None else max_entries
        )
        if self.max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self._clock = clock
        self._entries: "OrderedDict[ForecastCacheKey, _Entry]" = OrderedDict()
        self._by_model: Dict[str, Set[ForecastCacheKey]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _drop(self, key: ForecastCacheKey) -> bool:
        if self._entries.pop(key, None) is None:
            return False
        keys = self._by_model.get(key.model_id)
        if keys is not None:
            keys.discard(key)
            if not keys:
                del self._by_model[key.model_id]
        return True

    def get(self, key: ForecastCacheKey) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            self._drop(key)
            return None
        return entry.value

    def set(self, key: ForecastCacheKey, value: Any, ttl_s: float | None = None) -> None:
        if key in self._entries:
            self._drop(key)
        while len(self._entries) >= self.max_entries:
            oldest = next(iter(self._entries))
            self._drop(oldest)

        ttl = self.ttl_s if ttl_s is None else ttl_s
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl)
        self._by_model.setdefault(key.model_id, set()).add(key)

    def get_or_compute(self, key: ForecastCacheKey, compute: Callable[[], T]) -> T:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = compute()
        self.set(key, value)
        return value

    def invalidate(self, keys: Iterable[ForecastCacheKey]) -> int:
        return sum(1 for key in list(keys) if self._drop(key))

    def invalidate_model(self, model_id: str) -> int:
        removed = self.invalidate(self._by_model.get(model_id, set()).copy())
        if removed:
            logger.info("Invalidated %d cached results for model %s", removed, model_id)
        return removed

    def clear(self) -> None:
        self._entries.clear()
        self._by_model.clear()

    def stats(self) -> dict:
        return {
            "size": len(self._entries),
            "max_entries": self.max_entries,
            "models": sorted(self._by_model),
        }
