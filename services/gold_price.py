"""
Gold spot price service.
Fetches USD/gram quotes from an external feed and buffers them in a
single-slot, time-bounded cache. Uses yfinance with tenacity retries
for the live feed.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

import pandas as pd
import yfinance as yf
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from config import get_settings
from errors import UpstreamError
from models.numeric import Number, to_decimal, round_money

logger = logging.getLogger(__name__)

GRAMS_PER_TROY_OUNCE = Decimal("31.1034768")
DEFAULT_CACHE_TTL = timedelta(hours=1)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class PriceQuote:
    """A gold spot price in USD per gram. Lives only in process memory."""
    price_per_gram_usd: Decimal
    timestamp: datetime


@dataclass(frozen=True)
class CachedQuote:
    quote: PriceQuote
    expires_at: datetime


class StaticGoldPriceFeed:
    """Deterministic feed returning a fixed price. Used offline and in tests."""

    def __init__(self, price_per_gram_usd: Number, clock: Clock = datetime.now):
        self.price_per_gram_usd = round_money(price_per_gram_usd)
        self.clock = clock

    def fetch_spot_price(self) -> PriceQuote:
        return PriceQuote(price_per_gram_usd=self.price_per_gram_usd, timestamp=self.clock())


class YFinanceGoldPriceFeed:
    """
    Live feed backed by Yahoo Finance gold futures.
    The ticker quotes USD per troy ounce; quotes are converted to USD per gram.
    """

    def __init__(self, ticker: str = "GC=F", clock: Clock = datetime.now):
        self.ticker = ticker
        self.clock = clock

    @staticmethod
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(Exception),
        reraise=True
    )
    def _fetch_ticker_history(yf_symbol: str, period: str = "5d") -> pd.DataFrame:
        """Fetch ticker history with retry logic."""
        ticker = yf.Ticker(yf_symbol)
        return ticker.history(period=period)

    def fetch_spot_price(self) -> PriceQuote:
        """
        Fetch the latest close and convert it to USD per gram.

        Raises:
            UpstreamError: the feed failed after retries or returned no usable price
        """
        try:
            hist = self._fetch_ticker_history(self.ticker)
        except Exception as e:
            raise UpstreamError(f"Gold price feed unavailable for {self.ticker}") from e

        if hist is None or hist.empty:
            raise UpstreamError(f"No price history returned for {self.ticker}")

        closes = hist['Close'].dropna()
        if closes.empty:
            raise UpstreamError(f"No closing price available for {self.ticker}")

        per_ounce = to_decimal(float(closes.iloc[-1]))
        if per_ounce <= 0:
            raise UpstreamError(f"Non-positive price {per_ounce} returned for {self.ticker}")

        price = round_money(per_ounce / GRAMS_PER_TROY_OUNCE)
        logger.info(f"Fetched gold price from {self.ticker}: ${per_ounce}/oz = ${price}/g")
        return PriceQuote(price_per_gram_usd=price, timestamp=self.clock())


class GoldPriceCache:
    """
    Single-slot cache holding at most one quote with an expiry.

    A quote is fresh while now <= expires_at. Concurrent misses in
    get_or_fetch are coalesced so only one caller hits the feed.
    """

    def __init__(self, ttl: timedelta = DEFAULT_CACHE_TTL, clock: Clock = datetime.now):
        self.ttl = ttl
        self.clock = clock
        self._slot: Optional[CachedQuote] = None
        self._lock = threading.Lock()
        self._fetch_lock = threading.Lock()

    def get(self) -> Optional[PriceQuote]:
        """Return the cached quote if fresh; evict and return None otherwise."""
        with self._lock:
            if self._slot is None:
                return None
            if self.clock() > self._slot.expires_at:
                self._slot = None
                return None
            return self._slot.quote

    def put(self, quote: PriceQuote) -> None:
        """Replace the slot with quote, expiring ttl from now."""
        with self._lock:
            self._slot = CachedQuote(quote=quote, expires_at=self.clock() + self.ttl)

    def get_or_fetch(self, feed) -> PriceQuote:
        """
        Return the cached quote, or fetch one from feed, cache it and return it.
        Feed failures propagate unchanged and leave the cache untouched.
        """
        cached = self.get()
        if cached is not None:
            return cached

        with self._fetch_lock:
            # Another caller may have filled the slot while we waited
            cached = self.get()
            if cached is not None:
                return cached
            quote = feed.fetch_spot_price()
            self.put(quote)
            logger.info(f"Gold price cache refreshed: ${quote.price_per_gram_usd}/g")
            return quote

    def invalidate(self) -> None:
        """Drop the cached quote."""
        with self._lock:
            self._slot = None

    def is_valid(self) -> bool:
        """True if a quote is cached and not yet expired."""
        with self._lock:
            return self._slot is not None and self.clock() <= self._slot.expires_at


def build_price_feed():
    """Create the price feed selected in settings."""
    settings = get_settings()
    if settings.gold_price_source == "static":
        return StaticGoldPriceFeed(settings.static_gold_price)
    return YFinanceGoldPriceFeed(settings.gold_price_ticker)


class GoldPriceService:
    """
    Price retrieval: cached only, fresh from the feed, or cached with refresh.
    Feed and cache are injectable; defaults come from settings.
    """

    def __init__(self, feed=None, cache: Optional[GoldPriceCache] = None):
        self.feed = feed if feed is not None else build_price_feed()
        if cache is None:
            ttl = timedelta(seconds=get_settings().price_cache_ttl_seconds)
            cache = GoldPriceCache(ttl=ttl)
        self.cache = cache

    def get_cached_price(self) -> Optional[PriceQuote]:
        """The cached quote, or None if absent or expired. Never calls the feed."""
        return self.cache.get()

    def fetch_current_price(self) -> PriceQuote:
        """A fresh quote straight from the feed, bypassing the cache."""
        return self.feed.fetch_spot_price()

    def get_price_with_refresh(self) -> PriceQuote:
        """The cached quote, refreshed from the feed when stale."""
        return self.cache.get_or_fetch(self.feed)


# Process-wide default service
_price_service: Optional[GoldPriceService] = None


def get_price_service() -> GoldPriceService:
    """Get or create the process-wide price service."""
    global _price_service
    if _price_service is None:
        _price_service = GoldPriceService()
    return _price_service


def reset_price_service() -> None:
    """Discard the process-wide price service and its cache (useful for testing)."""
    global _price_service
    _price_service = None
