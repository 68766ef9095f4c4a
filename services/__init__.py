"""
Services package for GoldKeeper.
Provides core business logic separated from the data layer.
"""

from services.holdings import compute_holdings, HoldingsService
from services.goals import GoalProgress, evaluate_goals, GoalService
from services.zakat import (
    NISAB_GRAMS,
    REQUIRED_DAYS,
    ZAKAT_RATE,
    ZakatEvaluation,
    ZakatStatus,
    evaluate_zakat,
    calculate_zakat_due,
    ZakatService
)
from services.gold_price import (
    PriceQuote,
    GoldPriceCache,
    StaticGoldPriceFeed,
    YFinanceGoldPriceFeed,
    GoldPriceService,
    get_price_service,
    reset_price_service
)
from services.dashboard import DashboardData, DashboardService
from services.ledger import LedgerService
from services.notification import EmailService

__all__ = [
    # Calculators
    'compute_holdings',
    'evaluate_goals',
    'evaluate_zakat',
    'calculate_zakat_due',
    'GoalProgress',
    'ZakatEvaluation',
    'ZakatStatus',
    'NISAB_GRAMS',
    'REQUIRED_DAYS',
    'ZAKAT_RATE',
    # Gold price
    'PriceQuote',
    'GoldPriceCache',
    'StaticGoldPriceFeed',
    'YFinanceGoldPriceFeed',
    'GoldPriceService',
    'get_price_service',
    'reset_price_service',
    # Services
    'HoldingsService',
    'GoalService',
    'ZakatService',
    'DashboardData',
    'DashboardService',
    'LedgerService',
    'EmailService',
]
