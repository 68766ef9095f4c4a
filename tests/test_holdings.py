"""Tests for services.holdings and transaction arithmetic."""

from datetime import datetime
from decimal import Decimal

from models import GoldTransaction, TransactionType
from models.numeric import calculate_total_price, round_money
from services.holdings import compute_holdings, HoldingsService


def _tx(transaction_type, weight):
    return GoldTransaction(
        user_id=1,
        transaction_type=transaction_type,
        weight_grams=Decimal(weight),
        price_per_gram=Decimal("60.00"),
        total_price=calculate_total_price(weight, "60.00"),
        transaction_date=datetime(2025, 1, 1),
    )


class TestTotalPrice:
    def test_rounds_half_up_to_cents(self):
        assert calculate_total_price("10.5", "65.75") == Decimal("690.38")

    def test_accepts_floats_without_binary_noise(self):
        assert calculate_total_price(10.5, 65.75) == Decimal("690.38")

    def test_half_cent_goes_up(self):
        assert round_money("0.005") == Decimal("0.01")
        assert round_money("2.675") == Decimal("2.68")


class TestComputeHoldings:
    def test_empty_ledger(self):
        assert compute_holdings([]) == Decimal("0")

    def test_buys_only(self):
        ledger = [_tx(TransactionType.BUY, "10.5"), _tx(TransactionType.BUY, "25.25")]
        assert compute_holdings(ledger) == Decimal("35.75")

    def test_buys_minus_sells(self):
        ledger = [
            _tx(TransactionType.BUY, "100"),
            _tx(TransactionType.SELL, "30.125"),
            _tx(TransactionType.BUY, "5"),
        ]
        assert compute_holdings(ledger) == Decimal("74.875")

    def test_never_negative_when_sells_exceed_buys(self):
        ledger = [_tx(TransactionType.BUY, "50"), _tx(TransactionType.SELL, "100")]
        assert compute_holdings(ledger) == Decimal("0")

    def test_order_does_not_matter(self):
        ledger = [
            _tx(TransactionType.SELL, "20"),
            _tx(TransactionType.BUY, "100"),
            _tx(TransactionType.SELL, "10"),
        ]
        assert compute_holdings(ledger) == compute_holdings(list(reversed(ledger))) == Decimal("70")


class TestHoldingsService:
    def test_reads_only_the_users_ledger(self, user, other_user, add_tx):
        add_tx(user.id, "buy", "100")
        add_tx(user.id, "sell", "40")
        add_tx(other_user.id, "buy", "500")

        assert HoldingsService.get_user_holdings(user.id) == Decimal("60")
        assert HoldingsService.get_user_holdings(other_user.id) == Decimal("500")

    def test_unknown_user_holds_nothing(self):
        assert HoldingsService.get_user_holdings(9999) == Decimal("0")
