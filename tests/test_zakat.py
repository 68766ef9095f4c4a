"""Tests for services.zakat."""

import threading
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlmodel import Session, select

from db_engine import get_engine
from errors import NotFoundError
from models import ZakatRecord
from services import zakat as zakat_engine
from services.zakat import (
    NISAB_GRAMS,
    REQUIRED_DAYS,
    ZakatService,
    calculate_zakat_due,
    days_between,
    find_holding_start,
)
from tests.conftest import NOW


def _records_for(user_id):
    with Session(get_engine()) as session:
        return list(session.exec(select(ZakatRecord).where(ZakatRecord.user_id == user_id)).all())


class TestHelpers:
    def test_days_between_floors_partial_days(self):
        assert days_between(NOW - timedelta(days=10, hours=23), NOW) == 10

    def test_zakat_due(self):
        assert calculate_zakat_due("100", "60") == Decimal("150.00")

    def test_zakat_due_rounds_to_cents(self):
        # 87.5 * 57.33 * 0.025 = 125.409375
        assert calculate_zakat_due("87.5", "57.33") == Decimal("125.41")

    def test_find_holding_start_none_when_below(self, user, add_tx):
        ledger = [add_tx(user.id, "buy", "50", days_ago=10)]
        assert find_holding_start(ledger) is None

    def test_find_holding_start_uses_latest_crossing(self, user, add_tx):
        ledger = [
            add_tx(user.id, "buy", "100", days_ago=400),
            add_tx(user.id, "sell", "50", days_ago=300),
            add_tx(user.id, "buy", "60", days_ago=10),
        ]
        assert find_holding_start(ledger) == NOW - timedelta(days=10)


class TestUpdateZakatStatus:
    def test_below_nisab_is_never_eligible(self, user, add_tx):
        add_tx(user.id, "buy", "84", days_ago=1000)

        record = ZakatService.update_zakat_status(user.id, now=NOW)

        assert record.gold_weight_grams == Decimal("84")
        assert record.is_eligible is False
        assert record.next_reminder_date is None

    def test_held_one_lunar_year_is_eligible(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=355)

        record = ZakatService.update_zakat_status(user.id, now=NOW)

        assert record.is_eligible is True
        assert record.holding_start_date == NOW - timedelta(days=355)
        assert record.next_reminder_date == record.holding_start_date + timedelta(days=708)

    def test_exactly_nisab_counts(self, user, add_tx):
        add_tx(user.id, "buy", str(NISAB_GRAMS), days_ago=400)

        record = ZakatService.update_zakat_status(user.id, now=NOW)

        assert record.is_eligible is True

    def test_maturity_boundary(self, user, other_user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=REQUIRED_DAYS)
        add_tx(other_user.id, "buy", "100", days_ago=REQUIRED_DAYS - 1)

        assert ZakatService.update_zakat_status(user.id, now=NOW).is_eligible is True
        assert ZakatService.update_zakat_status(other_user.id, now=NOW).is_eligible is False

    def test_recent_purchase_not_yet_matured(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=5)

        record = ZakatService.update_zakat_status(user.id, now=NOW)

        assert record.is_eligible is False
        assert record.next_reminder_date is None
        assert record.holding_start_date == NOW - timedelta(days=5)

    def test_dip_below_nisab_re_anchors_start(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=400)
        add_tx(user.id, "sell", "50", days_ago=300)
        add_tx(user.id, "buy", "60", days_ago=10)

        record = ZakatService.update_zakat_status(user.id, now=NOW)

        assert record.gold_weight_grams == Decimal("110")
        assert record.holding_start_date == NOW - timedelta(days=10)
        assert record.is_eligible is False

    def test_start_date_carried_across_recomputes(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=10)
        first = ZakatService.update_zakat_status(user.id, now=NOW)

        add_tx(user.id, "buy", "50", days_ago=0)
        second = ZakatService.update_zakat_status(user.id, now=NOW + timedelta(days=1))

        assert second.id == first.id
        assert second.gold_weight_grams == Decimal("150")
        assert second.holding_start_date == NOW - timedelta(days=10)
        assert len(_records_for(user.id)) == 1

    def test_dip_between_recomputes_breaks_continuity(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=100)
        ZakatService.update_zakat_status(user.id, now=NOW - timedelta(days=60))

        add_tx(user.id, "sell", "50", days_ago=50)
        add_tx(user.id, "buy", "50", days_ago=20)
        record = ZakatService.update_zakat_status(user.id, now=NOW)

        assert record.holding_start_date == NOW - timedelta(days=20)

    def test_crossing_after_prior_below_nisab(self, user, add_tx):
        add_tx(user.id, "buy", "50", days_ago=30)
        below = ZakatService.update_zakat_status(user.id, now=NOW - timedelta(days=20))
        assert below.is_eligible is False

        add_tx(user.id, "buy", "50", days_ago=5)
        record = ZakatService.update_zakat_status(user.id, now=NOW)

        assert record.holding_start_date == NOW - timedelta(days=5)

    def test_no_transactions(self, user):
        record = ZakatService.update_zakat_status(user.id, now=NOW)

        assert record.gold_weight_grams == Decimal("0")
        assert record.is_eligible is False

    def test_holdings_never_negative(self, user, add_tx):
        add_tx(user.id, "buy", "50", days_ago=10)
        add_tx(user.id, "sell", "100", days_ago=5)

        record = ZakatService.update_zakat_status(user.id, now=NOW)

        assert record.gold_weight_grams == Decimal("0")

    def test_advanced_reminder_survives_recompute(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=400)
        record = ZakatService.update_zakat_status(user.id, now=NOW)
        later = record.next_reminder_date + timedelta(days=REQUIRED_DAYS)
        ZakatService.update_next_reminder_date(record.id, later, now=NOW)

        recomputed = ZakatService.update_zakat_status(user.id, now=NOW + timedelta(days=1))

        assert recomputed.next_reminder_date == later

    def test_concurrent_recomputes_keep_one_record(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=400)
        errors = []

        def _recompute():
            try:
                ZakatService.update_zakat_status(user.id, now=NOW)
            except Exception as e:  # pragma: no cover - surfaced by the assertion below
                errors.append(e)

        threads = [threading.Thread(target=_recompute) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        records = _records_for(user.id)
        assert len(records) == 1
        assert records[0].holding_start_date == NOW - timedelta(days=400)

    def test_user_lock_released_after_recompute(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=3)

        ZakatService.update_zakat_status(user.id, now=NOW)

        assert user.id not in zakat_engine._user_locks


class TestZakatQueries:
    def test_status_none_before_first_recompute(self, user):
        assert ZakatService.get_zakat_status(user.id) is None

    def test_status_returns_latest(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=3)
        ZakatService.update_zakat_status(user.id, now=NOW)
        add_tx(user.id, "buy", "50", days_ago=1)
        ZakatService.update_zakat_status(user.id, now=NOW)

        assert ZakatService.get_zakat_status(user.id).gold_weight_grams == Decimal("150")

    def test_amount_for_eligible_user(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=REQUIRED_DAYS + 1)
        ZakatService.update_zakat_status(user.id, now=NOW)

        assert ZakatService.calculate_zakat_amount(user.id, 60) == Decimal("150.00")

    def test_amount_zero_when_not_eligible(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=3)
        ZakatService.update_zakat_status(user.id, now=NOW)

        assert ZakatService.calculate_zakat_amount(user.id, 60) == Decimal("0")

    def test_amount_zero_without_record(self, user):
        assert ZakatService.calculate_zakat_amount(user.id, 60) == Decimal("0")

    def test_due_reminders(self, user, other_user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=REQUIRED_DAYS + 10)
        add_tx(other_user.id, "buy", "100", days_ago=REQUIRED_DAYS + 1)
        record = ZakatService.update_zakat_status(user.id, now=NOW)
        ZakatService.update_zakat_status(other_user.id, now=NOW)
        ZakatService.update_next_reminder_date(record.id, NOW - timedelta(days=1), now=NOW)

        due = ZakatService.get_users_for_zakat_reminder(now=NOW)

        assert [r.user_id for r in due] == [user.id]

    def test_future_reminders_not_due(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=REQUIRED_DAYS + 1)
        ZakatService.update_zakat_status(user.id, now=NOW)

        assert ZakatService.get_users_for_zakat_reminder(now=NOW) == []

    def test_ineligible_users_not_due(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=3)
        record = ZakatService.update_zakat_status(user.id, now=NOW)
        ZakatService.update_next_reminder_date(record.id, NOW - timedelta(days=1), now=NOW)

        assert ZakatService.get_users_for_zakat_reminder(now=NOW) == []

    def test_update_next_reminder_date(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=3)
        record = ZakatService.update_zakat_status(user.id, now=NOW)
        new_date = NOW + timedelta(days=30)

        updated = ZakatService.update_next_reminder_date(record.id, new_date, now=NOW + timedelta(hours=1))

        assert updated.next_reminder_date == new_date
        assert updated.updated_at == NOW + timedelta(hours=1)
        assert ZakatService.get_zakat_status(user.id).next_reminder_date == new_date

    def test_update_next_reminder_date_unknown_record(self):
        with pytest.raises(NotFoundError):
            ZakatService.update_next_reminder_date(9999, NOW)

    def test_refresh_matures_held_balance(self, user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=10)
        ZakatService.update_zakat_status(user.id, now=NOW)
        later = NOW + timedelta(days=REQUIRED_DAYS)

        refreshed = ZakatService.refresh_zakat_statuses(now=later)

        assert [r.user_id for r in refreshed] == [user.id]
        assert ZakatService.get_zakat_status(user.id).is_eligible is True

    def test_refresh_skips_records_below_nisab(self, user, other_user, add_tx):
        add_tx(user.id, "buy", "100", days_ago=10)
        add_tx(other_user.id, "buy", "20", days_ago=10)
        ZakatService.update_zakat_status(user.id, now=NOW)
        ZakatService.update_zakat_status(other_user.id, now=NOW)

        refreshed = ZakatService.refresh_zakat_statuses(now=NOW + timedelta(days=1))

        assert [r.user_id for r in refreshed] == [user.id]
        assert ZakatService.get_zakat_status(other_user.id).updated_at == NOW
