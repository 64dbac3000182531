"""
Tests for AggregationService: window totals per account, per user and for active accounts.
"""
import pytest
from datetime import date, timedelta

from namabank.application.aggregation import AggregationService
from namabank.domain.errors import NotFoundError
from namabank.utils.clock import FixedClock

from tests.factories import TODAY, add_account, add_entry, add_user


class TestAggregateForAccount:
    def test_empty_account_is_all_zeros(self, db_session, clock, account):
        totals = AggregationService(db_session, clock).aggregate_for_account(account.id)
        assert totals.as_dict() == {
            "today": 0, "this_week": 0, "this_month": 0, "this_year": 0, "overall": 0,
        }

    def test_entries_spread_over_time(self, db_session, clock, devotee, account):
        add_entry(db_session, devotee, account, 10, entry_date=TODAY)
        add_entry(db_session, devotee, account, 20, entry_date=TODAY - timedelta(days=3))
        add_entry(db_session, devotee, account, 70, entry_date=TODAY - timedelta(days=40))

        totals = AggregationService(db_session, clock).aggregate_for_account(account.id)
        assert totals.today == 10
        assert totals.this_week == 30
        # 40 days before 14 Feb is in January
        assert totals.this_month == 30
        assert totals.this_year == 100
        assert totals.overall == 100

    def test_week_edge_is_today_minus_six(self, db_session, clock, devotee, account):
        add_entry(db_session, devotee, account, 1, entry_date=date(2026, 2, 8))
        add_entry(db_session, devotee, account, 2, entry_date=date(2026, 2, 7))

        totals = AggregationService(db_session, clock).aggregate_for_account(account.id)
        assert totals.this_week == 1
        assert totals.this_month == 3

    def test_previous_year_only_in_overall(self, db_session, clock, devotee, account):
        add_entry(db_session, devotee, account, 500, entry_date=date(2025, 12, 31))

        totals = AggregationService(db_session, clock).aggregate_for_account(account.id)
        assert totals.this_year == 0
        assert totals.overall == 500

    def test_future_row_is_ignored(self, db_session, clock, devotee, account):
        add_entry(db_session, devotee, account, 5, entry_date=TODAY)
        add_entry(db_session, devotee, account, 999, entry_date=TODAY + timedelta(days=1))

        totals = AggregationService(db_session, clock).aggregate_for_account(account.id)
        assert totals.overall == 5

    def test_midnight_rollover(self, db_session, devotee, account):
        add_entry(db_session, devotee, account, 108, entry_date=TODAY)

        tomorrow = FixedClock(TODAY + timedelta(days=1))
        totals = AggregationService(db_session, tomorrow).aggregate_for_account(account.id)
        assert totals.today == 0
        assert totals.this_week == 108

    def test_week_straddling_month_start(self, db_session, devotee, account):
        add_entry(db_session, devotee, account, 40, entry_date=date(2026, 2, 27))
        add_entry(db_session, devotee, account, 2, entry_date=date(2026, 3, 1))

        totals = AggregationService(db_session, FixedClock(date(2026, 3, 2))).aggregate_for_account(account.id)
        assert totals.this_week == 42
        assert totals.this_month == 2

    def test_week_straddling_new_year(self, db_session, devotee, account):
        add_entry(db_session, devotee, account, 9, entry_date=date(2025, 12, 30))
        add_entry(db_session, devotee, account, 1, entry_date=date(2026, 1, 1))

        totals = AggregationService(db_session, FixedClock(date(2026, 1, 1))).aggregate_for_account(account.id)
        assert totals.today == 1
        assert totals.this_week == 10
        assert totals.this_month == 1
        assert totals.this_year == 1
        assert totals.overall == 10

    def test_disabled_account_keeps_its_history(self, db_session, clock, devotee, account):
        add_entry(db_session, devotee, account, 33)
        account.is_active = False
        db_session.flush()

        assert AggregationService(db_session, clock).aggregate_for_account(account.id).overall == 33

    def test_windows_are_monotonic(self, db_session, clock, devotee, account):
        for offset, count in [(0, 3), (2, 5), (9, 7), (30, 11), (80, 13), (400, 17)]:
            add_entry(db_session, devotee, account, count, entry_date=TODAY - timedelta(days=offset))

        t = AggregationService(db_session, clock).aggregate_for_account(account.id)
        assert 0 <= t.today <= t.this_week <= t.this_month <= t.this_year <= t.overall


class TestAggregateForUser:
    def test_sums_across_accounts_and_excludes_others(self, db_session, clock, devotee, account):
        second = add_account(db_session, name="Om Namah Shivaya")
        other = add_user(db_session, name="Krishna")
        add_entry(db_session, devotee, account, 10)
        add_entry(db_session, devotee, second, 15)
        add_entry(db_session, other, account, 1000)

        totals = AggregationService(db_session, clock).aggregate_for_user(devotee.id)
        assert totals.today == 25
        assert totals.overall == 25

    def test_user_and_account_views_agree(self, db_session, clock, devotee, account):
        other = add_user(db_session, name="Krishna")
        add_entry(db_session, devotee, account, 10)
        add_entry(db_session, other, account, 20, entry_date=date(2026, 1, 5))

        agg = AggregationService(db_session, clock)
        account_total = agg.aggregate_for_account(account.id).overall
        user_sum = agg.aggregate_for_user(devotee.id).overall + agg.aggregate_for_user(other.id).overall
        assert account_total == user_sum == agg.aggregate_for_ledger().overall


class TestAggregateForAllActiveAccounts:
    def test_rows_in_name_order_without_disabled(self, db_session, clock, devotee):
        rama = add_account(db_session, name="Rama")
        hidden = add_account(db_session, name="Hidden", is_active=False)
        govinda = add_account(db_session, name="Govinda", target_goal=1000)
        add_entry(db_session, devotee, rama, 7)
        add_entry(db_session, devotee, hidden, 50)

        rows = AggregationService(db_session, clock).aggregate_for_all_active_accounts()
        assert [r["name"] for r in rows] == ["Govinda", "Rama"]
        assert rows[0]["account_id"] == govinda.id
        assert rows[0]["target_goal"] == 1000
        assert rows[0]["overall"] == 0
        assert rows[1]["today"] == 7

    def test_no_active_accounts(self, db_session, clock):
        assert AggregationService(db_session, clock).aggregate_for_all_active_accounts() == []

    def test_aggregate_by_user(self, db_session, clock, devotee, account):
        other = add_user(db_session, name="Krishna")
        add_entry(db_session, devotee, account, 4)
        add_entry(db_session, other, account, 6, entry_date=date(2026, 2, 1))

        by_user = AggregationService(db_session, clock).aggregate_by_user()
        assert by_user[devotee.id].today == 4
        assert by_user[other.id].today == 0
        assert by_user[other.id].this_month == 6


class TestLookups:
    def test_get_account_includes_disabled(self, db_session, clock):
        hidden = add_account(db_session, name="Hidden", is_active=False)
        assert AggregationService(db_session, clock).get_account(hidden.id) is hidden

    def test_unknown_ids(self, db_session, clock):
        svc = AggregationService(db_session, clock)
        with pytest.raises(NotFoundError, match="Nama Bank #404"):
            svc.get_account(404)
        with pytest.raises(NotFoundError, match="User #404"):
            svc.get_user(404)
