"""
Tests for ReportService: series, breakdowns and composite dashboards.
"""
import pytest
from datetime import date, datetime

from namabank.application.reports import ReportService
from namabank.domain.errors import StoreUnavailableError
from namabank.infrastructure.ledger.repository import LedgerRepository
from namabank.utils.clock import FixedClock

from tests.factories import TODAY, add_account, add_entry, add_user


# ---------------------------------------------------------------------------
# daily_series / weekly_series
# ---------------------------------------------------------------------------

class TestDailySeries:
    def test_seven_buckets_ending_today(self, db_session, clock):
        series = ReportService(db_session, clock).daily_series()
        assert len(series) == 7
        assert series[0]["date"] == date(2026, 2, 8)
        assert series[-1]["date"] == TODAY
        assert series[-1]["label"] == "Sat 14"
        assert all(b["count"] == 0 for b in series)

    def test_counts_per_day(self, db_session, clock, devotee, account):
        add_entry(db_session, devotee, account, 10, entry_date=TODAY)
        add_entry(db_session, devotee, account, 5, entry_date=TODAY)
        add_entry(db_session, devotee, account, 3, entry_date=date(2026, 2, 10))
        add_entry(db_session, devotee, account, 99, entry_date=date(2026, 2, 1))

        series = ReportService(db_session, clock).daily_series()
        by_date = {b["date"]: b["count"] for b in series}
        assert by_date[TODAY] == 15
        assert by_date[date(2026, 2, 10)] == 3
        assert sum(by_date.values()) == 18

    def test_custom_length(self, db_session, clock):
        assert len(ReportService(db_session, clock).daily_series(days=30)) == 30

    def test_invalid_length(self, db_session, clock):
        with pytest.raises(ValueError):
            ReportService(db_session, clock).daily_series(days=0)


class TestWeeklySeries:
    def test_four_contiguous_weeks(self, db_session, clock):
        series = ReportService(db_session, clock).weekly_series()
        assert [w["week"] for w in series] == ["Week 1", "Week 2", "Week 3", "Week 4"]
        assert series[-1]["start"] == date(2026, 2, 8)
        assert series[-1]["end"] == TODAY
        assert series[0]["start"] == date(2026, 1, 18)
        for older, newer in zip(series, series[1:]):
            assert (newer["start"] - older["end"]).days == 1

    def test_week_buckets(self, db_session, clock, devotee, account):
        add_entry(db_session, devotee, account, 7, entry_date=date(2026, 2, 8))
        add_entry(db_session, devotee, account, 4, entry_date=date(2026, 2, 7))
        add_entry(db_session, devotee, account, 1, entry_date=date(2026, 1, 17))

        series = ReportService(db_session, clock).weekly_series()
        assert [w["count"] for w in series] == [0, 0, 4, 7]

    def test_newest_week_matches_this_week(self, db_session, clock, devotee, account):
        add_entry(db_session, devotee, account, 12, entry_date=date(2026, 2, 9))
        add_entry(db_session, devotee, account, 30, entry_date=TODAY)

        svc = ReportService(db_session, clock)
        assert svc.weekly_series()[-1]["count"] == svc.aggregation.aggregate_for_ledger().this_week


# ---------------------------------------------------------------------------
# Breakdowns
# ---------------------------------------------------------------------------

class TestSourceTypeRatio:
    def test_known_types_always_present(self, db_session, clock):
        ratio = ReportService(db_session, clock).source_type_ratio()
        assert [(r["source_type"], r["value"]) for r in ratio] == [("manual", 0), ("audio", 0)]
        assert ratio[1]["name"] == "Audio"

    def test_new_channels_are_appended(self, db_session, clock, devotee, account):
        add_entry(db_session, devotee, account, 80)
        add_entry(db_session, devotee, account, 20, source_type="audio")
        add_entry(db_session, devotee, account, 8, source_type="whatsapp_bot")

        ratio = ReportService(db_session, clock).source_type_ratio()
        assert [(r["source_type"], r["value"]) for r in ratio] == [
            ("manual", 80), ("audio", 20), ("whatsapp_bot", 8),
        ]
        assert ratio[2]["name"] == "Whatsapp Bot"
        assert sum(r["value"] for r in ratio) == 108


class TestCityBreakdown:
    def test_largest_first_and_limited(self, db_session, clock, account):
        for i, (city, count) in enumerate([
            ("Chennai", 10), ("Pune", 50), ("Mysuru", 30), ("Agra", 30),
            ("Delhi", 5), ("Goa", 4), ("Puri", 3),
        ]):
            user = add_user(db_session, name=f"U{i}", city=city)
            add_entry(db_session, user, account, count)
        add_user(db_session, name="Nowhere")

        cities = ReportService(db_session, clock).city_breakdown()
        assert [c["city"] for c in cities] == ["Pune", "Agra", "Mysuru", "Chennai", "Delhi", "Goa"]

    def test_users_of_one_city_are_summed(self, db_session, clock, account):
        a = add_user(db_session, name="A", city="Vrindavan")
        b = add_user(db_session, name="B", city=" Vrindavan ")
        add_entry(db_session, a, account, 1)
        add_entry(db_session, b, account, 2)

        assert ReportService(db_session, clock).city_breakdown(top_n=3) == [
            {"city": "Vrindavan", "count": 3},
        ]


class TestNewSubjectsPerDay:
    def test_registrations_per_day(self, db_session, clock):
        add_user(db_session, name="A", created_at=datetime(2026, 2, 14, 9, 0))
        add_user(db_session, name="B", created_at=datetime(2026, 2, 14, 11, 30))
        add_user(db_session, name="C", created_at=datetime(2026, 2, 12, 8, 0))
        add_user(db_session, name="D", created_at=datetime(2026, 1, 1, 8, 0))

        series = ReportService(db_session, clock).new_subjects_per_day()
        by_date = {b["date"]: b["count"] for b in series}
        assert len(series) == 7
        assert by_date[TODAY] == 2
        assert by_date[date(2026, 2, 12)] == 1
        assert sum(by_date.values()) == 3

    def test_first_bucket_in_local_time(self, db_session):
        # 20:00 UTC on 7 Feb is already 8 Feb in India
        add_user(db_session, name="Late", created_at=datetime(2026, 2, 7, 20, 0))
        add_user(db_session, name="Early", created_at=datetime(2026, 2, 7, 10, 0))

        clock = FixedClock(TODAY, tz_name="Asia/Kolkata")
        series = ReportService(db_session, clock).new_subjects_per_day()
        assert series[0]["date"] == date(2026, 2, 8)
        assert series[0]["count"] == 1
        assert sum(b["count"] for b in series) == 1


class TestTotalsAndProgress:
    def test_total_stats(self, db_session, clock, devotee, account):
        add_user(db_session, name="Quiet")
        add_entry(db_session, devotee, account, 100)
        add_entry(db_session, devotee, account, 8, entry_date=date(2025, 3, 3))

        assert ReportService(db_session, clock).total_stats() == {
            "users": 2, "entries": 2, "total": 108,
        }

    def test_account_progress(self, db_session, clock, devotee):
        goal = add_account(db_session, name="Goal", target_goal=1000)
        add_account(db_session, name="No goal")
        add_entry(db_session, devotee, goal, 250)

        assert ReportService(db_session, clock).account_progress() == [{
            "account_id": goal.id,
            "name": "Goal",
            "target_goal": 1000,
            "overall": 250,
            "percent": 25.0,
            "remaining": 750,
        }]

    def test_goal_exceeded(self, db_session, clock, devotee):
        goal = add_account(db_session, name="Goal", target_goal=100)
        add_entry(db_session, devotee, goal, 150)

        row = ReportService(db_session, clock).account_progress()[0]
        assert row["percent"] == 150.0
        assert row["remaining"] == 0


# ---------------------------------------------------------------------------
# Dashboards
# ---------------------------------------------------------------------------

class TestPublicDashboard:
    def test_all_sections(self, db_session, clock, devotee, linked_account):
        add_entry(db_session, devotee, linked_account, 108)

        board = ReportService(db_session, clock).public_dashboard()
        assert board["failed_sections"] == []
        assert board["totals"]["total"] == 108
        assert board["top_contributors"][0]["name"] == "Radha"
        assert board["top_contributors"][0]["city"] == "Chennai"
        assert board["top_growing"][0]["subject_id"] == linked_account.id
        assert board["cities"] == [{"city": "Chennai", "count": 108}]
        assert board["recent_entries"][0]["user_name"] == "Radha"
        assert board["recent_users"][0]["accounts"] == [linked_account.name]
        assert board["recent_users"][0]["total_count"] == 108

    def test_failed_section_is_not_zero(self, db_session, clock, devotee, linked_account, monkeypatch):
        add_entry(db_session, devotee, linked_account, 108)
        db_session.commit()

        def broken(self, start, end):
            raise StoreUnavailableError("Ledger store unavailable during daily_totals")

        monkeypatch.setattr(LedgerRepository, "daily_totals", broken)
        board = ReportService(db_session, clock).public_dashboard()
        assert board["failed_sections"] == ["daily", "weekly"]
        assert board["daily"] is None
        assert board["weekly"] is None
        assert board["account_stats"][0]["overall"] == 108


class TestAdminDashboard:
    def test_lists_disabled_accounts(self, db_session, clock, devotee):
        add_account(db_session, name="Active")
        add_account(db_session, name="Closed", is_active=False)

        board = ReportService(db_session, clock).admin_dashboard()
        assert [(a["name"], a["status"]) for a in board["accounts"]] == [
            ("Active", "ACTIVE"), ("Closed", "DISABLED"),
        ]
        assert [a["name"] for a in board["account_stats"]] == ["Active"]
        assert board["users"][0]["user_id"] == devotee.id
        assert board["failed_sections"] == []
