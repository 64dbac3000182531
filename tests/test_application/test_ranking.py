"""
Tests for the ranking builder and LeaderboardService
"""
import pytest
from datetime import date

from namabank.application.ranking import (
    LeaderboardService, SubjectTotal, rank_contributors, rank_growth,
)

from tests.factories import TODAY, add_account, add_entry, add_user


class TestRankContributors:
    def test_ties_are_broken_by_subject_id(self):
        ranked = rank_contributors([
            SubjectTotal(subject_id=7, name="Gopal", total=500),
            SubjectTotal(subject_id=3, name="Meera", total=500),
        ])
        assert [(r.rank, r.subject_id) for r in ranked] == [(1, 3), (2, 7)]

    def test_order_does_not_depend_on_input_order(self):
        totals = [
            SubjectTotal(subject_id=i, name=f"U{i}", total=t)
            for i, t in [(1, 50), (2, 80), (3, 50), (4, 10)]
        ]
        first = rank_contributors(totals)
        second = rank_contributors(list(reversed(totals)))
        assert first == second
        assert [r.subject_id for r in first] == [2, 1, 3, 4]

    def test_zero_totals_are_excluded(self):
        ranked = rank_contributors([
            SubjectTotal(subject_id=1, name="A", total=0),
            SubjectTotal(subject_id=2, name="B", total=1),
        ])
        assert [r.subject_id for r in ranked] == [2]

    def test_limit(self):
        totals = [SubjectTotal(subject_id=i, name=str(i), total=100 - i) for i in range(1, 21)]
        ranked = rank_contributors(totals, limit=10)
        assert len(ranked) == 10
        assert [r.rank for r in ranked] == list(range(1, 11))
        assert all(a.total >= b.total for a, b in zip(ranked, ranked[1:]))

    def test_fewer_subjects_than_limit(self):
        assert len(rank_contributors([SubjectTotal(1, "A", 5)], limit=10)) == 1

    def test_non_positive_limit(self):
        assert rank_contributors([SubjectTotal(1, "A", 5)], limit=0) == []

    def test_as_dict_flattens_details(self):
        ranked = rank_growth([SubjectTotal(1, "Rama", 9, details={"city": "Pune"})])
        assert ranked[0].as_dict() == {
            "rank": 1, "subject_id": 1, "name": "Rama", "total": 9, "city": "Pune",
        }


class TestLeaderboardService:
    def test_top_contributors(self, db_session, clock, account):
        meera = add_user(db_session, name="Meera", city="Mathura")
        gopal = add_user(db_session, name="Gopal", city="Udupi")
        idle = add_user(db_session, name="Idle")
        add_entry(db_session, gopal, account, 300)
        add_entry(db_session, meera, account, 200)
        add_entry(db_session, meera, account, 100, entry_date=date(2025, 6, 1))

        ranked = LeaderboardService(db_session, clock).top_contributors()
        assert [(r.name, r.total) for r in ranked] == [("Meera", 300), ("Gopal", 300)]
        assert ranked[0].details == {"city": "Mathura"}
        assert idle.id not in [r.subject_id for r in ranked]

    def test_top_contributors_empty_ledger(self, db_session, clock):
        assert LeaderboardService(db_session, clock).top_contributors() == []

    def test_top_growing_accounts_uses_the_week(self, db_session, clock, devotee):
        old = add_account(db_session, name="Old")
        fresh = add_account(db_session, name="Fresh")
        add_entry(db_session, devotee, old, 10_000, entry_date=date(2025, 1, 1))
        add_entry(db_session, devotee, old, 5, entry_date=TODAY)
        add_entry(db_session, devotee, fresh, 50, entry_date=date(2026, 2, 9))

        ranked = LeaderboardService(db_session, clock).top_growing_accounts()
        assert [(r.name, r.total) for r in ranked] == [("Fresh", 50), ("Old", 5)]

    def test_top_growing_accounts_other_window(self, db_session, clock, devotee):
        old = add_account(db_session, name="Old")
        add_entry(db_session, devotee, old, 10_000, entry_date=date(2025, 1, 1))

        svc = LeaderboardService(db_session, clock)
        assert svc.top_growing_accounts(window="this_year") == []
        assert svc.top_growing_accounts(window="overall")[0].total == 10_000

    def test_top_growing_accounts_skips_disabled(self, db_session, clock, devotee):
        hidden = add_account(db_session, name="Hidden", is_active=False)
        add_entry(db_session, devotee, hidden, 50)

        assert LeaderboardService(db_session, clock).top_growing_accounts() == []

    def test_unknown_window(self, db_session, clock):
        with pytest.raises(ValueError):
            LeaderboardService(db_session, clock).top_growing_accounts(window="decade")
