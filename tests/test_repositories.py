"""
Durable Store Tests
===================
Repositories over a temporary SQLite file.
"""

import sqlite3

import pytest

from rent_guardian.shared.models import (
    AccountStatus,
    ActivityAction,
    ActivityEntry,
    ExecutionMode,
    StatusTransitionError,
)
from rent_guardian.shared.system.database.repositories.activity_repo import MAX_LOG_PAGE


class TestAccountRepository:

    def test_get_missing(self, store):
        assert store.accounts.get("nope") is None

    def test_list_orders_newest_detection_first(self, store, seed_accounts, make_account):
        old, new = make_account(idle_days=90), make_account(idle_days=10)
        seed_accounts(old, new)

        assert [a.address for a in store.accounts.list_accounts()] == [new.address, old.address]

    def test_list_filters_by_status(self, store, seed_accounts, make_account):
        protected = make_account(status=AccountStatus.PROTECTED)
        seed_accounts(make_account(), protected)

        rows = store.accounts.list_accounts(AccountStatus.PROTECTED)
        assert [a.address for a in rows] == [protected.address]

    def test_list_unreclaimed(self, store, seed_accounts, make_account):
        live = make_account()
        seed_accounts(live, make_account(status=AccountStatus.RECLAIMED))

        assert [a.address for a in store.accounts.list_unreclaimed()] == [live.address]

    def test_update_status(self, store, seed_accounts, make_account):
        acct, = seed_accounts(make_account())

        assert store.accounts.update_status(acct.address, AccountStatus.ELIGIBLE)
        assert store.accounts.get(acct.address).status is AccountStatus.ELIGIBLE

    def test_update_status_cannot_write_reclaimed(self, store, seed_accounts, make_account):
        acct, = seed_accounts(make_account())

        with pytest.raises(StatusTransitionError):
            store.accounts.update_status(acct.address, AccountStatus.RECLAIMED)

    def test_update_status_cannot_leave_reclaimed(self, store, seed_accounts, make_account):
        acct, = seed_accounts(make_account(status=AccountStatus.RECLAIMED))

        assert not store.accounts.update_status(acct.address, AccountStatus.ELIGIBLE)
        assert store.accounts.get(acct.address).status is AccountStatus.RECLAIMED

    def test_update_status_missing_row(self, store):
        assert not store.accounts.update_status("nope", AccountStatus.ELIGIBLE)

    def test_mark_reclaimed_writes_status_and_log_together(self, store, seed_accounts, make_account):
        acct, = seed_accounts(make_account(status=AccountStatus.ELIGIBLE))
        entry = ActivityEntry(
            action=ActivityAction.RECLAIM, account=acct.address, amount=0.002,
            mode=ExecutionMode.REAL, tx_signature="sig",
        )

        assert store.accounts.mark_reclaimed(acct.address, entry)

        row = store.accounts.get(acct.address)
        assert row.status is AccountStatus.RECLAIMED
        assert row.balance == 0.0
        assert [e.tx_signature for e in store.activity.list_entries()] == ["sig"]

    def test_mark_reclaimed_is_conditional(self, store, seed_accounts, make_account):
        """A second transition writes nothing, not even the log entry."""
        acct, = seed_accounts(make_account(status=AccountStatus.ELIGIBLE))
        entry = ActivityEntry(action=ActivityAction.RECLAIM, account=acct.address, mode=ExecutionMode.REAL)

        assert store.accounts.mark_reclaimed(acct.address, entry)
        assert not store.accounts.mark_reclaimed(acct.address, entry)
        assert store.activity.count() == 1

    def test_save_scan_never_demotes_reclaimed(self, store, seed_accounts, make_account):
        acct, = seed_accounts(make_account(status=AccountStatus.RECLAIMED))
        acct.status = AccountStatus.ACTIVE
        acct.balance = 0.5

        store.accounts.save_scan([], [acct], ActivityEntry(action=ActivityAction.SCAN))

        row = store.accounts.get(acct.address)
        assert row.status is AccountStatus.RECLAIMED
        assert row.balance == 0.5

    def test_save_scan_is_atomic(self, store, seed_accounts, make_account):
        """A duplicate insert rolls back the whole run, SCAN entry included."""
        existing, = seed_accounts(make_account())
        fresh = make_account()

        with pytest.raises(sqlite3.IntegrityError):
            store.accounts.save_scan([fresh, existing], [], ActivityEntry(action=ActivityAction.SCAN))

        assert store.accounts.get(fresh.address) is None
        assert store.activity.count() == 0

    def test_status_check_constraint(self, store):
        with pytest.raises(sqlite3.IntegrityError):
            with store.core.cursor(commit=True) as c:
                c.execute(
                    "INSERT INTO sponsored_accounts VALUES ('x', 0, 0, 0, 'BOGUS', 0)"
                )


class TestActivityRepository:

    def _append(self, store, action, mode, amount=0.0, ts=0.0):
        store.activity.append(ActivityEntry(
            action=action, account="acct", amount=amount, mode=mode, reason="r", timestamp=ts,
        ))

    def test_newest_first(self, store):
        self._append(store, ActivityAction.SCAN, ExecutionMode.SIMULATION, ts=1)
        self._append(store, ActivityAction.SKIP, ExecutionMode.SIMULATION, ts=2)

        assert [e.action for e in store.activity.list_entries()] == [ActivityAction.SKIP, ActivityAction.SCAN]

    def test_filters(self, store):
        self._append(store, ActivityAction.RECLAIM, ExecutionMode.REAL, amount=1.0)
        self._append(store, ActivityAction.RECLAIM, ExecutionMode.SIMULATION, amount=2.0)
        self._append(store, ActivityAction.SKIP, ExecutionMode.REAL)

        real = store.activity.list_entries(mode=ExecutionMode.REAL)
        reclaims = store.activity.list_entries(action=ActivityAction.RECLAIM)
        both = store.activity.list_entries(mode=ExecutionMode.REAL, action=ActivityAction.RECLAIM)

        assert len(real) == 2
        assert len(reclaims) == 2
        assert [e.amount for e in both] == [1.0]

    def test_limit_is_capped(self, store):
        with store.core.cursor(commit=True) as c:
            c.executemany(
                "INSERT INTO activity_log (action, account, amount, mode, reason, timestamp) "
                "VALUES ('SCAN', '-', 0, 'SIMULATION', '', ?)",
                [(float(i),) for i in range(MAX_LOG_PAGE + 5)],
            )

        assert len(store.activity.list_entries(limit=5000)) == MAX_LOG_PAGE

    def test_total_recovered_counts_only_real_reclaims(self, store):
        self._append(store, ActivityAction.RECLAIM, ExecutionMode.REAL, amount=0.25)
        self._append(store, ActivityAction.RECLAIM, ExecutionMode.REAL, amount=0.5)
        self._append(store, ActivityAction.RECLAIM, ExecutionMode.SIMULATION, amount=9.0)
        self._append(store, ActivityAction.SKIP, ExecutionMode.REAL, amount=4.0)

        assert store.activity.total_recovered() == pytest.approx(0.75)

    def test_total_recovered_empty(self, store):
        assert store.activity.total_recovered() == 0.0


class TestSettingsRepository:

    def test_defaults(self, store):
        settings = store.settings.load()
        assert settings.min_age_days == 30
        assert settings.dry_run_mode is True

    def test_read_your_writes(self, store):
        store.settings.set("min_age_days", "7")
        store.settings.set("dry_run_mode", "false")

        settings = store.settings.load()
        assert settings.min_age_days == 7
        assert settings.dry_run_mode is False
        assert not store.settings.is_dry_run_enabled()

    @pytest.mark.parametrize("key,value", [
        ("operator_private_key", "x"),
        ("min_age_days", "-1"),
        ("min_age_days", "soon"),
        ("dry_run_mode", "maybe"),
    ])
    def test_rejects_invalid(self, store, key, value):
        with pytest.raises(ValueError):
            store.settings.set(key, value)

    def test_boolean_is_normalised(self, store):
        store.settings.set("dry_run_mode", " TRUE ")
        assert store.settings.get("dry_run_mode") == "true"


class TestWhitelistRepository:

    @pytest.mark.parametrize("status", [AccountStatus.ELIGIBLE, AccountStatus.PROTECTED, AccountStatus.SKIP])
    def test_add_leaves_account_status_alone(self, store, seed_accounts, make_account, status):
        acct, = seed_accounts(make_account(status=status))

        store.whitelist.add(acct.address, note="partner")

        assert store.whitelist.contains(acct.address)
        assert store.accounts.get(acct.address).status is status
        assert store.whitelist.list_entries()[0]["note"] == "partner"

    def test_add_does_not_touch_reclaimed(self, store, seed_accounts, make_account):
        acct, = seed_accounts(make_account(status=AccountStatus.RECLAIMED))

        store.whitelist.add(acct.address)

        assert store.accounts.get(acct.address).status is AccountStatus.RECLAIMED

    def test_add_untracked_address(self, store):
        store.whitelist.add("future-account")
        assert store.whitelist.addresses() == frozenset({"future-account"})

    def test_add_is_upsert(self, store):
        store.whitelist.add("a", note="one")
        store.whitelist.add("a", note="two")

        entries = store.whitelist.list_entries()
        assert len(entries) == 1
        assert entries[0]["note"] == "two"

    def test_remove(self, store):
        store.whitelist.add("a")

        assert store.whitelist.remove("a")
        assert not store.whitelist.remove("a")
        assert not store.whitelist.contains("a")
