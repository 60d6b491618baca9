"""
Tests for LedgerReplayEngine.

Covers:
- Ordering and sequence numbering
- Cumulative totals per category
- Balance cross-check (flag only)
- Overrefunded ledgers
"""

from feefine_engines.ledger_replay import LedgerReplayEngine
from feefine_kernel.domain.ledger import ActionCategory
from feefine_kernel.domain.values import Money
from tests.conftest import make_account, make_action


class TestReplayTotals:
    def setup_method(self):
        self.engine = LedgerReplayEngine()
        self.account = make_account("10.00")

    def test_empty_history(self):
        replay = self.engine.replay(account_id=self.account.id, actions=[])
        assert replay.is_empty
        assert replay.total_paid.is_zero
        assert replay.refundable.is_zero

    def test_totals_by_category(self):
        actions = [
            make_action(self.account, "2020-01-01 12:00:00", "Paid partially", "3.10", "6.90"),
            make_action(self.account, "2020-01-02 12:00:00", "Transferred partially", "2.00", "4.90"),
            make_action(self.account, "2020-01-03 12:00:00", "Waived partially", "1.00", "3.90"),
            make_action(self.account, "2020-01-04 12:00:00", "Refunded partially", "1.00", "3.90"),
        ]
        replay = self.engine.replay(account_id=self.account.id, actions=actions)

        assert replay.total_paid == Money.of("3.10")
        assert replay.total_transferred == Money.of("2.00")
        assert replay.total_refunded == Money.of("1.00")
        assert replay.settled == Money.of("5.10")
        assert replay.refundable == Money.of("4.10")

    def test_running_totals_on_each_action(self):
        actions = [
            make_action(self.account, "2020-01-01 12:00:00", "Paid partially", "3.00", "7.00"),
            make_action(self.account, "2020-01-02 12:00:00", "Refunded partially", "1.00", "7.00"),
            make_action(self.account, "2020-01-03 12:00:00", "Paid partially", "2.00", "5.00"),
        ]
        replay = self.engine.replay(account_id=self.account.id, actions=actions)

        assert [a.paid_to_date for a in replay.actions] == [
            Money.of("3.00"), Money.of("3.00"), Money.of("5.00"),
        ]
        assert [a.refunded_to_date for a in replay.actions] == [
            Money.zero(), Money.of("1.00"), Money.of("1.00"),
        ]

    def test_other_actions_do_not_move_totals(self):
        actions = [
            make_action(self.account, "2020-01-01 12:00:00", "Outstanding", "10.00", "10.00"),
            make_action(self.account, "2020-01-02 12:00:00", "Cancelled as error", "10.00", "0.00"),
        ]
        replay = self.engine.replay(account_id=self.account.id, actions=actions)
        assert replay.settled.is_zero
        assert all(a.category is ActionCategory.OTHER for a in replay.actions)


class TestReplayOrdering:
    def setup_method(self):
        self.engine = LedgerReplayEngine()
        self.account = make_account("10.00")

    def test_sorted_by_timestamp_with_dense_sequences(self):
        late = make_action(self.account, "2020-01-03 12:00:00", "Refunded fully", "3.00", "7.00")
        early = make_action(self.account, "2020-01-01 12:00:00", "Paid partially", "3.00", "7.00")
        replay = self.engine.replay(account_id=self.account.id, actions=[late, early])

        assert [a.action for a in replay.actions] == [early, late]
        assert [a.sequence for a in replay.actions] == [0, 1]

    def test_equal_timestamps_keep_input_order(self):
        first = make_action(self.account, "2020-01-01 12:00:00", "Paid partially", "1.00", "9.00")
        second = make_action(self.account, "2020-01-01 12:00:00", "Paid partially", "2.00", "7.00")
        replay = self.engine.replay(account_id=self.account.id, actions=[first, second])
        assert [a.action for a in replay.actions] == [first, second]

    def test_of_category(self):
        actions = [
            make_action(self.account, "2020-01-01 12:00:00", "Paid partially", "3.00", "7.00"),
            make_action(self.account, "2020-01-02 12:00:00", "Refunded partially", "1.00", "7.00"),
        ]
        replay = self.engine.replay(account_id=self.account.id, actions=actions)
        assert len(replay.of_category(ActionCategory.REFUND)) == 1
        assert replay.of_category(ActionCategory.TRANSFER) == ()


class TestBalanceCrossCheck:
    def setup_method(self):
        self.engine = LedgerReplayEngine()
        self.account = make_account("10.00")

    def test_consistent_balances_match(self):
        actions = [
            make_action(self.account, "2020-01-01 12:00:00", "Paid partially", "3.00", "7.00"),
            make_action(self.account, "2020-01-02 12:00:00", "Transferred partially", "1.50", "5.50"),
        ]
        replay = self.engine.replay(
            account_id=self.account.id, actions=actions, billed_amount=self.account.amount
        )
        assert [a.balance_matches for a in replay.actions] == [True, True]

    def test_mismatch_is_flagged_and_logged(self, captured_logs):
        actions = [
            make_action(self.account, "2020-01-01 12:00:00", "Paid partially", "3.00", "6.00"),
        ]
        replay = self.engine.replay(
            account_id=self.account.id, actions=actions, billed_amount=self.account.amount
        )

        assert replay.actions[0].balance_matches is False
        # The replay itself is unaffected by the stored figure
        assert replay.total_paid == Money.of("3.00")
        mismatches = [r for r in captured_logs() if r["message"] == "ledger_balance_mismatch"]
        assert len(mismatches) == 1
        assert mismatches[0]["expected_balance"] == "7.00"
        assert mismatches[0]["stored_balance"] == "6.00"

    def test_no_billed_amount_skips_check(self):
        actions = [
            make_action(self.account, "2020-01-01 12:00:00", "Paid partially", "3.00", "1.00"),
        ]
        replay = self.engine.replay(account_id=self.account.id, actions=actions)
        assert replay.actions[0].balance_matches is None


class TestOverrefunded:
    def test_refundable_clamped_and_logged(self, captured_logs):
        account = make_account("10.00")
        actions = [
            make_action(account, "2020-01-01 12:00:00", "Paid partially", "2.00", "8.00"),
            make_action(account, "2020-01-02 12:00:00", "Refunded fully", "5.00", "8.00"),
        ]
        replay = LedgerReplayEngine().replay(account_id=account.id, actions=actions)

        assert replay.is_overrefunded
        assert replay.refundable == Money.zero()
        assert any(r["message"] == "ledger_overrefunded" for r in captured_logs())
