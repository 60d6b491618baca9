"""
Tests for RefundAttributionEngine.

Covers:
- Pool totals and label collapsing shown on the report
- FIFO consumption, payments before transfers
- Consumption carried across successive refunds of one account
- Refunds larger than their pool
"""

import pytest

from feefine_engines.attribution import (
    MULTIPLE_LABELS,
    RefundAttributionEngine,
    collapse_labels,
)
from feefine_engines.ledger_replay import LedgerReplayEngine
from feefine_kernel.domain.values import Money
from tests.conftest import PAYMENT_METHOD, TRANSFER_ACCOUNT, make_account, make_action


def _attribute(actions, account_id):
    replay = LedgerReplayEngine().replay(account_id=account_id, actions=actions)
    return RefundAttributionEngine().attribute(replay=replay)


class TestCollapseLabels:
    def test_none(self):
        assert collapse_labels([]) == ""

    def test_single_distinct(self):
        assert collapse_labels(["cash", "cash"]) == "cash"

    def test_several(self):
        assert collapse_labels(["cash", "check"]) == MULTIPLE_LABELS
        assert MULTIPLE_LABELS == "See Fee/fine details page"


class TestSingleRefund:
    def setup_method(self):
        self.account = make_account("10.00")

    def test_partial_refund_shows_whole_payment(self):
        actions = [
            make_action(self.account, "2020-01-02 12:00:00", "Paid partially", "3.00", "7.00",
                        method=PAYMENT_METHOD, transaction_info="tx-1"),
            make_action(self.account, "2020-01-03 12:00:00", "Refunded partially", "2.00", "7.00"),
        ]
        (attribution,) = _attribute(actions, self.account.id)

        assert attribution.paid_amount == Money.of("3.00")
        assert attribution.payment_method == PAYMENT_METHOD
        assert attribution.transaction_info == "tx-1"
        assert attribution.transferred_amount == Money.zero()
        assert attribution.transfer_account == ""
        assert attribution.consumed_from_payments == Money.of("2.00")
        assert attribution.unattributed.is_zero

    def test_two_payment_methods_collapse(self):
        actions = [
            make_action(self.account, "2020-01-01 12:00:00", "Paid partially", "3.10", "6.90",
                        method=PAYMENT_METHOD, transaction_info="tx"),
            make_action(self.account, "2020-01-02 12:00:00", "Paid partially", "2.10", "4.80",
                        method=PAYMENT_METHOD + "-different-method", transaction_info="tx"),
            make_action(self.account, "2020-01-03 12:00:00", "Refunded fully", "5.20", "4.80"),
        ]
        (attribution,) = _attribute(actions, self.account.id)

        assert attribution.paid_amount == Money.of("5.20")
        assert attribution.payment_method == MULTIPLE_LABELS
        assert attribution.transaction_info == "tx"

    def test_payments_consumed_before_transfers(self):
        actions = [
            make_action(self.account, "2020-01-01 12:00:00", "Transferred partially", "1.50", "8.50",
                        method=TRANSFER_ACCOUNT),
            make_action(self.account, "2020-01-02 12:00:00", "Paid partially", "3.00", "5.50",
                        method=PAYMENT_METHOD),
            make_action(self.account, "2020-01-03 12:00:00", "Refunded partially", "4.00", "5.50"),
        ]
        (attribution,) = _attribute(actions, self.account.id)

        assert attribution.paid_amount == Money.of("3.00")
        assert attribution.transferred_amount == Money.of("1.50")
        assert attribution.transfer_account == TRANSFER_ACCOUNT
        assert attribution.consumed_from_payments == Money.of("3.00")
        assert attribution.consumed_from_transfers == Money.of("1.00")
        assert attribution.consumed == Money.of("4.00")

    def test_refund_without_prior_settlement(self, captured_logs):
        actions = [
            make_action(self.account, "2020-01-01 12:00:00", "Refunded fully", "1.00", "10.00"),
        ]
        (attribution,) = _attribute(actions, self.account.id)

        assert attribution.paid_amount.is_zero
        assert attribution.payment_method == ""
        assert attribution.unattributed == Money.of("1.00")
        assert any(
            r["message"] == "refund_exceeds_attributable_pool" for r in captured_logs()
        )

    def test_actions_after_refund_are_not_in_its_pool(self):
        actions = [
            make_action(self.account, "2020-01-01 12:00:00", "Paid partially", "3.00", "7.00"),
            make_action(self.account, "2020-01-02 12:00:00", "Refunded partially", "1.00", "7.00"),
            make_action(self.account, "2020-01-03 12:00:00", "Paid partially", "4.00", "3.00"),
        ]
        (attribution,) = _attribute(actions, self.account.id)
        assert attribution.paid_amount == Money.of("3.00")


class TestSuccessiveRefunds:
    def test_fully_consumed_payment_leaves_pool(self):
        account = make_account("10.00")
        actions = [
            make_action(account, "2020-01-01 12:00:00", "Paid partially", "3.00", "7.00",
                        method="cash"),
            make_action(account, "2020-01-02 12:00:00", "Paid partially", "2.00", "5.00",
                        method="check"),
            make_action(account, "2020-01-03 12:00:00", "Refunded partially", "3.00", "5.00"),
            make_action(account, "2020-01-04 12:00:00", "Refunded partially", "1.00", "5.00"),
        ]
        first, second = _attribute(actions, account.id)

        assert first.paid_amount == Money.of("5.00")
        assert first.payment_method == MULTIPLE_LABELS
        # The cash payment was fully consumed by the first refund
        assert second.paid_amount == Money.of("2.00")
        assert second.payment_method == "check"
        assert second.pool_sequences == (1,)

    def test_multi_refund_account(self):
        """Pool totals across two refunds interleaved with a later payment."""
        account = make_account("10.00", fee_fine_type="ff-type-1")
        actions = [
            make_action(account, "2020-01-01 12:00:00", "Paid partially", "3.10", "6.90",
                        method=PAYMENT_METHOD, transaction_info="tx"),
            make_action(account, "2020-01-02 12:00:00", "Paid partially", "3.20", "3.70",
                        method=PAYMENT_METHOD, transaction_info="tx-different-info"),
            make_action(account, "2020-01-03 12:00:00", "Transferred partially", "2.00", "5.70",
                        method=TRANSFER_ACCOUNT, transaction_info="transfer-tx"),
            make_action(account, "2020-01-04 12:00:00", "Refunded partially", "1.00", "5.70"),
            make_action(account, "2020-01-05 12:00:00", "Paid fully", "5.70", "0.00",
                        method=PAYMENT_METHOD + "-different-method", transaction_info="refund-tx"),
            make_action(account, "2020-01-06 12:00:00", "Refunded fully", "9.00", "0.00"),
        ]
        first, second = _attribute(actions, account.id)

        assert str(first.paid_amount) == "6.30"
        assert first.payment_method == PAYMENT_METHOD
        assert first.transaction_info == MULTIPLE_LABELS
        assert str(first.transferred_amount) == "2.00"
        assert first.transfer_account == TRANSFER_ACCOUNT

        assert str(second.paid_amount) == "12.00"
        assert second.payment_method == MULTIPLE_LABELS
        assert second.transaction_info == MULTIPLE_LABELS
        assert str(second.transferred_amount) == "2.00"
        assert second.transfer_account == TRANSFER_ACCOUNT

        # 2.10 left on the first payment, 3.20, then 3.70 of the 5.70 payment
        assert second.consumed_from_payments == Money.of("9.00")
        assert second.consumed_from_transfers.is_zero

    def test_state_does_not_leak_between_calls(self):
        account = make_account("10.00")
        actions = [
            make_action(account, "2020-01-01 12:00:00", "Paid partially", "3.00", "7.00"),
            make_action(account, "2020-01-02 12:00:00", "Refunded fully", "3.00", "7.00"),
        ]
        assert _attribute(actions, account.id) == _attribute(actions, account.id)


class TestConservation:
    @pytest.mark.parametrize("refund", ["0.01", "1.00", "4.50", "6.00", "7.50"])
    def test_consumed_plus_unattributed_equals_refund(self, refund):
        account = make_account("10.00")
        actions = [
            make_action(account, "2020-01-01 12:00:00", "Paid partially", "4.50", "5.50"),
            make_action(account, "2020-01-02 12:00:00", "Transferred partially", "1.50", "4.00"),
            make_action(account, "2020-01-03 12:00:00", "Refunded partially", refund, "4.00"),
        ]
        (attribution,) = _attribute(actions, account.id)
        assert attribution.consumed + attribution.unattributed == Money.of(refund)
        assert attribution.consumed <= Money.of("6.00")
