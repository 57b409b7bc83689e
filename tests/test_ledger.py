from dataclasses import replace
from decimal import Decimal

import pytest
from sqlalchemy import select

from shopledger.models.ledger import FundAccount, FundEntry, FundEntryType
from shopledger.models.user import UserRole
from shopledger.services import ledger
from shopledger.services.exceptions import (
    InsufficientFunds,
    OwnerNotFound,
    ShopNotFound,
    ValidationError,
)


def test_credits_accumulate_into_current_remaining(db):
    amounts = [Decimal("100"), Decimal("250.50"), Decimal("49.50")]
    for amount in amounts:
        ledger.credit(db, shop_id="shop1", amount=amount, given_by="owner")
    db.commit()

    summary = ledger.query(db, "shop1")
    assert summary.current_remaining == sum(amounts)
    assert summary.total_given == sum(amounts)
    assert [e.entry_type for e in summary.entries] == [FundEntryType.CREDIT] * 3


def test_credit_records_running_balance_after_entry(db):
    first = ledger.credit(db, shop_id="shop1", amount="1000", given_by="owner")
    second = ledger.credit(db, shop_id="shop1", amount=Decimal("500"), given_by="owner")

    assert first.remaining_amount == Decimal("1000.00")
    assert second.remaining_amount == Decimal("1500.00")
    assert second.given_amount == Decimal("500.00")


@pytest.mark.parametrize("amount", [None, 0, -5, "abc", "", "NaN", "Infinity", True])
def test_credit_rejects_invalid_amounts(db, amount):
    with pytest.raises(ValidationError, match="Please provide a valid amount"):
        ledger.credit(db, shop_id="shop1", amount=amount)
    assert db.scalar(select(FundEntry.id)) is None


def test_credit_requires_a_shop(db):
    with pytest.raises(ShopNotFound, match="Worker not linked to any shop"):
        ledger.credit(db, shop_id=None, amount=10)


def test_debit_without_any_fund_reports_no_fund(db):
    with pytest.raises(InsufficientFunds, match="No fund available for this shop"):
        ledger.debit(db, shop_id="shop1", amount=10)


def test_debit_refuses_more_than_available_and_leaves_balance(db):
    ledger.credit(db, shop_id="shop1", amount=600)
    db.commit()

    with pytest.raises(InsufficientFunds) as excinfo:
        ledger.debit(db, shop_id="shop1", amount=700)
    assert excinfo.value.message == "Insufficient funds. Available: ₹600.00, Required: ₹700.00"
    db.rollback()

    assert ledger.current_balance(db, "shop1") == Decimal("600")
    assert db.scalar(select(FundAccount.balance_cents).where(FundAccount.shop_id == "shop1")) == 60000


def test_debit_appends_negative_entry(db):
    ledger.credit(db, shop_id="shop1", amount=1000)
    entry = ledger.debit(db, shop_id="shop1", amount=400, reference_type="purchase", reference_id=7)
    db.commit()

    assert entry.entry_type == FundEntryType.DEBIT
    assert entry.given_amount == Decimal("-400.00")
    assert entry.remaining_amount == Decimal("600.00")
    assert (entry.reference_type, entry.reference_id) == ("purchase", 7)
    summary = ledger.query(db, "shop1")
    assert summary.current_remaining == Decimal("600")
    assert summary.total_given == Decimal("1000")


def test_debit_may_consume_the_whole_balance(db):
    ledger.credit(db, shop_id="shop1", amount=250)
    ledger.debit(db, shop_id="shop1", amount=250)
    db.commit()

    assert ledger.current_balance(db, "shop1") == Decimal("0")


def test_reversal_restores_balance(db):
    ledger.credit(db, shop_id="shop1", amount=1000)
    ledger.debit(db, shop_id="shop1", amount=400)
    reversal = ledger.reverse_debit(db, shop_id="shop1", amount=400, reference_type="purchase", reference_id=1)
    db.commit()

    assert reversal.entry_type == FundEntryType.REVERSAL
    assert reversal.remaining_amount == Decimal("1000.00")
    assert ledger.current_balance(db, "shop1") == Decimal("1000")
    # Reversals are not owner money, so they do not count as given.
    assert ledger.query(db, "shop1").total_given == Decimal("1000")


def test_reversal_of_zero_is_a_noop(db):
    assert ledger.reverse_debit(db, shop_id="shop1", amount=Decimal("0")) is None
    assert db.scalar(select(FundEntry.id)) is None


def test_reversal_of_negative_amount_is_a_programming_error(db):
    ledger.credit(db, shop_id="shop1", amount=100)

    with pytest.raises(ValueError, match="negative debit"):
        ledger.reverse_debit(db, shop_id="shop1", amount=Decimal("-5"))
    assert ledger.current_balance(db, "shop1") == Decimal("100")


@pytest.mark.parametrize(
    ("credit", "debits"),
    [
        ("1000.30", ["999.10", "1.20"]),
        ("0.30", ["0.10", "0.20"]),
    ],
)
def test_cent_debits_can_drain_the_exact_balance(db, credit, debits):
    ledger.credit(db, shop_id="shop1", amount=Decimal(credit))
    for amount in debits:
        ledger.debit(db, shop_id="shop1", amount=Decimal(amount))
    db.commit()

    assert ledger.current_balance(db, "shop1") == Decimal("0")
    assert db.scalar(select(FundAccount.balance_cents).where(FundAccount.shop_id == "shop1")) == 0
    with pytest.raises(InsufficientFunds):
        ledger.debit(db, shop_id="shop1", amount=Decimal("0.01"))


def test_shops_are_independent(db):
    ledger.credit(db, shop_id="shop1", amount=100)
    ledger.credit(db, shop_id="shop2", amount=900)
    ledger.debit(db, shop_id="shop2", amount=850)
    db.commit()

    assert ledger.current_balance(db, "shop1") == Decimal("100")
    assert ledger.current_balance(db, "shop2") == Decimal("50")
    with pytest.raises(InsufficientFunds):
        ledger.debit(db, shop_id="shop1", amount=101)


def test_query_lists_newest_first(db):
    first = ledger.credit(db, shop_id="shop1", amount=10)
    second = ledger.credit(db, shop_id="shop1", amount=20)
    third = ledger.debit(db, shop_id="shop1", amount=5)
    db.commit()

    ids = [entry.id for entry in ledger.query(db, "shop1").entries]
    assert ids == [third.id, second.id, first.id]


def test_resolve_fund_owner_uses_the_single_admin(db, admin, worker):
    assert ledger.resolve_fund_owner(db).id == admin.id


def test_resolve_fund_owner_without_admin_fails(db, worker):
    with pytest.raises(OwnerNotFound):
        ledger.resolve_fund_owner(db)


def test_configured_fund_owner_wins(db, make_user, monkeypatch):
    make_user("first-admin", role=UserRole.ADMIN, shop_id=None)
    configured = make_user("boss", role=UserRole.ADMIN, shop_id=None)
    monkeypatch.setattr(ledger, "settings", replace(ledger.settings, fund_owner_id=configured.id))

    assert ledger.resolve_fund_owner(db).id == configured.id


def test_configured_fund_owner_must_be_admin(db, worker, monkeypatch):
    monkeypatch.setattr(ledger, "settings", replace(ledger.settings, fund_owner_id=worker.id))

    with pytest.raises(OwnerNotFound):
        ledger.resolve_fund_owner(db)
