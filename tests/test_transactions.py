from decimal import Decimal

import pytest
from sqlalchemy import select

from shopledger.models.inventory import Item, PaymentType, Purchase, from_milli
from shopledger.models.ledger import FundEntry, FundEntryType, WorkerExpense
from shopledger.models.user import UserRole
from shopledger.services import gate, ledger, transactions
from shopledger.services.exceptions import (
    ConflictError,
    InsufficientFunds,
    InsufficientStock,
    ItemNotFound,
    UnauthorizedError,
    ValidationError,
)


def _stock(db, item_id: int) -> Decimal:
    return from_milli(db.scalar(select(Item.stock_milli).where(Item.id == item_id)))


@pytest.fixture
def funded(db):
    ledger.credit(db, shop_id="shop1", amount=1000, given_by="owner")
    db.commit()


@pytest.fixture
def rice(db, worker):
    item = Item(user_id=worker.id, name="rice", unit="kg", category="general", stock=Decimal("0"))
    db.add(item)
    db.commit()
    return item


def test_paid_purchase_draws_fund_and_adds_stock(db, actor, funded, rice):
    purchase = transactions.record_purchase(db, actor, item_id=rice.id, quantity=10, unit_price=40)
    db.commit()

    assert purchase.total_amount == Decimal("400.00")
    assert purchase.borrow_amount == Decimal("0")
    assert purchase.fund_debited == Decimal("400.00")
    assert purchase.shop_id == "shop1"
    assert ledger.current_balance(db, "shop1") == Decimal("600")
    assert _stock(db, rice.id) == Decimal("10")


def test_purchase_by_name_creates_item_for_user(db, actor, funded):
    purchase = transactions.record_purchase(db, actor, item_name="  Sugar ", quantity=2, unit_price=50)
    db.commit()

    item = db.get(Item, purchase.item_id)
    assert (item.name, item.unit, item.category, item.user_id) == ("Sugar", "kg", "general", actor.user.id)
    again = transactions.record_purchase(db, actor, item_name="Sugar", quantity=1, unit_price=50)
    assert again.item_id == item.id


def test_purchase_requires_an_item(db, actor, funded):
    with pytest.raises(ValidationError):
        transactions.record_purchase(db, actor, quantity=1, unit_price=1)
    with pytest.raises(ItemNotFound):
        transactions.record_purchase(db, actor, item_id=9999, quantity=1, unit_price=1)


def test_paid_purchase_beyond_fund_fails_without_side_effects(db, actor, funded, rice):
    with pytest.raises(InsufficientFunds):
        transactions.record_purchase(db, actor, item_id=rice.id, quantity=10, unit_price=101)
    db.rollback()

    assert ledger.current_balance(db, "shop1") == Decimal("1000")
    assert _stock(db, rice.id) == Decimal("0")
    assert db.scalar(select(Purchase.id)) is None


def test_borrow_purchase_bypasses_the_fund(db, actor, rice):
    purchase = transactions.record_purchase(
        db, actor, item_id=rice.id, quantity=5, unit_price=100, payment_type=PaymentType.BORROW
    )
    db.commit()

    assert purchase.borrow_amount == Decimal("500.00")
    assert purchase.fund_debited == Decimal("0")
    assert ledger.current_balance(db, "shop1") == Decimal("0")
    assert _stock(db, rice.id) == Decimal("5")


@pytest.mark.parametrize("borrow_amount", [Decimal("-1"), Decimal("500.01")])
def test_borrow_amount_must_fit_the_total(db, actor, rice, borrow_amount):
    with pytest.raises(ValidationError):
        transactions.record_purchase(
            db,
            actor,
            item_id=rice.id,
            quantity=5,
            unit_price=100,
            payment_type=PaymentType.BORROW,
            borrow_amount=borrow_amount,
        )


def test_paid_purchase_ignores_borrow_amount(db, actor, funded, rice):
    purchase = transactions.record_purchase(
        db, actor, item_id=rice.id, quantity=1, unit_price=10, borrow_amount=Decimal("5")
    )
    assert purchase.borrow_amount == Decimal("0")


def test_stock_is_conserved_across_create_edit_delete(db, actor, funded, rice):
    purchase = transactions.record_purchase(db, actor, item_id=rice.id, quantity=4, unit_price=10)
    db.commit()
    assert _stock(db, rice.id) == Decimal("4")

    transactions.revise_purchase(db, purchase, acting_user=actor.user, acting_worker_id=actor.worker.id, quantity=7)
    db.commit()
    assert _stock(db, rice.id) == Decimal("7")
    assert ledger.current_balance(db, "shop1") == Decimal("930")

    transactions.remove_purchase(db, purchase, acting_user=actor.user, acting_worker_id=actor.worker.id)
    db.commit()
    assert _stock(db, rice.id) == Decimal("0")
    assert ledger.current_balance(db, "shop1") == Decimal("1000")


def test_edit_reverses_old_debit_before_reserving_new(db, actor, funded, rice):
    purchase = transactions.record_purchase(db, actor, item_id=rice.id, quantity=8, unit_price=100)
    db.commit()
    assert ledger.current_balance(db, "shop1") == Decimal("200")

    # 1000 total is only affordable once the old 800 has been given back.
    transactions.revise_purchase(db, purchase, acting_user=actor.user, unit_price=125)
    db.commit()

    assert purchase.total_amount == Decimal("1000.00")
    assert purchase.fund_debited == Decimal("1000.00")
    assert ledger.current_balance(db, "shop1") == Decimal("0")
    types = db.scalars(select(FundEntry.entry_type).order_by(FundEntry.id)).all()
    assert types == [FundEntryType.CREDIT, FundEntryType.DEBIT, FundEntryType.REVERSAL, FundEntryType.DEBIT]


def test_failed_edit_leaves_purchase_untouched(db, actor, funded, rice):
    purchase = transactions.record_purchase(db, actor, item_id=rice.id, quantity=1, unit_price=100)
    db.commit()

    with pytest.raises(InsufficientFunds):
        transactions.revise_purchase(db, purchase, acting_user=actor.user, quantity=20)
    db.rollback()

    reloaded = db.get(Purchase, purchase.id)
    assert reloaded.quantity == Decimal("1")
    assert ledger.current_balance(db, "shop1") == Decimal("900")
    assert _stock(db, rice.id) == Decimal("1")


def test_switching_paid_purchase_to_borrow_refunds_the_fund(db, actor, funded, rice):
    purchase = transactions.record_purchase(db, actor, item_id=rice.id, quantity=3, unit_price=100)
    db.commit()

    transactions.revise_purchase(db, purchase, acting_user=actor.user, payment_type=PaymentType.BORROW)
    db.commit()

    assert purchase.borrow_amount == Decimal("300.00")
    assert purchase.fund_debited == Decimal("0")
    assert ledger.current_balance(db, "shop1") == Decimal("1000")


def test_reassigning_purchase_item_moves_stock(db, actor, funded, rice, worker):
    wheat = Item(user_id=worker.id, name="wheat", stock=Decimal("0"))
    db.add(wheat)
    db.commit()
    purchase = transactions.record_purchase(db, actor, item_id=rice.id, quantity=6, unit_price=10)
    db.commit()

    transactions.revise_purchase(db, purchase, acting_user=actor.user, item_id=wheat.id, quantity=4)
    db.commit()

    assert purchase.item_id == wheat.id
    assert _stock(db, rice.id) == Decimal("0")
    assert _stock(db, wheat.id) == Decimal("4")


def test_deleting_consumed_purchase_is_refused(db, actor, funded, rice):
    purchase = transactions.record_purchase(db, actor, item_id=rice.id, quantity=5, unit_price=10)
    transactions.record_sale(db, actor, item_id=rice.id, quantity=3, unit_price=20)
    db.commit()

    with pytest.raises(ConflictError, match="already been consumed"):
        transactions.remove_purchase(db, purchase, acting_user=actor.user)
    db.rollback()

    assert _stock(db, rice.id) == Decimal("2")
    assert ledger.current_balance(db, "shop1") == Decimal("950")


def test_sale_is_guarded_by_stock(db, actor, rice):
    gate.receive_purchase_stock(db, rice.id, Decimal("2"))
    db.commit()

    with pytest.raises(InsufficientStock):
        transactions.record_sale(db, actor, item_id=rice.id, quantity=3, unit_price=10)
    db.rollback()
    assert _stock(db, rice.id) == Decimal("2")

    sale = transactions.record_sale(db, actor, item_id=rice.id, quantity=2, unit_price=10)
    db.commit()
    assert sale.total_amount == Decimal("20.00")
    assert _stock(db, rice.id) == Decimal("0")


def test_fractional_stock_can_be_sold_down_to_zero(db, actor, rice):
    gate.adjust_stock(db, rice.id, Decimal("1.300"))
    gate.adjust_stock(db, rice.id, Decimal("-1.100"))
    db.commit()

    transactions.record_sale(db, actor, item_id=rice.id, quantity=Decimal("0.2"), unit_price=10)
    db.commit()

    assert _stock(db, rice.id) == Decimal("0")


def test_fractional_purchase_stock_can_be_withdrawn_exactly(db, rice):
    gate.adjust_stock(db, rice.id, Decimal("1.300"))
    gate.adjust_stock(db, rice.id, Decimal("-1.100"))

    gate.withdraw_purchase_stock(db, rice.id, Decimal("0.200"))
    db.commit()

    assert _stock(db, rice.id) == Decimal("0")


def test_sale_edit_and_delete_move_stock(db, actor, rice, worker):
    wheat = Item(user_id=worker.id, name="wheat", stock=Decimal("10"))
    db.add(wheat)
    db.commit()
    gate.receive_purchase_stock(db, rice.id, Decimal("10"))
    sale = transactions.record_sale(db, actor, item_id=rice.id, quantity=4, unit_price=10)
    db.commit()

    transactions.revise_sale(db, sale, acting_user=actor.user, quantity=9)
    db.commit()
    assert _stock(db, rice.id) == Decimal("1")

    with pytest.raises(InsufficientStock):
        transactions.revise_sale(db, sale, acting_user=actor.user, quantity=11)
    db.rollback()

    transactions.revise_sale(db, sale, acting_user=actor.user, item_id=wheat.id, quantity=3)
    db.commit()
    assert _stock(db, rice.id) == Decimal("10")
    assert _stock(db, wheat.id) == Decimal("7")

    transactions.remove_sale(db, sale, acting_user=actor.user)
    db.commit()
    assert _stock(db, wheat.id) == Decimal("10")


def test_sales_never_touch_the_fund(db, actor, funded, rice):
    gate.receive_purchase_stock(db, rice.id, Decimal("5"))
    transactions.record_sale(db, actor, item_id=rice.id, quantity=5, unit_price=100)
    db.commit()

    assert ledger.current_balance(db, "shop1") == Decimal("1000")


def test_expense_lifecycle(db, actor, funded):
    expense, entry = transactions.record_expense(db, actor, title="  Tea ", amount="150")
    db.commit()
    assert expense.title == "Tea"
    assert entry.remaining_amount == Decimal("850.00")
    assert (entry.reference_type, entry.reference_id) == ("expense", expense.id)

    transactions.revise_expense(db, expense, acting_user=actor.user, amount=Decimal("400"))
    db.commit()
    assert ledger.current_balance(db, "shop1") == Decimal("600")

    transactions.remove_expense(db, expense, acting_user=actor.user)
    db.commit()
    assert ledger.current_balance(db, "shop1") == Decimal("1000")
    assert db.scalar(select(WorkerExpense.id)) is None


def test_expense_validation_and_sufficiency(db, actor, funded):
    with pytest.raises(ValidationError, match="Title and amount are required"):
        transactions.record_expense(db, actor, title="   ", amount=10)
    with pytest.raises(ValidationError, match="Title and amount are required"):
        transactions.record_expense(db, actor, title="Tea", amount=0)
    with pytest.raises(InsufficientFunds):
        transactions.record_expense(db, actor, title="Rent", amount=1000.01)


def test_other_shop_cannot_modify_records(db, actor, funded, rice, make_user):
    purchase = transactions.record_purchase(db, actor, item_id=rice.id, quantity=1, unit_price=10)
    db.commit()
    outsider = make_user("outsider", shop_id="shop2")
    admin = make_user("owner", role=UserRole.ADMIN, shop_id=None)

    with pytest.raises(UnauthorizedError):
        transactions.remove_purchase(db, purchase, acting_user=outsider)
    db.rollback()

    transactions.remove_purchase(db, purchase, acting_user=admin)
    db.commit()
    assert ledger.current_balance(db, "shop1") == Decimal("1000")
