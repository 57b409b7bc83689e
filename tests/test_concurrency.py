import threading
from decimal import Decimal

from sqlalchemy import func, select

from shopledger.db.database import SessionLocal
from shopledger.models.inventory import Item, from_milli
from shopledger.models.ledger import FundEntry, FundEntryType
from shopledger.services import gate, ledger
from shopledger.services.exceptions import InsufficientFunds, InsufficientStock


def _race(operation, contenders: int, refused=InsufficientFunds) -> list[str]:
    barrier = threading.Barrier(contenders)
    outcomes: list[str] = []
    lock = threading.Lock()

    def attempt() -> None:
        session = SessionLocal()
        try:
            barrier.wait()
            try:
                operation(session)
                session.commit()
                result = "ok"
            except refused:
                session.rollback()
                result = "refused"
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(contenders)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return outcomes


def _debit(amount: Decimal):
    return lambda session: ledger.debit(session, shop_id="shop1", amount=amount)


def _stock(db, item_id: int) -> Decimal:
    return from_milli(db.scalar(select(Item.stock_milli).where(Item.id == item_id)))


def _item(db, stock: Decimal) -> int:
    item = Item(name="rice", stock=stock)
    db.add(item)
    db.commit()
    return item.id


def test_two_concurrent_debits_of_the_full_balance_only_one_wins(db):
    ledger.credit(db, shop_id="shop1", amount=600)
    db.commit()

    outcomes = _race(_debit(Decimal("600")), contenders=2)

    assert sorted(outcomes) == ["ok", "refused"]
    assert ledger.current_balance(db, "shop1") == Decimal("0")
    debits = db.scalar(
        select(func.count(FundEntry.id)).where(FundEntry.entry_type == FundEntryType.DEBIT)
    )
    assert debits == 1


def test_many_concurrent_debits_never_overdraw(db):
    ledger.credit(db, shop_id="shop1", amount=1000)
    db.commit()

    outcomes = _race(_debit(Decimal("300")), contenders=6)

    assert outcomes.count("ok") == 3
    assert outcomes.count("refused") == 3
    assert ledger.current_balance(db, "shop1") == Decimal("100")


def test_concurrent_sales_never_oversell(db):
    item_id = _item(db, Decimal("1.5"))

    outcomes = _race(
        lambda session: gate.release_sale_stock(session, item_id, Decimal("0.3")),
        contenders=6,
        refused=InsufficientStock,
    )

    assert outcomes.count("ok") == 5
    assert outcomes.count("refused") == 1
    assert _stock(db, item_id) == Decimal("0")


def test_concurrent_stock_receipts_are_not_lost(db):
    item_id = _item(db, Decimal("0"))

    outcomes = _race(
        lambda session: gate.receive_purchase_stock(session, item_id, Decimal("0.1")),
        contenders=8,
        refused=InsufficientStock,
    )

    assert outcomes == ["ok"] * 8
    assert _stock(db, item_id) == Decimal("0.8")
