"""
Pytest configuration and fixtures for split_settlement tests.
"""
import pytest
from decimal import Decimal
from typing import Dict, List

from split_settlement.schemas.settlement_schema import Bill, BillItem, ItemOwnership, Participant


def make_item(amount, name="item", quantity=1, owners=None) -> BillItem:
    """Shared item unless owners are given."""
    if owners is None:
        return BillItem(name=name, amount=Decimal(amount), quantity=quantity)
    return BillItem(
        name=name,
        amount=Decimal(amount),
        quantity=quantity,
        ownership=ItemOwnership.personal,
        owner_ids=list(owners)
    )


def make_bill(bill_id, paid_by, *items, total_amount=None) -> Bill:
    return Bill(
        id=bill_id,
        paid_by=paid_by,
        items=list(items),
        total_amount=Decimal(total_amount) if total_amount is not None else None
    )


@pytest.fixture
def members_abc():
    """Three member group A, B, C."""
    return [
        Participant(id="A", name="Alice"),
        Participant(id="B", name="Bob"),
        Participant(id="C", name="Carol"),
    ]


@pytest.fixture
def members_abcd(members_abc):
    return members_abc + [Participant(id="D", name="Dan")]


@pytest.fixture
def grocery_bill():
    """Paid by A: one shared 90.00 item."""
    return make_bill("bill-1", "A", make_item("90.00", name="groceries"))


@pytest.fixture
def mixed_bills():
    """Shared and personal items across payers."""
    return [
        make_bill(
            "bill-1", "A",
            make_item("40.00", name="rice", quantity=3),
            make_item("15.50", name="wine", owners=["B", "C"]),
        ),
        make_bill(
            "bill-2", "B",
            make_item("10.00", name="bread"),
            make_item("7.25", name="shampoo", owners=["D"]),
        ),
        make_bill(
            "bill-3", "D",
            make_item("33.33", name="cheese", owners=["A", "C", "D"], quantity=2),
        ),
    ]


@pytest.fixture
def sample_balances():
    """Sample balances for testing."""
    return {
        "A": Decimal("66.67"),
        "B": Decimal("-10.00"),
        "C": Decimal("-43.34"),
        "D": Decimal("-13.33")
    }


def verify_settlements_settle_debts(balances: Dict[str, Decimal], settlements: List[Dict]) -> None:
    """
    Helper to verify settlements settle all debts exactly.

    A payer's balance goes up by what they pay, a receiver's goes down by
    what they receive; every balance must end at zero.
    """
    remaining = dict(balances)

    for settlement in settlements:
        assert settlement["amount"] > 0
        assert settlement["from"] != settlement["to"]
        remaining[settlement["from"]] += settlement["amount"]
        remaining[settlement["to"]] -= settlement["amount"]

    for user, final_balance in remaining.items():
        assert final_balance == 0, \
            f"User {user} not settled: initial={balances[user]}, final={final_balance}"
