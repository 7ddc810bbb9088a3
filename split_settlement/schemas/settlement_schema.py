import enum
from decimal import Decimal
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, Field, PlainSerializer

from split_settlement.utils.money import parse_money


def _validate_money(value: Any) -> Decimal:
    try:
        return parse_money(value)
    except TypeError as e:
        raise ValueError(str(e))


# Exact decimal in, decimal string out (JSON only)
Money = Annotated[
    Decimal,
    BeforeValidator(_validate_money),
    PlainSerializer(lambda v: str(v), return_type=str, when_used="json"),
]


class ItemOwnership(str, enum.Enum):
    shared = "shared"
    personal = "personal"


class Participant(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""


class BillItem(BaseModel):
    name: str = Field(..., max_length=200)
    amount: Money
    quantity: int = 1
    ownership: ItemOwnership = ItemOwnership.shared
    owner_ids: List[str] = []


class Bill(BaseModel):
    id: str = Field(..., min_length=1)
    paid_by: str
    items: List[BillItem] = []
    total_amount: Optional[Money] = None


class Balance(BaseModel):
    user_id: str
    user_name: str = ""
    paid: Money
    owed: Money
    net: Money


class Transaction(BaseModel):
    from_user_id: str
    from_user_name: str = ""
    to_user_id: str
    to_user_name: str = ""
    amount: Money


class SettlementResult(BaseModel):
    group_id: Optional[str] = None
    bill_ids: List[str] = []
    bill_count: int
    total_amount: Money
    balances: List[Balance]
    transactions: List[Transaction]
    steps: Optional[List[str]] = None


class CalculateSettlementRequest(BaseModel):
    group_id: Optional[str] = None
    members: List[Participant]
    bills: List[Bill]


class ConfirmSettlementRequest(CalculateSettlementRequest):
    created_by: Optional[str] = None


class DraftTransaction(BaseModel):
    from_user_id: str
    to_user_id: str
    amount: Money
    status: str = "pending"


class SettlementDraft(BaseModel):
    group_id: Optional[str] = None
    title: str
    description: str
    status: str = "pending"
    created_by: Optional[str] = None
    bill_ids: List[str]
    transactions: List[DraftTransaction]


class SettlementConfirmation(BaseModel):
    draft: SettlementDraft
    published: bool
