import logging
from decimal import Decimal
from typing import Optional, Sequence

from split_settlement.core.config import settings
from split_settlement.schemas.settlement_schema import (
    Balance,
    Bill,
    DraftTransaction,
    Participant,
    SettlementConfirmation,
    SettlementDraft,
    SettlementResult,
    Transaction,
)
from split_settlement.utils.min_cash_flow import (
    bill_total_cents,
    calculate_balances,
    default_tolerance,
    min_cash_flow,
    min_cash_flow_detailed,
)
from split_settlement.utils.money import from_cents

logger = logging.getLogger(__name__)


def compute_settlement(
    members: Sequence[Participant],
    bills: Sequence[Bill],
    group_id: Optional[str] = None,
    unit: Optional[Decimal] = None,
    explain: bool = False
) -> SettlementResult:
    """
    Compute balances and the payment plan for a set of bills.

    Pure and stateless: the same members and bills always give the same
    result, transaction order included. Either a complete result is returned
    or a SettlementError is raised.

    Args:
        members: Everyone in the group
        bills: The bills being settled, with items and ownership resolved
        group_id: Echoed back on the result
        unit: Smallest currency unit (default: settings.MONEY_UNIT)
        explain: Attach the step-by-step matching log to the result

    Returns:
        SettlementResult with one balance per member (ascending user_id)
        and transactions in emission order
    """
    unit = unit or settings.MONEY_UNIT
    names = {member.id: member.name for member in members}

    balance_rows = calculate_balances(members, bills, unit)
    total_amount = from_cents(sum(bill_total_cents(bill, unit) for bill in bills), unit)

    nets = {user_id: row["net"] for user_id, row in balance_rows.items()}
    tolerance = default_tolerance(len(nets), unit)
    steps = None
    if explain:
        settlements_dict, steps = min_cash_flow_detailed(nets, tolerance=tolerance)
    else:
        settlements_dict = min_cash_flow(nets, tolerance=tolerance)

    balances = [
        Balance(
            user_id=user_id,
            user_name=names[user_id],
            paid=row["paid"],
            owed=row["owed"],
            net=row["net"]
        )
        for user_id, row in balance_rows.items()
    ]

    transactions = [
        Transaction(
            from_user_id=settlement["from"],
            from_user_name=names[settlement["from"]],
            to_user_id=settlement["to"],
            to_user_name=names[settlement["to"]],
            amount=settlement["amount"]
        )
        for settlement in settlements_dict
    ]

    logger.info(
        f"Settled {len(bills)} bills for group {group_id or '-'}: "
        f"total={total_amount}, transactions={len(transactions)}"
    )

    return SettlementResult(
        group_id=group_id,
        bill_ids=[bill.id for bill in bills],
        bill_count=len(bills),
        total_amount=total_amount,
        balances=balances,
        transactions=transactions,
        steps=steps
    )


def build_settlement_draft(result: SettlementResult, created_by: Optional[str] = None) -> SettlementDraft:
    """Turn a computed settlement into a pending draft for the bill store."""
    return SettlementDraft(
        group_id=result.group_id,
        title=f"Settlement for {result.bill_count} bills",
        description=f"Total amount: {result.total_amount}",
        created_by=created_by,
        bill_ids=list(result.bill_ids),
        transactions=[
            DraftTransaction(
                from_user_id=transaction.from_user_id,
                to_user_id=transaction.to_user_id,
                amount=transaction.amount
            )
            for transaction in result.transactions
        ]
    )


def confirm_settlement(
    members: Sequence[Participant],
    bills: Sequence[Bill],
    group_id: Optional[str] = None,
    created_by: Optional[str] = None
) -> SettlementConfirmation:
    """
    Recompute a settlement and hand the draft to the bill store.

    The draft references exactly the bills used in the calculation. Publishing
    only happens when SETTLEMENT_EVENTS_ENABLED is set; a failed publish is
    reported through ``published`` and does not raise.
    """
    result = compute_settlement(members, bills, group_id=group_id)
    draft = build_settlement_draft(result, created_by=created_by)

    published = False
    if settings.SETTLEMENT_EVENTS_ENABLED:
        from split_settlement.rabbitmq.producer import get_rabbitmq_producer
        try:
            producer = get_rabbitmq_producer()
        except Exception as e:
            logger.error(f"RabbitMQ producer unavailable, draft not published: {e}")
        else:
            published = producer.publish_settlement_draft(draft)
    else:
        logger.debug("Settlement events disabled, draft not published")

    return SettlementConfirmation(draft=draft, published=published)
