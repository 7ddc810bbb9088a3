"""
Min-Cash-Flow Algorithm Module

This module turns a set of bills into per-member balances and reduces those
balances to a short list of payments that settles everyone.

The algorithm works by:
1. Crediting each bill's total to its payer and splitting every item's cost
   across its owners (all members for shared items, the listed owners for
   personal items), in whole currency units
2. Separating members into creditors (positive net) and debtors (negative net)
3. Repeatedly matching the largest debtor with the largest creditor
4. Transferring the smaller of the two amounts, until one side is exhausted

Ties are broken by ascending participant identifier, so the same input
always produces the same payments in the same order.

Time Complexity: O(items) for balances + O(n log n) for matching
Space Complexity: O(n) for balances and settlement results

Example Usage:
    from split_settlement.utils.min_cash_flow import calculate_balances, min_cash_flow

    balances = calculate_balances(members, bills)
    nets = {user_id: row["net"] for user_id, row in balances.items()}
    settlements = min_cash_flow(nets)

    # Result: [{"from": "B", "to": "A", "amount": Decimal("30.00")}, ...]
"""

import heapq
import logging
from decimal import Decimal, localcontext
from typing import Dict, List, Optional, Sequence, Tuple

from split_settlement.schemas.settlement_schema import Bill, BillItem, ItemOwnership, Participant
from split_settlement.utils.errors import (
    InvalidBill,
    InvalidGroup,
    InvalidItemOwnership,
    UnbalancedInput,
)
from split_settlement.utils.money import CENT, exact_context, from_cents, split_evenly, to_cents

# Configure logger
logger = logging.getLogger(__name__)


def default_tolerance(participant_count: int, unit: Decimal = CENT) -> Decimal:
    """One currency unit per participant."""
    return unit * max(participant_count, 1)


def validate_balance_sum(balances: Dict[str, Decimal], tolerance: Optional[Decimal] = None) -> None:
    """
    Validate that the sum of all balances is zero within tolerance.

    Args:
        balances: Dictionary mapping user_id to net_balance
        tolerance: Maximum allowed deviation from zero (default: one cent per user)

    Raises:
        UnbalancedInput: If the sum of balances exceeds the tolerance

    Example:
        >>> validate_balance_sum({"A": Decimal("50"), "B": Decimal("-50")})  # Passes
        >>> validate_balance_sum({"A": Decimal("50"), "B": Decimal("-49")})  # Raises
    """
    if tolerance is None:
        tolerance = default_tolerance(len(balances))

    with localcontext(exact_context(list(balances.values()) + [tolerance])):
        total = sum(balances.values(), Decimal('0'))
        unbalanced = abs(total) > tolerance
    if unbalanced:
        raise UnbalancedInput(
            f"Balances not zero-sum: total={total}, tolerance={tolerance}. "
            f"This indicates unbalanced bill data."
        )


def _validate_members(members: Sequence[Participant]) -> Dict[str, Participant]:
    by_id: Dict[str, Participant] = {}
    for member in members:
        if member.id in by_id:
            raise InvalidGroup(f"Duplicate participant identifier: {member.id}")
        by_id[member.id] = member
    return by_id


def item_cost_cents(item: BillItem, unit: Decimal = CENT) -> int:
    """
    Cost of one item line (amount x quantity) in currency units.

    Raises:
        InvalidBill: If amount or quantity is not positive, or the amount
            is finer than the currency unit
    """
    if item.quantity < 1:
        raise InvalidBill(f"Item '{item.name}' has invalid quantity {item.quantity}")
    if item.amount <= 0:
        raise InvalidBill(f"Item '{item.name}' has non-positive amount {item.amount}")
    return to_cents(item.amount, unit) * item.quantity


def bill_total_cents(bill: Bill, unit: Decimal = CENT) -> int:
    """
    Total of a bill computed from its items, in currency units.

    If the bill carries its own total_amount it must match exactly.

    Raises:
        InvalidBill: If the bill has no items, an invalid item, or a
            declared total that disagrees with its items
    """
    if not bill.items:
        raise InvalidBill(f"Bill {bill.id} has no items")

    cents = sum(item_cost_cents(item, unit) for item in bill.items)
    total = from_cents(cents, unit)
    if bill.total_amount is not None and bill.total_amount != total:
        raise InvalidBill(
            f"Bill {bill.id} total amount ({bill.total_amount}) doesn't match "
            f"sum of items ({total})"
        )
    return cents


def bill_total(bill: Bill, unit: Decimal = CENT) -> Decimal:
    """Total of a bill as an exact Decimal; see bill_total_cents."""
    return from_cents(bill_total_cents(bill, unit), unit)


def item_owners(item: BillItem, member_ids: Sequence[str], bill_id: str = "") -> List[str]:
    """
    Resolve who shares an item's cost, in ascending identifier order.

    Shared items belong to every member; any explicit owner list is ignored.

    Raises:
        InvalidItemOwnership: If a personal item has no owners or lists a
            non-member
    """
    if item.ownership == ItemOwnership.shared:
        return sorted(member_ids)

    owners = sorted(set(item.owner_ids))
    if not owners:
        raise InvalidItemOwnership(
            f"Personal item '{item.name}' in bill {bill_id} has no owners"
        )
    outsiders = [owner for owner in owners if owner not in member_ids]
    if outsiders:
        raise InvalidItemOwnership(
            f"Personal item '{item.name}' in bill {bill_id} has owners outside the group: "
            f"{', '.join(outsiders)}"
        )
    return owners


def calculate_balances(
    members: Sequence[Participant],
    bills: Sequence[Bill],
    unit: Decimal = CENT
) -> Dict[str, Dict[str, Decimal]]:
    """
    Calculate paid, owed and net amounts for every member across bills.

    Net balance = paid - owed
    - Positive net: member is owed money (creditor)
    - Negative net: member owes money (debtor)

    Item costs are split in whole currency units. When a cost does not divide
    evenly, the leftover units go one each to the first owners in ascending
    identifier order, so the shares always add up to the cost.

    Args:
        members: Group members; every member gets a row, even with no activity
        bills: Fully populated bills to settle
        unit: Smallest currency unit (default: 0.01)

    Returns:
        Dictionary mapping user_id -> {"paid", "owed", "net"}, ordered by
        ascending user_id

    Raises:
        InvalidGroup: If member identifiers repeat
        InvalidBill: If a bill repeats, has a non-member payer, or has an
            invalid item or total
        InvalidItemOwnership: If a personal item's owners are empty or
            include non-members

    Example:
        >>> calculate_balances(members_abc, [bill_90_paid_by_a])["B"]
        {'paid': Decimal('0.00'), 'owed': Decimal('30.00'), 'net': Decimal('-30.00')}
    """
    members_by_id = _validate_members(members)
    member_ids = sorted(members_by_id)

    paid: Dict[str, int] = {member_id: 0 for member_id in member_ids}
    owed: Dict[str, int] = {member_id: 0 for member_id in member_ids}

    seen_bills = set()
    for bill in bills:
        if bill.id in seen_bills:
            raise InvalidBill(f"Bill {bill.id} appears more than once")
        seen_bills.add(bill.id)

        if bill.paid_by not in members_by_id:
            raise InvalidBill(f"Bill {bill.id} payer {bill.paid_by} is not a member of this group")

        paid[bill.paid_by] += bill_total_cents(bill, unit)

        for item in bill.items:
            cost = item_cost_cents(item, unit)
            owners = item_owners(item, member_ids, bill.id)
            for owner, share in split_evenly(cost, owners).items():
                owed[owner] += share

    balances = {
        member_id: {
            "paid": from_cents(paid[member_id], unit),
            "owed": from_cents(owed[member_id], unit),
            "net": from_cents(paid[member_id] - owed[member_id], unit),
        }
        for member_id in member_ids
    }

    logger.debug(f"Calculated balances for {len(member_ids)} members across {len(seen_bills)} bills")
    return balances


def _settle(
    balances: Dict[str, Decimal],
    tolerance: Optional[Decimal],
    max_iterations: Optional[int],
    logs: Optional[List[str]] = None
) -> List[Dict]:
    values = list(balances.values())
    if tolerance is not None:
        values.append(tolerance)
    # Wide enough that no balance arithmetic is ever rounded
    with localcontext(exact_context(values)):
        return _match(balances, tolerance, max_iterations, logs)


def _match(
    balances: Dict[str, Decimal],
    tolerance: Optional[Decimal],
    max_iterations: Optional[int],
    logs: Optional[List[str]]
) -> List[Dict]:
    def note(message: str) -> None:
        logger.debug(message)
        if logs is not None:
            logs.append(message)

    if not balances:
        note("No balances provided. Returning empty settlements.")
        return []

    validate_balance_sum(balances, tolerance)
    note("Balance validation passed")

    # Max-heaps via negated amounts; equal amounts pop in ascending id order
    creditors: List[Tuple[Decimal, str]] = [
        (-balance, user_id) for user_id, balance in balances.items() if balance > 0
    ]
    debtors: List[Tuple[Decimal, str]] = [
        (balance, user_id) for user_id, balance in balances.items() if balance < 0
    ]
    heapq.heapify(creditors)
    heapq.heapify(debtors)

    if not creditors and not debtors:
        note("All balances are zero. No settlements needed.")
        return []

    note(f"Creditors (to receive): {sorted((uid, -amt) for amt, uid in creditors)}")
    note(f"Debtors (to pay): {sorted((uid, -amt) for amt, uid in debtors)}")

    if max_iterations is None:
        max_iterations = len(creditors) + len(debtors)

    settlements = []
    iterations = 0

    while creditors and debtors:
        iterations += 1

        # Safety check: each step clears at least one party
        if iterations > max_iterations:
            raise RuntimeError(
                f"Settlement loop exceeded max_iterations ({max_iterations}). "
                f"This may indicate malformed input."
            )

        neg_credit, creditor_id = heapq.heappop(creditors)
        neg_debt, debtor_id = heapq.heappop(debtors)
        credit_amount, debt_amount = -neg_credit, -neg_debt

        amount = min(credit_amount, debt_amount)
        settlements.append({
            "from": debtor_id,
            "to": creditor_id,
            "amount": amount
        })
        note(
            f"Step {iterations}: {debtor_id} (debt: {debt_amount}) pays "
            f"{creditor_id} (credit: {credit_amount}) {amount}"
        )

        if credit_amount > amount:
            heapq.heappush(creditors, (-(credit_amount - amount), creditor_id))
        if debt_amount > amount:
            heapq.heappush(debtors, (-(debt_amount - amount), debtor_id))

    leftover = sum((-amt for amt, _ in creditors + debtors), Decimal('0'))
    if leftover:
        logger.warning(f"Settlement left {leftover} unassigned (within tolerance)")
        if logs is not None:
            logs.append(f"Unassigned remainder within tolerance: {leftover}")

    note(f"Algorithm completed in {iterations} iterations, {len(settlements)} settlements")
    return settlements


def min_cash_flow(
    balances: Dict[str, Decimal],
    tolerance: Optional[Decimal] = None,
    max_iterations: Optional[int] = None
) -> List[Dict]:
    """
    Minimize the number of transactions needed to settle all debts.

    Uses a greedy algorithm that:
    1. Separates users into creditors (positive balance) and debtors (negative balance)
    2. Picks the largest debtor and the largest creditor (ties: ascending user_id)
    3. Transfers the smaller of their two amounts
    4. Puts back whichever party still has something outstanding

    Each step clears at least one party, so n non-zero balances settle in at
    most n - 1 transactions.

    Edge Cases Handled:
    - If no balances or all balances are zero: returns []
    - If sum of balances != 0 (beyond tolerance): raises UnbalancedInput
    - If max_iterations exceeded: raises RuntimeError

    Args:
        balances: Dictionary mapping user_id -> net_balance
        tolerance: Maximum allowed deviation of the sum from zero
            (default: one cent per user)
        max_iterations: Safety bound on matching steps (default: number of
            non-zero balances)

    Returns:
        List of settlement transactions, each with format:
        [{"from": str, "to": str, "amount": Decimal}, ...]

    Example:
        >>> min_cash_flow({"A": Decimal("60"), "B": Decimal("-30"), "C": Decimal("-30")})
        [{'from': 'B', 'to': 'A', 'amount': Decimal('30')},
         {'from': 'C', 'to': 'A', 'amount': Decimal('30')}]
    """
    return _settle(balances, tolerance, max_iterations)


def min_cash_flow_detailed(
    balances: Dict[str, Decimal],
    tolerance: Optional[Decimal] = None,
    max_iterations: Optional[int] = None
) -> Tuple[List[Dict], List[str]]:
    """
    Minimize transactions and record each matching step.

    Same algorithm as min_cash_flow(), but also returns readable logs of the
    matching process. Useful for debugging and for explaining a payment plan
    to the people who have to pay it.

    Returns:
        Tuple of (settlements_list, detailed_logs_list)
    """
    logs = [f"Initial balances: {dict(sorted(balances.items()))}"]
    try:
        settlements = _settle(balances, tolerance, max_iterations, logs)
    except UnbalancedInput as e:
        logs.append(f"Balance validation failed: {e}")
        raise
    return settlements, logs
