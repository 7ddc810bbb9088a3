"""
Settlement error taxonomy.

All errors are deterministic validation failures: the same input always
raises the same error, so none of them are retried. They subclass ValueError
so callers that only know about ValueError still catch them.
"""


class SettlementError(ValueError):
    """Base class for every settlement validation failure."""


class InvalidBill(SettlementError):
    """Bad payer, amount, quantity, total or duplicated bill."""


class InvalidItemOwnership(SettlementError):
    """Personal item with no owners or with owners outside the group."""


class UnbalancedInput(SettlementError):
    """Net balances do not sum to zero within tolerance."""


class InvalidGroup(SettlementError):
    """Member list is malformed (duplicate participant identifiers)."""
