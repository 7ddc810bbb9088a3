import logging
from fastapi import APIRouter, HTTPException, Query
from split_settlement.core.config import settings
from split_settlement.schemas.settlement_schema import (
    CalculateSettlementRequest,
    ConfirmSettlementRequest,
    SettlementConfirmation,
    SettlementResult,
)
from split_settlement.services.settlement_service import compute_settlement, confirm_settlement
from split_settlement.utils.errors import SettlementError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settlements", tags=["settlements"])


def _check_request_size(request: CalculateSettlementRequest) -> None:
    if len(request.bills) > settings.MAX_BILLS_PER_REQUEST:
        raise HTTPException(
            status_code=413,
            detail=f"At most {settings.MAX_BILLS_PER_REQUEST} bills can be settled at once"
        )


def _settlement_error(e: SettlementError) -> HTTPException:
    logger.info(f"Rejected settlement input: {type(e).__name__}: {e}")
    return HTTPException(
        status_code=422,
        detail={"error": type(e).__name__, "message": str(e)}
    )


@router.post("/calculate", response_model=SettlementResult, response_model_exclude_none=True)
def calculate_settlement(
    request: CalculateSettlementRequest,
    explain: bool = Query(False, description="Include the step-by-step matching log")
):
    """Calculate balances and the minimal payment plan for the given bills"""
    _check_request_size(request)
    try:
        return compute_settlement(
            request.members,
            request.bills,
            group_id=request.group_id,
            explain=explain
        )
    except SettlementError as e:
        raise _settlement_error(e)


@router.post("/confirm", response_model=SettlementConfirmation, response_model_exclude_none=True)
def confirm_settlement_plan(request: ConfirmSettlementRequest):
    """Recalculate and hand a pending settlement to the bill store"""
    _check_request_size(request)
    try:
        return confirm_settlement(
            request.members,
            request.bills,
            group_id=request.group_id,
            created_by=request.created_by
        )
    except SettlementError as e:
        raise _settlement_error(e)
