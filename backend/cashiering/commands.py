# cashiering/commands.py
"""
Command layer for distribution declarations.

Commands are the single point where declarations are written. Views call
commands; commands apply policies, run the calculation and persist.

Pattern:
1. Snapshot the inputs
2. Apply business policies (can_*)
3. Calculate (terminal errors become CommandResult.fail, nothing is saved)
4. Write the declaration
5. Return CommandResult
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError
from django.db import transaction

from cashiering.conf import get_setting
from cashiering.distributions import DistributionError, calculate, prepare_claims
from cashiering.models import DistributionDeclaration
from cashiering.policies import can_declare_distribution, can_delete_distribution
from cashiering.types import TWOPLACES, to_date


logger = logging.getLogger(__name__)


RATE_PLACES = Decimal("0.00000001")


class CommandResult:
    """
    Wrapper for command results with success/failure info.

    Usage:
        result = declare_distribution(case_id="C-1", ...)
        if result.success:
            declaration = result.data
        else:
            error_message = result.error
    """

    def __init__(self, success: bool, data=None, error: str = None):
        self.success = success
        self.data = data
        self.error = error

    @classmethod
    def ok(cls, data=None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str):
        return cls(success=False, error=error)


@transaction.atomic
def declare_distribution(
    case_id: str,
    distribution_type: str,
    sum_to_distribute,
    sum_to_retain=Decimal("0"),
    claims=(),
    shareholders=(),
    declared_date=None,
) -> CommandResult:
    """
    Calculate and record a distribution.

    The claim set is copied before calculating so the stored schedule
    matches exactly what was computed, whatever happens to the claims later.

    Args:
        case_id: Case the declaration belongs to
        distribution_type: Creditor class (or "members")
        sum_to_distribute: Funds available
        sum_to_retain: Funds held back
        claims: Creditor claims (Claim or dict); filtered to the class
        shareholders: Shareholders, for members distributions
        declared_date: Date of declaration

    Returns:
        CommandResult with the DistributionDeclaration or error
    """
    declared_date = to_date(declared_date)
    allowed, reason = can_declare_distribution(distribution_type, declared_date)
    if not allowed:
        return CommandResult.fail(reason)

    snapshot = prepare_claims(distribution_type, list(claims), list(shareholders))

    try:
        result = calculate(
            snapshot,
            sum_to_distribute,
            sum_to_retain,
            mode=distribution_type,
            currency_symbol=get_setting("CURRENCY_SYMBOL"),
        )
    except DistributionError as exc:
        logger.info(
            "Distribution rejected",
            extra={"case_id": case_id, "distribution_type": distribution_type, "reason": str(exc)},
        )
        return CommandResult.fail(str(exc))

    declaration = DistributionDeclaration.objects.create(
        case_id=str(case_id),
        distribution_type=distribution_type,
        sum_to_distribute=result.sum_to_distribute.quantize(TWOPLACES, rounding=ROUND_HALF_UP),
        sum_to_retain=result.sum_to_retain.quantize(TWOPLACES, rounding=ROUND_HALF_UP),
        net_distribution=result.net_distribution.quantize(TWOPLACES, rounding=ROUND_HALF_UP),
        total_claims=result.total_claims.quantize(TWOPLACES, rounding=ROUND_HALF_UP),
        dividend_rate=result.dividend_rate.quantize(RATE_PLACES, rounding=ROUND_HALF_UP),
        dividend_rate_label=result.dividend_rate_label,
        per_claim_distributions=[line.to_dict() for line in result.lines],
        ineligible_claims=result.to_dict()["ineligible_claims"],
        declared_date=declared_date,
    )

    logger.info(
        "Distribution declared",
        extra={
            "case_id": declaration.case_id,
            "public_id": str(declaration.public_id),
            "distribution_type": distribution_type,
            "net_distribution": str(declaration.net_distribution),
            "dividend_rate_label": declaration.dividend_rate_label,
            "claims": len(result.lines),
        },
    )
    return CommandResult.ok(declaration)


def list_distributions(case_id: str):
    """Declarations for a case, newest first."""
    return DistributionDeclaration.objects.for_case(case_id)


@transaction.atomic
def delete_distribution(case_id: str, public_id, confirm: bool = False) -> CommandResult:
    """
    Permanently delete a declaration.

    Args:
        case_id: Case the declaration belongs to
        public_id: Declaration public id
        confirm: Must be True; deletion cannot be undone

    Returns:
        CommandResult with deletion confirmation or error
    """
    try:
        declaration = DistributionDeclaration.objects.select_for_update().get(
            case_id=str(case_id), public_id=public_id
        )
    except (DistributionDeclaration.DoesNotExist, ValidationError):
        return CommandResult.fail("Distribution not found.")

    allowed, reason = can_delete_distribution(declaration, confirm)
    if not allowed:
        return CommandResult.fail(reason)

    declaration.delete()

    logger.info(
        "Distribution deleted",
        extra={"case_id": str(case_id), "public_id": str(public_id)},
    )
    return CommandResult.ok({"deleted": True})
