# cashiering/distributions.py
"""
Pro-rata dividend calculation.

Given a distributable pool and a set of claims, each eligible claim receives

    distribution_i = claim_i * net_distribution / total_claims

computed independently and left unrounded, so the distributions are exactly
proportional to the claims and sum to the net distribution to within Decimal
precision.

Cheques are written in pennies, so every line also carries a payable_amount:
the distributions rounded to pennies with the largest-remainder method. The
payable amounts always sum to the net distribution rounded down to the
penny, so a sub-penny pool is never overpaid.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Union

from cashiering.types import (
    CURRENCY_SYMBOL,
    TWOPLACES,
    ZERO,
    Claim,
    CreditorType,
    Shareholder,
    decimal_str,
    to_decimal,
)


logger = logging.getLogger(__name__)


HUNDRED = Decimal("100")


class DistributionError(Exception):
    pass


class InvalidDistribution(DistributionError):
    """The pool is negative or not a number, or nothing is left after the retention."""
    pass


class NoEligibleClaims(DistributionError):
    """No claim has a positive agreed balance."""
    pass


def _quantize(val: Decimal) -> Decimal:
    return val.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _as_claim(claim: Union[Claim, Mapping]) -> Claim:
    return claim if isinstance(claim, Claim) else Claim.from_dict(claim)


def _as_shareholder(holder: Union[Shareholder, Mapping]) -> Shareholder:
    return holder if isinstance(holder, Shareholder) else Shareholder.from_dict(holder)


# =============================================================================
# Result structures
# =============================================================================

@dataclass(frozen=True)
class DistributionLine:
    claim_name: str
    claim_amount: Decimal
    distribution_amount: Decimal
    payable_amount: Decimal
    creditor_type: str = CreditorType.UNSECURED

    def to_dict(self) -> dict:
        return {
            "claim_name": self.claim_name,
            "creditor_type": self.creditor_type,
            "claim_amount": decimal_str(self.claim_amount),
            "distribution_amount": decimal_str(self.distribution_amount),
            "payable_amount": decimal_str(self.payable_amount),
        }


@dataclass(frozen=True)
class DistributionResult:
    distribution_type: str
    sum_to_distribute: Decimal
    sum_to_retain: Decimal
    net_distribution: Decimal
    total_claims: Decimal
    dividend_rate: Decimal
    dividend_rate_label: str
    lines: tuple
    ineligible_claims: tuple = ()

    @property
    def total_distributed(self) -> Decimal:
        return sum((line.distribution_amount for line in self.lines), ZERO)

    @property
    def total_payable(self) -> Decimal:
        return sum((line.payable_amount for line in self.lines), ZERO)

    def to_dict(self) -> dict:
        return {
            "distribution_type": self.distribution_type,
            "sum_to_distribute": decimal_str(self.sum_to_distribute),
            "sum_to_retain": decimal_str(self.sum_to_retain),
            "net_distribution": decimal_str(self.net_distribution),
            "total_claims": decimal_str(self.total_claims),
            "dividend_rate": decimal_str(self.dividend_rate),
            "dividend_rate_label": self.dividend_rate_label,
            "per_claim_distributions": [line.to_dict() for line in self.lines],
            "total_payable": decimal_str(self.total_payable),
            "ineligible_claims": [
                {
                    "claim_name": claim.creditor_name,
                    "creditor_type": claim.creditor_type,
                    "claim_amount": decimal_str(claim.balance_submitted),
                    "active": False,
                }
                for claim in self.ineligible_claims
            ],
        }


# =============================================================================
# Rate
# =============================================================================

def dividend_rate(net_distribution: Decimal, total_claims: Decimal, mode: str) -> Decimal:
    """Currency per unit of share capital for members, pence in the pound otherwise."""
    rate = net_distribution / total_claims
    if mode == CreditorType.MEMBERS:
        return rate
    return rate * HUNDRED


def dividend_rate_label(rate: Decimal, mode: str, currency_symbol: str = CURRENCY_SYMBOL) -> str:
    if mode == CreditorType.MEMBERS:
        return f"{currency_symbol}{_quantize(rate)} per share"
    return f"{_quantize(rate)}p"


# =============================================================================
# Penny rounding
# =============================================================================

def allocate_pennies(amounts: Iterable[Decimal], target: Decimal) -> list[Decimal]:
    """
    Round amounts down to pennies, then hand the pennies still owed to the
    amounts with the largest remainders until the total reaches target.

    Equal remainders are served in input order.
    """
    amounts = list(amounts)
    floors = [amount.quantize(TWOPLACES, rounding=ROUND_DOWN) for amount in amounts]
    owed = int(((target - sum(floors, ZERO)) / TWOPLACES).to_integral_value(rounding=ROUND_HALF_UP))
    owed = max(0, min(owed, len(amounts)))

    by_remainder = sorted(
        range(len(amounts)),
        key=lambda i: amounts[i] - floors[i],
        reverse=True,
    )
    for i in by_remainder[:owed]:
        floors[i] += TWOPLACES
    return floors


# =============================================================================
# Calculation
# =============================================================================

def calculate(
    claims: Iterable[Union[Claim, Mapping]],
    sum_to_distribute,
    sum_to_retain=ZERO,
    mode: str = CreditorType.UNSECURED,
    currency_symbol: str = CURRENCY_SYMBOL,
) -> DistributionResult:
    """
    Compute a pro-rata distribution.

    Args:
        claims: Claims to share the pool (already narrowed to one class)
        sum_to_distribute: Funds available
        sum_to_retain: Funds held back from this distribution
        mode: Distribution type; "members" changes the rate and its label
        currency_symbol: Used in the members rate label

    Returns:
        DistributionResult with one line per eligible claim, in claim order

    Raises:
        InvalidDistribution: A negative or non-numeric input, or nothing
            left to distribute
        NoEligibleClaims: Eligible claims sum to zero
        ValueError: Unknown mode
    """
    if mode not in CreditorType.CHOICES:
        raise ValueError(f"Unknown distribution type: {mode!r}")

    try:
        # Snapshot the claim set so the result is consistent with one read of it.
        claims = tuple(_as_claim(claim) for claim in claims)
        distribute = to_decimal(sum_to_distribute)
        retain = to_decimal(sum_to_retain)
    except ValueError as exc:
        raise InvalidDistribution(str(exc)) from exc

    if distribute < 0 or retain < 0:
        raise InvalidDistribution("Sum to distribute and sum to retain cannot be negative.")
    net_distribution = distribute - retain
    if net_distribution <= 0:
        raise InvalidDistribution(
            f"Net distribution must be positive (distribute {distribute}, retain {retain})."
        )

    eligible = tuple(claim for claim in claims if claim.is_eligible)
    ineligible = tuple(claim for claim in claims if not claim.is_eligible)
    total_claims = sum((claim.balance_submitted for claim in eligible), ZERO)
    if total_claims <= 0:
        raise NoEligibleClaims("No claims with a positive agreed balance.")

    rate = dividend_rate(net_distribution, total_claims, mode)
    amounts = [claim.balance_submitted * net_distribution / total_claims for claim in eligible]
    target = net_distribution.quantize(TWOPLACES, rounding=ROUND_DOWN)
    payable = allocate_pennies(amounts, target)

    lines = tuple(
        DistributionLine(
            claim_name=claim.creditor_name,
            claim_amount=claim.balance_submitted,
            distribution_amount=amount,
            payable_amount=pay,
            creditor_type=claim.creditor_type,
        )
        for claim, amount, pay in zip(eligible, amounts, payable)
    )

    logger.debug(
        "Distribution calculated",
        extra={
            "distribution_type": mode,
            "net_distribution": str(net_distribution),
            "total_claims": str(total_claims),
            "eligible": len(eligible),
            "ineligible": len(ineligible),
        },
    )

    return DistributionResult(
        distribution_type=mode,
        sum_to_distribute=distribute,
        sum_to_retain=retain,
        net_distribution=net_distribution,
        total_claims=total_claims,
        dividend_rate=rate,
        dividend_rate_label=dividend_rate_label(rate, mode, currency_symbol),
        lines=lines,
        ineligible_claims=ineligible,
    )


# =============================================================================
# Claim selection
# =============================================================================

def shareholder_claims(shareholders: Iterable[Union[Shareholder, Mapping]]) -> list[Claim]:
    """Members' claims; the claim is the paid-up share capital."""
    return [_as_shareholder(holder).to_claim() for holder in shareholders]


def claims_for_class(claims: Iterable[Union[Claim, Mapping]], creditor_type: str) -> list[Claim]:
    return [c for c in (_as_claim(claim) for claim in claims) if c.creditor_type == creditor_type]


def prepare_claims(
    distribution_type: str,
    claims: Iterable[Union[Claim, Mapping]] = (),
    shareholders: Iterable[Union[Shareholder, Mapping]] = (),
) -> list[Claim]:
    """The claims a distribution of the given type is shared between."""
    if distribution_type == CreditorType.MEMBERS:
        return shareholder_claims(shareholders) + claims_for_class(claims, CreditorType.MEMBERS)
    return claims_for_class(claims, distribution_type)
