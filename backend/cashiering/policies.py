# cashiering/policies.py
"""
Business policy functions for distribution declarations.

Policies answer: "Is this action allowed given the current state?"
They return (bool, str) tuples; the command decides what to do with a "no".
"""

from datetime import date
from typing import Optional

from cashiering.types import CreditorType


def can_declare_distribution(distribution_type: str, declared_date: Optional[date]) -> tuple[bool, str]:
    if distribution_type not in CreditorType.CHOICES:
        return False, f"Unknown distribution type: {distribution_type}."
    if declared_date is None:
        return False, "A declaration date is required."
    return True, ""


def can_delete_distribution(declaration, confirm: bool) -> tuple[bool, str]:
    """Deletion is permanent, so the caller must confirm it explicitly."""
    if not confirm:
        return False, (
            f"Deleting the {declaration.dividend_rate_label} distribution declared on "
            f"{declaration.declared_date} cannot be undone. Pass confirm=true to proceed."
        )
    return True, ""
