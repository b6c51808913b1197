"""
Family Access

Rules for the owner's list of view-only grants. Sharing itself is
enforced by the hosted store's filters, not here.
"""

from datetime import datetime
from typing import Iterable, Optional

from moneymate.models.ledger import AccessLevel, FamilyAccessGrant, utc_now
from moneymate.validation import raise_for_issues, validate_member_email


def new_grant(
    owner_user_id: str,
    owner_email: Optional[str],
    member_email: Optional[str],
    existing: Iterable[FamilyAccessGrant],
    now: Optional[datetime] = None,
) -> FamilyAccessGrant:
    """
    Build an active view grant for a new member.

    Raises:
        InputValidationError: malformed email, the owner's own email, or
            an email that already has a grant
    """
    result = validate_member_email(
        member_email,
        owner_email,
        [grant.member_email for grant in existing],
    )
    raise_for_issues(result)

    now = now or utc_now()
    return FamilyAccessGrant(
        owner_user_id=owner_user_id,
        member_email=member_email.strip(),
        access_level=AccessLevel.VIEW,
        is_active=True,
        created_at=now,
        updated_at=now,
    )


def toggle_changes(grant: FamilyAccessGrant, now: Optional[datetime] = None) -> dict:
    """Partial update flipping a grant between active and inactive."""
    return {"is_active": not grant.is_active, "updated_at": now or utc_now()}
