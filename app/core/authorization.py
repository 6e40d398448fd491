"""Role and tenant-scope checks.

The two checks are independent and composed by the API dependencies. Neither
touches storage: both run on the claim and on identifiers already extracted
from the request.
"""

from collections.abc import Iterable

from app.core.claims import FullClaim, Role
from app.core.errors import Forbidden, ValidationFailed

FORBIDDEN_MESSAGE = "Access denied"


def _normalize(value: object | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip().lower()
    return text or None


def check_role(claim: FullClaim, allowed: Iterable[Role]) -> None:
    if claim.role not in set(allowed):
        raise Forbidden(FORBIDDEN_MESSAGE)


def check_tenant(claim: FullClaim, *requested_school_ids: object | None) -> None:
    """Own-school-only rule for SCHOOL_ADMIN; SUPER_ADMIN has global scope."""
    if claim.is_super_admin:
        return

    own = _normalize(claim.school_id)
    if own is None:
        raise Forbidden(FORBIDDEN_MESSAGE)

    for requested in requested_school_ids:
        candidate = _normalize(requested)
        if candidate is not None and candidate != own:
            raise Forbidden(FORBIDDEN_MESSAGE)


def resolve_tenant(claim: FullClaim, *requested_school_ids: object | None) -> str:
    """Return the school id the request operates on after the tenant check.

    A SCHOOL_ADMIN always operates on its own school. A SUPER_ADMIN must name
    the school explicitly; conflicting values are rejected.
    """
    check_tenant(claim, *requested_school_ids)

    if not claim.is_super_admin:
        return str(claim.school_id)

    supplied = {_normalize(value) for value in requested_school_ids} - {None}
    if not supplied:
        raise ValidationFailed("school_id is required")
    if len(supplied) > 1:
        raise ValidationFailed("Conflicting school_id values")
    return supplied.pop()
