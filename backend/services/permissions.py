"""Role and subscription tier limits."""

from typing import Dict, Tuple, Union

from models.user import PermissionSet, Role, SubscriptionTier

# Roles whose limits do not depend on the subscription tier
_ROLE_LIMITS: Dict[Role, PermissionSet] = {
    Role.ADMIN: PermissionSet(max_requests=100000, max_docs=1000, max_area=100000),
    Role.TRIAL: PermissionSet(max_requests=20, max_docs=2, max_area=100),
}

_USER_TIER_LIMITS: Dict[SubscriptionTier, PermissionSet] = {
    SubscriptionTier.ESSENTIALS: PermissionSet(max_requests=200, max_docs=10, max_area=1000),
    SubscriptionTier.PRO: PermissionSet(max_requests=1000, max_docs=50, max_area=10000),
    SubscriptionTier.ENTERPRISE: PermissionSet(max_requests=5000, max_docs=200, max_area=50000),
}


def _parse(role: Union[str, Role], tier: Union[str, SubscriptionTier]) -> Tuple[Role, SubscriptionTier]:
    try:
        return Role(role), SubscriptionTier(tier)
    except ValueError as e:
        raise ValueError(f"Unknown role or subscription tier: {role}/{tier}") from e


def get_permission_set(
    role: Union[str, Role], tier: Union[str, SubscriptionTier]
) -> PermissionSet:
    """Return the request, document and ROI area limits for a role and tier.

    Raises:
        ValueError: If the role or tier is not recognised
    """
    parsed_role, parsed_tier = _parse(role, tier)
    if parsed_role in _ROLE_LIMITS:
        return _ROLE_LIMITS[parsed_role]
    return _USER_TIER_LIMITS[parsed_tier]
