"""
Request-scoped station identity.

Every mutating service takes a StationContext as its first argument. The
context carries the acting user and the roles they hold; nothing reads a
"current role" from ambient state.

Usage:
    ctx = get_station_context(request.user)

    @requires_role(AppRole.DOCTOR)
    def create_prescription(ctx, visit_id, ...):
        ...
"""

from dataclasses import dataclass, field
from functools import wraps

from django.core.exceptions import PermissionDenied

from .models import AppRole, UserRole


@dataclass(frozen=True)
class StationContext:
    """Acting user plus the station roles they hold for this request."""

    user: object
    roles: frozenset = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return AppRole.ADMIN in self.roles

    def has_role(self, *roles: str) -> bool:
        """True if the user holds any of `roles`. Admin holds every role."""
        if self.is_admin:
            return True
        return any(role in self.roles for role in roles)

    def require(self, *roles: str) -> None:
        """Raise PermissionDenied unless the user holds one of `roles`."""
        if self.user is None or not getattr(self.user, "is_authenticated", False):
            raise PermissionDenied("Authentication required")
        if not self.has_role(*roles):
            raise PermissionDenied(
                f"Requires one of roles {sorted(roles)}. Your roles: {sorted(self.roles)}"
            )


def get_station_context(user) -> StationContext:
    """Build a StationContext from the user's assigned roles."""
    if user is None or not getattr(user, "is_authenticated", False):
        return StationContext(user=user, roles=frozenset())

    roles = frozenset(
        UserRole.objects.filter(user=user).values_list("role", flat=True)
    )
    return StationContext(user=user, roles=roles)


def requires_role(*roles: str):
    """
    Decorator for service functions taking a StationContext first.

    Raises:
        PermissionDenied: If the context lacks all of `roles`.

    Examples:
        @requires_role(AppRole.PHARMACY)
        def dispense(ctx, prescription_id):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(ctx, *args, **kwargs):
            if not isinstance(ctx, StationContext):
                raise TypeError(
                    f"{func.__name__}() requires a StationContext as first argument"
                )
            ctx.require(*roles)
            return func(ctx, *args, **kwargs)
        return wrapper
    return decorator
