"""Request context passed explicitly into every booking lifecycle operation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Union

from .core.enums import PermissionName


@dataclass(frozen=True)
class RequestContext:
    """
    The authenticated caller as seen by the booking engine.

    Built once per request by the auth layer and handed to services as an
    argument. ``garage_ids`` are the garages the caller's token claims to own;
    services still confirm ownership against the garage record.
    """

    user_id: str
    permissions: FrozenSet[str] = field(default_factory=frozenset)
    garage_ids: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        user_id: str,
        permissions: Iterable[Union[str, PermissionName]] = (),
        garage_ids: Iterable[str] = (),
    ) -> "RequestContext":
        return cls(
            user_id=user_id,
            permissions=frozenset(_permission_value(p) for p in permissions),
            garage_ids=frozenset(str(g) for g in garage_ids),
        )

    def has_permission(self, permission: Union[str, PermissionName]) -> bool:
        return _permission_value(permission) in self.permissions

    def owns_garage(self, garage_id: str) -> bool:
        return str(garage_id) in self.garage_ids


def _permission_value(permission: Union[str, PermissionName]) -> str:
    if isinstance(permission, PermissionName):
        return permission.value
    return str(permission).strip()
