"""
Authorization for layout nodes.

The layout tree never decides WHO may do WHAT. It asks an external actor,
through one small interface:

    Authorizer.has_any_permission(permissions) -> bool
    Authorizer.has_any_role(roles) -> bool

Actors that do not implement the interface are wrapped in ActorAdapter,
which recognises the conventional method names found on user models
(has_any_permission / can / has_any_role / has_role / role). This keeps
all duck-typing in one place; nodes only ever see an Authorizer.

Precedence on a node (see resolve_access):
    1. custom predicate result
    2. permission check (overrides 1 when permissions are set and an actor is present)
    3. role check (overrides 1-2 when roles are set and an actor is present)
Later checks overwrite earlier ones; there is no first-match short-circuit.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, Iterable, List, Optional, Protocol, Sequence, Union, runtime_checkable


AccessPredicate = Callable[[Any], bool]


@runtime_checkable
class Authorizer(Protocol):
    """Capability interface the layout tree depends on."""

    def has_any_permission(self, permissions: Sequence[str]) -> bool:
        ...

    def has_any_role(self, roles: Sequence[str]) -> bool:
        ...


@dataclass(frozen=True)
class RoleRecord:
    """
    Default Authorizer for plain actor records.

    Example:
        RoleRecord(role="editor", permissions=frozenset({"posts.edit"}))
        RoleRecord.from_mapping({"role": "admin"})
    """

    role: Optional[str] = None
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_mapping(cls, data: Mapping) -> "RoleRecord":
        return cls(role=data.get("role"), permissions=frozenset(data.get("permissions") or ()))

    def has_any_permission(self, permissions: Sequence[str]) -> bool:
        return any(p in self.permissions for p in permissions)

    def has_any_role(self, roles: Sequence[str]) -> bool:
        return self.role is not None and self.role in roles


class ActorAdapter:
    """
    Adapts an arbitrary user object to the Authorizer interface.

    Permissions: bulk has_any_permission(), else can() per permission.
    Roles: bulk has_any_role(), else has_role() per role, else a plain
    `role` attribute, else an iterable `roles` attribute of names
    (or objects with name/slug). Anything else answers False.
    """

    def __init__(self, actor: Any):
        self.actor = actor

    def _method(self, name: str) -> Optional[Callable[..., Any]]:
        method = getattr(self.actor, name, None)
        return method if callable(method) else None

    def has_any_permission(self, permissions: Sequence[str]) -> bool:
        bulk = self._method("has_any_permission")
        if bulk is not None:
            return bool(bulk(list(permissions)))
        can = self._method("can")
        if can is not None:
            return any(can(permission) for permission in permissions)
        return False

    def has_any_role(self, roles: Sequence[str]) -> bool:
        bulk = self._method("has_any_role")
        if bulk is not None:
            return bool(bulk(list(roles)))
        has_role = self._method("has_role")
        if has_role is not None:
            return any(has_role(role) for role in roles)
        role = getattr(self.actor, "role", None)
        if role is not None and not callable(role):
            return role in roles
        assigned = getattr(self.actor, "roles", None)
        if assigned is not None and not callable(assigned) and not isinstance(assigned, str):
            for entry in assigned:
                name = entry if isinstance(entry, str) else getattr(entry, "name", None) or getattr(entry, "slug", "")
                if name in roles:
                    return True
        return False


def as_authorizer(actor: Any) -> Optional[Authorizer]:
    """Return an Authorizer for actor (None stays None)."""
    if actor is None:
        return None
    if isinstance(actor, Authorizer):
        return actor
    if isinstance(actor, Mapping):
        return RoleRecord.from_mapping(actor)
    return ActorAdapter(actor)


def listify(values: Union[str, Iterable[str], None]) -> List[str]:
    """Accept a single name or any iterable of names."""
    if values is None:
        return []
    if isinstance(values, str):
        return [values]
    return list(values)


def check_permissions(actor: Any, permissions: Sequence[str]) -> bool:
    authorizer = as_authorizer(actor)
    return authorizer is not None and bool(authorizer.has_any_permission(list(permissions)))


def check_roles(actor: Any, roles: Sequence[str]) -> bool:
    authorizer = as_authorizer(actor)
    return authorizer is not None and bool(authorizer.has_any_role(list(roles)))


def resolve_access(
    current: bool,
    actor: Any,
    permissions: Sequence[str],
    roles: Sequence[str],
    predicate: Optional[AccessPredicate] = None,
) -> bool:
    """
    Compute a node's "authorized to see" flag.

    Args:
        current: Flag value before this pass (kept when no gate applies)
        actor: Current user, or None for guests
        permissions: Required permissions (any of)
        roles: Required roles (any of)
        predicate: Custom callable receiving the raw actor

    Returns:
        New flag value
    """
    authorized = current
    if predicate is not None:
        authorized = bool(predicate(actor))
    if permissions and actor is not None:
        authorized = check_permissions(actor, permissions)
    if roles and actor is not None:
        authorized = check_roles(actor, roles)
    return authorized


def resolve_group_access(actor: Any, permissions: Sequence[str], roles: Sequence[str]) -> bool:
    """Group-level gate for tabs, panels and steps: permissions, else roles, else open."""
    if permissions:
        return check_permissions(actor, permissions)
    if roles:
        return check_roles(actor, roles)
    return True
