"""
Capability-based permissions.

A member's grants are stored as {module: [action, ...]} on the
organization membership. They are evaluated once per request into a
PermissionSet and handed to services, which only ever ask
has_permission(module, action).
"""
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional


class Modules:
    CONTACTS = "contacts"
    COMPANIES = "companies"
    LEADS = "leads"
    TASKS = "tasks"

    ALL = (CONTACTS, COMPANIES, LEADS, TASKS)


class PermissionActions:
    ACCESS = "enable_disable"  # module switched on for this member
    VIEW_ALL = "view_all"
    VIEW_ASSIGNED = "view_assigned"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    TRANSFER_LEAD = "transfer_lead"
    VIEW_UNMASKED = "view_unmasked"

    ALL = (ACCESS, VIEW_ALL, VIEW_ASSIGNED, CREATE, EDIT, DELETE, TRANSFER_LEAD, VIEW_UNMASKED)


# Roles that bypass stored grants
FULL_ACCESS_ROLES = frozenset({"owner", "admin"})

DEFAULT_MEMBER_PERMISSIONS: Dict[str, List[str]] = {
    Modules.CONTACTS: [PermissionActions.ACCESS, PermissionActions.CREATE, PermissionActions.EDIT],
    Modules.COMPANIES: [PermissionActions.ACCESS, PermissionActions.CREATE, PermissionActions.EDIT],
    Modules.LEADS: [PermissionActions.ACCESS, PermissionActions.VIEW_ASSIGNED, PermissionActions.CREATE, PermissionActions.EDIT],
    Modules.TASKS: [PermissionActions.ACCESS, PermissionActions.CREATE, PermissionActions.EDIT],
}


@dataclass(frozen=True)
class Permission:
    module: str
    action: str

    def __str__(self) -> str:
        return f"{self.module}.{self.action}"


class PermissionSet:
    """Immutable set of (module, action) capabilities."""

    def __init__(self, permissions: Iterable[Permission] = ()):
        self._permissions: FrozenSet[Permission] = frozenset(permissions)

    @classmethod
    def full(cls) -> "PermissionSet":
        return cls(
            Permission(module, action)
            for module in Modules.ALL
            for action in PermissionActions.ALL
        )

    @classmethod
    def from_grants(cls, grants: Optional[Dict[str, Iterable[str]]]) -> "PermissionSet":
        """Build from the stored {module: [actions]} mapping, ignoring unknown entries."""
        permissions = []
        for module, actions in (grants or {}).items():
            if module not in Modules.ALL:
                continue
            for action in actions or []:
                if action in PermissionActions.ALL:
                    permissions.append(Permission(module, action))
        return cls(permissions)

    @classmethod
    def for_member(cls, role: str, grants: Optional[Dict[str, Iterable[str]]]) -> "PermissionSet":
        if role in FULL_ACCESS_ROLES:
            return cls.full()
        return cls.from_grants(grants)

    def has_permission(self, module: str, action: str) -> bool:
        if action != PermissionActions.ACCESS and Permission(module, PermissionActions.ACCESS) not in self._permissions:
            return False
        return Permission(module, action) in self._permissions

    def to_grants(self) -> Dict[str, List[str]]:
        grants: Dict[str, List[str]] = {}
        for permission in sorted(self._permissions, key=lambda p: (p.module, p.action)):
            grants.setdefault(permission.module, []).append(permission.action)
        return grants

    def __contains__(self, permission: Permission) -> bool:
        return self.has_permission(permission.module, permission.action)

    def __len__(self) -> int:
        return len(self._permissions)


def validate_grants(grants: Dict[str, List[str]]) -> Dict[str, List[str]]:
    """Reject unknown modules or actions before storing grants."""
    for module, actions in grants.items():
        if module not in Modules.ALL:
            raise ValueError(f"Unknown permission module '{module}'")
        for action in actions:
            if action not in PermissionActions.ALL:
                raise ValueError(f"Unknown permission action '{module}.{action}'")
    return {module: sorted(set(actions)) for module, actions in grants.items()}
