"""
Per-request caller context handed from the API layer to services.
"""
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

from crm_backend.core.permissions import Modules, PermissionActions, PermissionSet


@dataclass(frozen=True)
class RequestContext:
    user_id: uuid.UUID
    org_id: uuid.UUID
    role: str
    permissions: PermissionSet

    def can(self, module: str, action: str) -> bool:
        return self.permissions.has_permission(module, action)

    def lead_visibility(self) -> Tuple[bool, Optional[uuid.UUID]]:
        """
        Whether the caller sees leads at all and, if only their own, the
        assignee id every lead read is limited to.
        """
        if self.can(Modules.LEADS, PermissionActions.VIEW_ALL):
            return True, None
        if self.can(Modules.LEADS, PermissionActions.VIEW_ASSIGNED):
            return True, self.user_id
        return False, None
