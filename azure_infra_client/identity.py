"""
Typed client for user-assigned managed identities (azure-mgmt-msi)
"""

import threading
from typing import Any, List, Optional

from .lro import BaseClient, drain


class ManagedUserIdentityClient(BaseClient):
    """User-assigned identities (msi_client.user_assigned_identities)"""

    resource_type = "managed identity"

    def get(self, resource_group_name: str, name: str) -> Optional[Any]:
        """Get a managed identity by name, or None if it does not exist."""
        self._validate_names(resource_group_name=resource_group_name, name=name)
        return self._get_if_exists(self._operations.get, resource_group_name, name)

    def list(self, resource_group_name: str, cancel_event: Optional[threading.Event] = None) -> List[Any]:
        self._validate_names(resource_group_name=resource_group_name)
        return drain(self._operations.list_by_resource_group(resource_group_name), cancel_event)
