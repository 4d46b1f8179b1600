"""
Typed clients for azure-mgmt-resource: resource groups and generic resources
"""

import threading
from typing import Any, Dict, List, Optional

from azure.mgmt.resource.resources.models import ResourceGroup

from .exceptions import InvalidArgumentError
from .lro import BaseClient, drain


class ResourceGroupClient(BaseClient):
    """
    Resource groups (resource_client.resource_groups)

    Resource groups are top-level containers addressed by name only.
    """

    resource_type = "resource group"

    def get(self, name: str) -> Optional[Any]:
        """Get a resource group, or None if it does not exist."""
        self._validate_names(resource_group_name=name)
        return self._get_if_exists(self._operations.get, name)

    def create_or_update(
        self,
        name: str,
        parameters: Optional[Any] = None,
        location: Optional[str] = None,
        tags: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Create or update a resource group

        Args:
            name: Resource group name
            parameters: Full ResourceGroup payload; built from location and tags when omitted
            location: Azure region of the group
            tags: Optional tags of the group

        Returns:
            The resource group as stored by Azure
        """
        self._validate_names(resource_group_name=name)
        if parameters is None:
            if not location:
                raise InvalidArgumentError("either parameters or location must be given to create a resource group")
            parameters = ResourceGroup(location=location, tags=tags)
        result = self._operations.create_or_update(name, parameters)
        self.logger.info(f"Created or updated resource group {name}")
        return result

    def delete(
        self,
        name: str,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """Delete a resource group and everything in it, if it exists."""
        self._validate_names(resource_group_name=name)
        self._run_delete(
            self._operations.begin_delete,
            f"delete resource group {name}",
            name,
            timeout=timeout,
            cancel_event=cancel_event,
        )

    def check_existence(self, name: str) -> bool:
        self._validate_names(resource_group_name=name)
        return bool(self._operations.check_existence(name))


class GenericResourceClient(BaseClient):
    """Enumerates arbitrary resources (resource_client.resources)"""

    resource_type = "resource"

    def list_by_resource_group(
        self,
        resource_group_name: str,
        filter: Optional[str] = None,
        expand: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Any]:
        """
        List every resource of a resource group

        Args:
            resource_group_name: Resource group to enumerate
            filter: Optional OData filter, e.g. "resourceType eq 'Microsoft.Network/virtualNetworks'"
            expand: Optional comma separated list of additional properties
            cancel_event: Optional event stopping the listing between items

        Returns:
            GenericResourceExpanded entries of all pages
        """
        self._validate_names(resource_group_name=resource_group_name)
        kwargs = {}
        if filter is not None:
            kwargs["filter"] = filter
        if expand is not None:
            kwargs["expand"] = expand
        items = drain(self._operations.list_by_resource_group(resource_group_name, **kwargs), cancel_event)
        self.logger.debug(f"Listed {len(items)} resource(s) in {resource_group_name}")
        return items
