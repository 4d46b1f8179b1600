"""
Typed clients for azure-mgmt-compute resources
"""

import threading
from typing import Any, List, Optional

from .errors import filter_not_found
from .lro import BaseClient, ResourceClient, drain


class _ForceDeletableClient(ResourceClient):
    """Resource whose delete accepts the force_deletion option"""

    def delete_with_options(
        self,
        resource_group_name: str,
        name: str,
        force_deletion: Optional[bool] = None,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """
        Delete the resource if it exists, passing resource specific options

        Args:
            resource_group_name: Resource group of the resource
            name: Resource name
            force_deletion: Ask Azure to force delete the resource
            timeout: Optional deadline in seconds for the deletion
            cancel_event: Optional event aborting the wait
        """
        self._validate_names(resource_group_name=resource_group_name, name=name)
        options = {"force_deletion": force_deletion} if force_deletion is not None else {}
        self._run_delete(
            self._operations.begin_delete,
            f"delete {self.resource_type} {resource_group_name}/{name}",
            resource_group_name,
            name,
            timeout=timeout,
            cancel_event=cancel_event,
            **options,
        )


class VirtualMachineClient(_ForceDeletableClient):
    """Virtual machines (compute_client.virtual_machines)"""

    resource_type = "virtual machine"


class VmssClient(_ForceDeletableClient):
    """Virtual machine scale sets (compute_client.virtual_machine_scale_sets)"""

    resource_type = "virtual machine scale set"


class DiskClient(ResourceClient):
    """Managed disks (compute_client.disks)"""

    resource_type = "disk"
    supports_expand = False

    def list(self, resource_group_name: str, cancel_event: Optional[threading.Event] = None) -> List[Any]:
        self._validate_names(resource_group_name=resource_group_name)
        items = drain(self._operations.list_by_resource_group(resource_group_name), cancel_event)
        self.logger.debug(f"Listed {len(items)} disk(s) in {resource_group_name}")
        return items


class AvailabilitySetClient(BaseClient):
    """
    Availability sets (compute_client.availability_sets)

    Availability set writes are synchronous in Azure, there is no poller.
    """

    resource_type = "availability set"

    def get(self, resource_group_name: str, name: str) -> Optional[Any]:
        """Get an availability set, or None if it does not exist."""
        self._validate_names(resource_group_name=resource_group_name, name=name)
        return self._get_if_exists(self._operations.get, resource_group_name, name)

    def list(self, resource_group_name: str, cancel_event: Optional[threading.Event] = None) -> List[Any]:
        self._validate_names(resource_group_name=resource_group_name)
        return drain(self._operations.list(resource_group_name), cancel_event)

    def create_or_update(self, resource_group_name: str, name: str, parameters: Any) -> Any:
        """Create or update an availability set."""
        self._validate_names(resource_group_name=resource_group_name, name=name)
        result = self._operations.create_or_update(resource_group_name, name, parameters)
        self.logger.info(f"Created or updated availability set {resource_group_name}/{name}")
        return result

    def delete(self, resource_group_name: str, name: str) -> None:
        """Delete an availability set if it exists."""
        self._validate_names(resource_group_name=resource_group_name, name=name)
        try:
            self._operations.delete(resource_group_name, name)
        except Exception as e:
            if filter_not_found(e) is not None:
                raise
            self.logger.warning(f"Availability set {resource_group_name}/{name} does not exist, nothing to delete")
            return
        self.logger.info(f"Deleted availability set {resource_group_name}/{name}")


class VirtualMachineImagesClient(BaseClient):
    """Marketplace image catalog (compute_client.virtual_machine_images)"""

    resource_type = "virtual machine image"

    def list_skus(self, location: str, publisher: str, offer: str) -> List[Any]:
        """
        List the SKUs of a marketplace image offer

        Returns:
            VirtualMachineImageResource entries, one per SKU
        """
        self._validate_names(location=location, publisher=publisher, offer=offer)
        return list(self._operations.list_skus(location, publisher, offer))

    def list_versions(self, location: str, publisher: str, offer: str, sku: str) -> List[Any]:
        """List the available versions of a marketplace image SKU."""
        self._validate_names(location=location, publisher=publisher, offer=offer, sku=sku)
        return list(self._operations.list(location, publisher, offer, sku))
