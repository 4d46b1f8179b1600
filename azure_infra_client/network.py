"""
Typed clients for azure-mgmt-network resources
"""

import threading
from typing import Any, List, Optional

from .lro import BaseClient, ResourceClient, SubResourceClient, drain


class VirtualNetworkClient(ResourceClient):
    """Virtual networks (network_client.virtual_networks)"""

    resource_type = "virtual network"


class SubnetClient(SubResourceClient):
    """Subnets inside a virtual network (network_client.subnets)"""

    resource_type = "subnet"
    parent_type = "virtual network"


class RouteTablesClient(ResourceClient):
    resource_type = "route table"


class NatGatewayClient(ResourceClient):
    resource_type = "NAT gateway"


class PublicIPClient(ResourceClient):
    """Public IP addresses (network_client.public_ip_addresses)"""

    resource_type = "public IP address"


class SecurityGroupClient(ResourceClient):
    resource_type = "network security group"


class NetworkInterfaceClient(ResourceClient):
    resource_type = "network interface"


class LoadBalancerClient(ResourceClient):
    resource_type = "load balancer"


class BackendAddressPoolClient(SubResourceClient):
    """Backend address pools of a load balancer (network_client.load_balancer_backend_address_pools)"""

    resource_type = "backend address pool"
    parent_type = "load balancer"
    supports_expand = False


class FrontendIPConfigurationClient(BaseClient):
    """
    Frontend IP configurations of a load balancer

    Frontend configurations are managed through their load balancer, so this
    client only reads them.
    """

    resource_type = "frontend IP configuration"

    def get(self, resource_group_name: str, load_balancer_name: str, name: str) -> Optional[Any]:
        """Get a frontend IP configuration, or None if it does not exist."""
        self._validate_names(
            resource_group_name=resource_group_name,
            load_balancer_name=load_balancer_name,
            name=name,
        )
        return self._get_if_exists(self._operations.get, resource_group_name, load_balancer_name, name)

    def list(
        self, resource_group_name: str, load_balancer_name: str, cancel_event: Optional[threading.Event] = None
    ) -> List[Any]:
        """List the frontend IP configurations of a load balancer."""
        self._validate_names(resource_group_name=resource_group_name, load_balancer_name=load_balancer_name)
        items = drain(self._operations.list(resource_group_name, load_balancer_name), cancel_event)
        self.logger.debug(
            f"Listed {len(items)} frontend IP configuration(s) of {resource_group_name}/{load_balancer_name}"
        )
        return items
