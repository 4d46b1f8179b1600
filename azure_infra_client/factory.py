"""
Client factory for Azure infrastructure clients

The factory follows the lazy client factory approach of the Azure CLI: SDK
clients are created on first access through properties, and typed clients are
thin wrappers around one operations group of an SDK client.

Usage:
    factory = new_factory_from_secret_ref(core_api, secret_ref)
    with factory:
        vnet = factory.virtual_network().get(rg, vnet_name)
        factory.subnet().delete(rg, vnet_name, subnet_name)
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

from azure.core.credentials import TokenCredential
from azure.mgmt.compute import ComputeManagementClient
from azure.mgmt.dns import DnsManagementClient
from azure.mgmt.msi import ManagedServiceIdentityClient
from azure.mgmt.network import NetworkManagementClient
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.storage import StorageManagementClient

from .auth import ClientAuth, get_client_auth_data
from .blob_storage import BlobStorageClient, new_blob_storage_client_from_secret
from .client_options import ClientOptions, default_client_options
from .cloud import CloudConfiguration, resolve_cloud_environment
from .compute import (
    AvailabilitySetClient,
    DiskClient,
    VirtualMachineClient,
    VirtualMachineImagesClient,
    VmssClient,
)
from .config import cloud_configuration_from_env
from .constants import LOGGER_NAME
from .dns import DNSRecordSetClient, DNSZoneClient
from .exceptions import InvalidArgumentError
from .identity import ManagedUserIdentityClient
from .network import (
    BackendAddressPoolClient,
    FrontendIPConfigurationClient,
    LoadBalancerClient,
    NatGatewayClient,
    NetworkInterfaceClient,
    PublicIPClient,
    RouteTablesClient,
    SecurityGroupClient,
    SubnetClient,
    VirtualNetworkClient,
)
from .resources import GenericResourceClient, ResourceGroupClient
from .storage import BlobContainersClient, ManagementPoliciesClient, StorageAccountClient

T = TypeVar("T")


class AzureClientFactory:
    """
    Produces typed Azure clients sharing one credential and one set of client options

    Design:
    - Lazy initialization: SDK clients are created on first access
    - Memoisation: each typed client is constructed at most once per factory
    - Ownership: the factory owns its token credential and closes it in close()
    """

    def __init__(
        self,
        auth: ClientAuth,
        token_credential: Optional[TokenCredential] = None,
        cloud_configuration: Optional[CloudConfiguration] = None,
        client_options: Optional[ClientOptions] = None,
        core_api: Optional[Any] = None,
    ):
        """
        Initialize client factory

        Args:
            auth: Credentials the clients act with
            token_credential: Credential to use; created from auth when omitted
            cloud_configuration: Target cloud; AZURE_INFRA_CLIENT_CLOUD or AzurePublic when omitted
            client_options: Retry budget and transport; process defaults when omitted
            core_api: kubernetes CoreV1Api, needed only for blob_storage()

        Raises:
            UnknownCloudConfigurationError: If the cloud configuration is not known
        """
        self.logger = logging.getLogger(f"{LOGGER_NAME}.factory")
        self.auth = auth
        self.subscription_id = auth.subscription_id
        self.cloud_configuration = cloud_configuration or cloud_configuration_from_env()
        self.environment = resolve_cloud_environment(self.cloud_configuration)
        self.client_options = client_options or default_client_options()
        self.credential = token_credential or auth.get_token_credential(self.cloud_configuration)
        self.core_api = core_api

        # Lazy initialization - SDK clients created on first access
        self._network_client = None
        self._compute_client = None
        self._resource_client = None
        self._dns_client = None
        self._storage_client = None
        self._msi_client = None

        self._lock = threading.RLock()
        self._typed_clients: Dict[Tuple[str, ...], Any] = {}

        self.logger.info(
            f"Created Azure client factory for subscription {self.subscription_id} in cloud {self.environment.name}"
        )

    def _sdk_kwargs(self) -> Dict[str, Any]:
        kwargs = self.environment.management_client_kwargs()
        kwargs.update(self.client_options.client_kwargs())
        return kwargs

    def _lazy(self, attribute: str, build: Callable[..., T]) -> T:
        with self._lock:
            client = getattr(self, attribute)
            if client is None:
                client = build(self.credential, self.subscription_id, **self._sdk_kwargs())
                setattr(self, attribute, client)
                self.logger.debug(f"Created {type(client).__name__}")
            return client

    @property
    def network_client(self) -> NetworkManagementClient:
        """Get or create NetworkManagementClient (VNet, subnet, NSG, LB, NAT, NIC, public IP)."""
        return self._lazy("_network_client", NetworkManagementClient)

    @property
    def compute_client(self) -> ComputeManagementClient:
        """Get or create ComputeManagementClient (VM, VMSS, availability set, disk, image)."""
        return self._lazy("_compute_client", ComputeManagementClient)

    @property
    def resource_client(self) -> ResourceManagementClient:
        return self._lazy("_resource_client", ResourceManagementClient)

    @property
    def dns_client(self) -> DnsManagementClient:
        return self._lazy("_dns_client", DnsManagementClient)

    @property
    def storage_client(self) -> StorageManagementClient:
        return self._lazy("_storage_client", StorageManagementClient)

    @property
    def msi_client(self) -> ManagedServiceIdentityClient:
        return self._lazy("_msi_client", ManagedServiceIdentityClient)

    def _typed(self, key: Tuple[str, ...], build: Callable[[], T]) -> T:
        with self._lock:
            client = self._typed_clients.get(key)
            if client is None:
                client = build()
                self._typed_clients[key] = client
            return client

    # Resource manager

    def resource_group(self) -> ResourceGroupClient:
        return self._typed(
            ("resource_group",),
            lambda: ResourceGroupClient(self.resource_client.resource_groups, self.subscription_id),
        )

    def resource(self) -> GenericResourceClient:
        return self._typed(
            ("resource",),
            lambda: GenericResourceClient(self.resource_client.resources, self.subscription_id),
        )

    # Network

    def virtual_network(self) -> VirtualNetworkClient:
        return self._typed(
            ("virtual_network",),
            lambda: VirtualNetworkClient(self.network_client.virtual_networks, self.subscription_id),
        )

    def subnet(self) -> SubnetClient:
        return self._typed(
            ("subnet",),
            lambda: SubnetClient(self.network_client.subnets, self.subscription_id),
        )

    def route_tables(self) -> RouteTablesClient:
        return self._typed(
            ("route_tables",),
            lambda: RouteTablesClient(self.network_client.route_tables, self.subscription_id),
        )

    def nat_gateway(self) -> NatGatewayClient:
        return self._typed(
            ("nat_gateway",),
            lambda: NatGatewayClient(self.network_client.nat_gateways, self.subscription_id),
        )

    def public_ip(self) -> PublicIPClient:
        return self._typed(
            ("public_ip",),
            lambda: PublicIPClient(self.network_client.public_ip_addresses, self.subscription_id),
        )

    def security_group(self) -> SecurityGroupClient:
        return self._typed(
            ("security_group",),
            lambda: SecurityGroupClient(self.network_client.network_security_groups, self.subscription_id),
        )

    def network_interface(self) -> NetworkInterfaceClient:
        return self._typed(
            ("network_interface",),
            lambda: NetworkInterfaceClient(self.network_client.network_interfaces, self.subscription_id),
        )

    def load_balancer(self) -> LoadBalancerClient:
        return self._typed(
            ("load_balancer",),
            lambda: LoadBalancerClient(self.network_client.load_balancers, self.subscription_id),
        )

    def backend_address_pool(self) -> BackendAddressPoolClient:
        return self._typed(
            ("backend_address_pool",),
            lambda: BackendAddressPoolClient(
                self.network_client.load_balancer_backend_address_pools, self.subscription_id
            ),
        )

    def frontend_ip_configuration(self) -> FrontendIPConfigurationClient:
        return self._typed(
            ("frontend_ip_configuration",),
            lambda: FrontendIPConfigurationClient(
                self.network_client.load_balancer_frontend_ip_configurations, self.subscription_id
            ),
        )

    # Compute

    def virtual_machine(self) -> VirtualMachineClient:
        return self._typed(
            ("virtual_machine",),
            lambda: VirtualMachineClient(self.compute_client.virtual_machines, self.subscription_id),
        )

    def vmss(self) -> VmssClient:
        return self._typed(
            ("vmss",),
            lambda: VmssClient(self.compute_client.virtual_machine_scale_sets, self.subscription_id),
        )

    def availability_set(self) -> AvailabilitySetClient:
        return self._typed(
            ("availability_set",),
            lambda: AvailabilitySetClient(self.compute_client.availability_sets, self.subscription_id),
        )

    def disk(self) -> DiskClient:
        return self._typed(
            ("disk",),
            lambda: DiskClient(self.compute_client.disks, self.subscription_id),
        )

    def virtual_machine_images(self) -> VirtualMachineImagesClient:
        return self._typed(
            ("virtual_machine_images",),
            lambda: VirtualMachineImagesClient(self.compute_client.virtual_machine_images, self.subscription_id),
        )

    # Identity

    def managed_user_identity(self) -> ManagedUserIdentityClient:
        return self._typed(
            ("managed_user_identity",),
            lambda: ManagedUserIdentityClient(self.msi_client.user_assigned_identities, self.subscription_id),
        )

    # DNS

    def dns_zone(self) -> DNSZoneClient:
        return self._typed(
            ("dns_zone",),
            lambda: DNSZoneClient(self.dns_client.zones, self.subscription_id),
        )

    def dns_record_set(self) -> DNSRecordSetClient:
        return self._typed(
            ("dns_record_set",),
            lambda: DNSRecordSetClient(self.dns_client.record_sets, self.subscription_id),
        )

    # Storage

    def storage_account(self) -> StorageAccountClient:
        return self._typed(
            ("storage_account",),
            lambda: StorageAccountClient(self.storage_client.storage_accounts, self.subscription_id),
        )

    def blob_containers(self) -> BlobContainersClient:
        return self._typed(
            ("blob_containers",),
            lambda: BlobContainersClient(self.storage_client.blob_containers, self.subscription_id),
        )

    def management_policies(self) -> ManagementPoliciesClient:
        return self._typed(
            ("management_policies",),
            lambda: ManagementPoliciesClient(self.storage_client.management_policies, self.subscription_id),
        )

    def blob_storage(self, secret_ref: Any) -> BlobStorageClient:
        """
        Get the blob storage client for the storage account in a secret

        Args:
            secret_ref: V1SecretReference of a secret with storageAccount and storageKey

        Returns:
            BlobStorageClient, one per referenced secret
        """
        if self.core_api is None:
            raise InvalidArgumentError("a kubernetes CoreV1Api is required to read storage secrets")

        def build() -> BlobStorageClient:
            secret = self.core_api.read_namespaced_secret(secret_ref.name, secret_ref.namespace)
            return new_blob_storage_client_from_secret(secret, self.cloud_configuration, self.client_options)

        return self._typed(("blob_storage", secret_ref.namespace, secret_ref.name), build)

    # Lifecycle

    def close(self) -> None:
        """Close every SDK client created so far and the token credential."""
        with self._lock:
            for blob_client in [c for k, c in self._typed_clients.items() if k[0] == "blob_storage"]:
                blob_client.close()
            for attribute in (
                "_network_client",
                "_compute_client",
                "_resource_client",
                "_dns_client",
                "_storage_client",
                "_msi_client",
            ):
                client = getattr(self, attribute)
                if client is not None:
                    client.close()
                    setattr(self, attribute, None)
            self._typed_clients.clear()
            close_credential = getattr(self.credential, "close", None)
            if close_credential is not None:
                close_credential()
        self.logger.debug("Closed Azure client factory")

    def __enter__(self) -> "AzureClientFactory":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


def new_factory_from_secret_ref(
    core_api: Any,
    secret_ref: Any,
    allow_dns_keys: bool = False,
    cloud_configuration: Optional[CloudConfiguration] = None,
    client_options: Optional[ClientOptions] = None,
) -> AzureClientFactory:
    """
    Read credentials from a secret and create a factory for them

    Args:
        core_api: kubernetes CoreV1Api used to read the secret
        secret_ref: V1SecretReference of the credentials secret
        allow_dns_keys: Whether the dns* alternate keys are accepted
        cloud_configuration: Target cloud; AZURE_INFRA_CLIENT_CLOUD or AzurePublic when omitted
        client_options: Retry budget and transport; process defaults when omitted

    Returns:
        AzureClientFactory bound to the credentials of the secret
    """
    auth = get_client_auth_data(core_api, secret_ref, allow_dns_keys)
    return AzureClientFactory(
        auth,
        cloud_configuration=cloud_configuration,
        client_options=client_options,
        core_api=core_api,
    )
