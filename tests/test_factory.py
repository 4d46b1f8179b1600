"""
Unit tests for client factory module
"""

import base64
import os
import unittest
from unittest.mock import Mock, patch

from kubernetes.client import V1ObjectMeta, V1Secret, V1SecretReference

from azure_infra_client.auth import ClientAuth
from azure_infra_client.client_options import AzureRetryPolicy, ClientOptions
from azure_infra_client.cloud import CloudConfiguration
from azure_infra_client.exceptions import InvalidArgumentError, UnknownCloudConfigurationError
from azure_infra_client.factory import AzureClientFactory, new_factory_from_secret_ref
from azure_infra_client.network import SubnetClient, VirtualNetworkClient


def encode(value):
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def credentials_secret():
    return V1Secret(
        metadata=V1ObjectMeta(name="cloudprovider", namespace="shoot--dev--a"),
        data={
            "subscriptionID": encode("sub"),
            "tenantID": encode("tenant"),
            "clientID": encode("client"),
            "clientSecret": encode("secret"),
        },
    )


def storage_secret():
    return V1Secret(
        metadata=V1ObjectMeta(name="backup", namespace="garden"),
        data={"storageAccount": encode("account"), "storageKey": encode("a2V5")},
    )


SDK_CLASSES = (
    "NetworkManagementClient",
    "ComputeManagementClient",
    "ResourceManagementClient",
    "DnsManagementClient",
    "StorageManagementClient",
    "ManagedServiceIdentityClient",
)


class FactoryTestCase(unittest.TestCase):
    """Patches every SDK client class of the factory module"""

    def setUp(self):
        self.sdk = {}
        for name in SDK_CLASSES:
            patcher = patch(f"azure_infra_client.factory.{name}")
            self.sdk[name] = patcher.start()
            self.addCleanup(patcher.stop)

        self.auth = ClientAuth(subscription_id="sub", tenant_id="tenant", client_id="client", client_secret="secret")
        self.credential = Mock()
        self.options = ClientOptions(transport=Mock())

    def make_factory(self, **kwargs):
        kwargs.setdefault("token_credential", self.credential)
        kwargs.setdefault("client_options", self.options)
        return AzureClientFactory(self.auth, **kwargs)


class TestLazyClients(FactoryTestCase):
    """Test lazy creation and memoisation of clients"""

    def test_no_sdk_client_before_first_use(self):
        self.make_factory()
        for sdk_class in self.sdk.values():
            sdk_class.assert_not_called()

    def test_typed_client_is_memoised(self):
        factory = self.make_factory()

        first = factory.virtual_network()
        second = factory.virtual_network()

        self.assertIsInstance(first, VirtualNetworkClient)
        self.assertIs(first, second)
        self.sdk["NetworkManagementClient"].assert_called_once()

    def test_sdk_client_shared_between_typed_clients(self):
        factory = self.make_factory()
        network = self.sdk["NetworkManagementClient"].return_value

        vnet = factory.virtual_network()
        subnet = factory.subnet()

        self.assertIsInstance(subnet, SubnetClient)
        self.assertIs(vnet._operations, network.virtual_networks)
        self.assertIs(subnet._operations, network.subnets)
        self.sdk["NetworkManagementClient"].assert_called_once()

    def test_sdk_client_arguments(self):
        factory = self.make_factory()
        factory.resource_group()

        args, kwargs = self.sdk["ResourceManagementClient"].call_args
        self.assertEqual(args, (self.credential, "sub"))
        self.assertEqual(kwargs["base_url"], "https://management.azure.com/")
        self.assertEqual(kwargs["credential_scopes"], ["https://management.azure.com/.default"])
        self.assertIs(kwargs["transport"], self.options.transport)
        self.assertIsInstance(kwargs["retry_policy"], AzureRetryPolicy)

    def test_sovereign_cloud_endpoints(self):
        factory = self.make_factory(cloud_configuration=CloudConfiguration(name="AzureGovernment"))
        factory.dns_zone()

        kwargs = self.sdk["DnsManagementClient"].call_args[1]
        self.assertEqual(kwargs["base_url"], "https://management.usgovcloudapi.net/")
        self.assertEqual(kwargs["credential_scopes"], ["https://management.usgovcloudapi.net/.default"])

    def test_cloud_from_environment(self):
        with patch.dict(os.environ, {"AZURE_INFRA_CLIENT_CLOUD": "AzureChina"}):
            factory = self.make_factory()
        factory.virtual_network()

        self.assertEqual(factory.environment.name, "AzureChina")
        self.assertEqual(factory.cloud_configuration, CloudConfiguration(name="AzureChina"))
        kwargs = self.sdk["NetworkManagementClient"].call_args[1]
        self.assertEqual(kwargs["base_url"], "https://management.chinacloudapi.cn/")

    def test_explicit_cloud_wins_over_environment(self):
        with patch.dict(os.environ, {"AZURE_INFRA_CLIENT_CLOUD": "AzureChina"}):
            factory = self.make_factory(cloud_configuration=CloudConfiguration(name="AzureGovernment"))

        self.assertEqual(factory.environment.name, "AzureGovernment")

    def test_unknown_cloud(self):
        with self.assertRaises(UnknownCloudConfigurationError):
            self.make_factory(cloud_configuration=CloudConfiguration(name="AzureMoon"))

    def test_every_accessor_uses_its_operations_group(self):
        factory = self.make_factory()
        network = self.sdk["NetworkManagementClient"].return_value
        compute = self.sdk["ComputeManagementClient"].return_value
        resource = self.sdk["ResourceManagementClient"].return_value
        dns = self.sdk["DnsManagementClient"].return_value
        storage = self.sdk["StorageManagementClient"].return_value
        msi = self.sdk["ManagedServiceIdentityClient"].return_value

        expected = {
            factory.resource_group: resource.resource_groups,
            factory.resource: resource.resources,
            factory.virtual_network: network.virtual_networks,
            factory.subnet: network.subnets,
            factory.route_tables: network.route_tables,
            factory.nat_gateway: network.nat_gateways,
            factory.public_ip: network.public_ip_addresses,
            factory.security_group: network.network_security_groups,
            factory.network_interface: network.network_interfaces,
            factory.load_balancer: network.load_balancers,
            factory.backend_address_pool: network.load_balancer_backend_address_pools,
            factory.frontend_ip_configuration: network.load_balancer_frontend_ip_configurations,
            factory.virtual_machine: compute.virtual_machines,
            factory.vmss: compute.virtual_machine_scale_sets,
            factory.availability_set: compute.availability_sets,
            factory.disk: compute.disks,
            factory.virtual_machine_images: compute.virtual_machine_images,
            factory.managed_user_identity: msi.user_assigned_identities,
            factory.dns_zone: dns.zones,
            factory.dns_record_set: dns.record_sets,
            factory.storage_account: storage.storage_accounts,
            factory.blob_containers: storage.blob_containers,
            factory.management_policies: storage.management_policies,
        }
        for accessor, operations in expected.items():
            client = accessor()
            self.assertIs(client._operations, operations, accessor.__name__)
            self.assertEqual(client.subscription_id, "sub")

    def test_credential_created_from_auth(self):
        with patch.object(ClientAuth, "get_token_credential") as get_token_credential:
            cloud = CloudConfiguration(name="AzureChina")
            factory = AzureClientFactory(self.auth, cloud_configuration=cloud, client_options=self.options)

        get_token_credential.assert_called_once_with(cloud)
        self.assertIs(factory.credential, get_token_credential.return_value)


@patch("azure_infra_client.factory.new_blob_storage_client_from_secret")
class TestBlobStorage(FactoryTestCase):
    """Test blob storage clients read from secrets"""

    def test_requires_core_api(self, new_blob_client):
        factory = self.make_factory()
        with self.assertRaises(InvalidArgumentError):
            factory.blob_storage(V1SecretReference(name="backup", namespace="garden"))
        new_blob_client.assert_not_called()

    def test_one_client_per_secret(self, new_blob_client):
        core_api = Mock()
        core_api.read_namespaced_secret.return_value = storage_secret()
        new_blob_client.side_effect = lambda *args: Mock()
        factory = self.make_factory(core_api=core_api)

        first = factory.blob_storage(V1SecretReference(name="backup", namespace="garden"))
        again = factory.blob_storage(V1SecretReference(name="backup", namespace="garden"))
        other = factory.blob_storage(V1SecretReference(name="backup", namespace="shoot--dev--a"))

        self.assertIs(first, again)
        self.assertIsNot(first, other)
        self.assertEqual(core_api.read_namespaced_secret.call_count, 2)
        core_api.read_namespaced_secret.assert_any_call("backup", "garden")
        secret, cloud, options = new_blob_client.call_args_list[0][0]
        self.assertEqual(secret.metadata.name, "backup")
        self.assertIsNone(cloud)
        self.assertIs(options, self.options)


class TestClose(FactoryTestCase):
    """Test releasing the clients of a factory"""

    def test_close_releases_created_clients(self):
        factory = self.make_factory()
        factory.virtual_network()
        factory.storage_account()

        factory.close()

        self.sdk["NetworkManagementClient"].return_value.close.assert_called_once()
        self.sdk["StorageManagementClient"].return_value.close.assert_called_once()
        self.sdk["ComputeManagementClient"].return_value.close.assert_not_called()
        self.credential.close.assert_called_once()

    def test_clients_recreated_after_close(self):
        factory = self.make_factory()
        first = factory.virtual_network()
        factory.close()

        self.assertIsNot(factory.virtual_network(), first)
        self.assertEqual(self.sdk["NetworkManagementClient"].call_count, 2)

    @patch("azure_infra_client.factory.new_blob_storage_client_from_secret")
    def test_close_releases_blob_clients(self, new_blob_client):
        core_api = Mock()
        core_api.read_namespaced_secret.return_value = storage_secret()
        factory = self.make_factory(core_api=core_api)
        factory.blob_storage(V1SecretReference(name="backup", namespace="garden"))

        factory.close()

        new_blob_client.return_value.close.assert_called_once()

    def test_context_manager(self):
        with self.make_factory() as factory:
            factory.dns_record_set()

        self.sdk["DnsManagementClient"].return_value.close.assert_called_once()
        self.credential.close.assert_called_once()


class TestNewFactoryFromSecretRef(FactoryTestCase):
    """Test creating a factory from a credentials secret"""

    def test_new_factory(self):
        core_api = Mock()
        core_api.read_namespaced_secret.return_value = credentials_secret()
        secret_ref = V1SecretReference(name="cloudprovider", namespace="shoot--dev--a")

        with patch.object(ClientAuth, "get_token_credential") as get_token_credential:
            factory = new_factory_from_secret_ref(core_api, secret_ref, client_options=self.options)

        core_api.read_namespaced_secret.assert_called_once_with("cloudprovider", "shoot--dev--a")
        self.assertEqual(factory.subscription_id, "sub")
        self.assertEqual(factory.auth.client_secret, "secret")
        self.assertIs(factory.core_api, core_api)
        self.assertIs(factory.credential, get_token_credential.return_value)


if __name__ == "__main__":
    unittest.main()
