"""
Unit tests for network clients
"""

import unittest
from unittest.mock import Mock

from azure.core.exceptions import HttpResponseError

from azure_infra_client.exceptions import InvalidArgumentError
from azure_infra_client.network import (
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


class DetailedError(Exception):
    def __init__(self, status_code=None, response=None):
        super().__init__("detailed error")
        self.status_code = status_code
        self.response = response


class CallError(Exception):
    def __init__(self, resp):
        super().__init__("call error")
        self.resp = resp


def response_error(status):
    error = HttpResponseError(message=f"status {status}")
    error.status_code = status
    return error


class TestTopLevelNetworkClients(unittest.TestCase):
    """Test resource group scoped network clients"""

    CLIENT_CLASSES = [
        VirtualNetworkClient,
        RouteTablesClient,
        NatGatewayClient,
        PublicIPClient,
        SecurityGroupClient,
        NetworkInterfaceClient,
        LoadBalancerClient,
    ]

    def test_delete_is_idempotent_for_every_error_shape(self):
        """Deleting a missing resource succeeds whichever error shape reports the 404"""
        errors = [
            response_error(404),
            DetailedError(status_code=404),
            DetailedError(response=Mock(status_code=404)),
            CallError(Mock(status_code=404)),
        ]
        for client_class in self.CLIENT_CLASSES:
            for error in errors:
                operations = Mock()
                operations.begin_delete.side_effect = error
                client = client_class(operations, "sub")

                client.delete("rg", "name")

                operations.begin_delete.assert_called_once_with("rg", "name")

    def test_get_returns_none_when_missing(self):
        for client_class in self.CLIENT_CLASSES:
            operations = Mock()
            operations.get.side_effect = response_error(404)
            self.assertIsNone(client_class(operations, "sub").get("rg", "name"))

    def test_logger_named_after_client(self):
        client = VirtualNetworkClient(Mock(), "sub")
        self.assertEqual(client.logger.name, "azure_infra_client.VirtualNetworkClient")
        self.assertEqual(client.subscription_id, "sub")

    def test_virtual_network_get_with_expand(self):
        operations = Mock()
        client = VirtualNetworkClient(operations, "sub")

        client.get("rg", "vnet", expand="subnets/ipConfigurations")

        operations.get.assert_called_once_with("rg", "vnet", expand="subnets/ipConfigurations")

    def test_public_ip_list(self):
        operations = Mock()
        operations.list.return_value = iter(["ip1", "ip2", "ip3"])

        self.assertEqual(PublicIPClient(operations, "sub").list("rg"), ["ip1", "ip2", "ip3"])


class TestSubnetClient(unittest.TestCase):
    """Test subnets inside a virtual network"""

    def setUp(self):
        self.operations = Mock()
        self.client = SubnetClient(self.operations, "sub")

    def test_get(self):
        self.operations.get.return_value = "subnet"
        self.assertEqual(self.client.get("rg", "vnet", "nodes"), "subnet")
        self.operations.get.assert_called_once_with("rg", "vnet", "nodes")

    def test_list(self):
        self.operations.list.return_value = iter(["nodes", "pods"])
        self.assertEqual(self.client.list("rg", "vnet"), ["nodes", "pods"])

    def test_delete_missing(self):
        self.operations.begin_delete.side_effect = response_error(404)
        self.client.delete("rg", "vnet", "nodes")


class TestBackendAddressPoolClient(unittest.TestCase):

    def test_create_or_update(self):
        operations = Mock()
        poller = Mock()
        poller.done.return_value = True
        poller.result.return_value = "pool"
        operations.begin_create_or_update.return_value = poller
        client = BackendAddressPoolClient(operations, "sub")

        self.assertEqual(client.create_or_update("rg", "lb", "pool", {}), "pool")
        operations.begin_create_or_update.assert_called_once_with("rg", "lb", "pool", {})

    def test_get_rejects_expand(self):
        operations = Mock()

        with self.assertRaises(InvalidArgumentError):
            BackendAddressPoolClient(operations, "sub").get("rg", "lb", "pool", expand="backendIPConfigurations")
        operations.get.assert_not_called()


class TestFrontendIPConfigurationClient(unittest.TestCase):
    """Test read-only frontend IP configuration access"""

    def setUp(self):
        self.operations = Mock()
        self.client = FrontendIPConfigurationClient(self.operations, "sub")

    def test_get(self):
        self.operations.get.return_value = "frontend"
        self.assertEqual(self.client.get("rg", "lb", "frontend"), "frontend")
        self.operations.get.assert_called_once_with("rg", "lb", "frontend")

    def test_get_missing(self):
        self.operations.get.side_effect = CallError(Mock(status_code=404))
        self.assertIsNone(self.client.get("rg", "lb", "frontend"))

    def test_list(self):
        self.operations.list.return_value = iter(["f1"])
        self.assertEqual(self.client.list("rg", "lb"), ["f1"])
        self.operations.list.assert_called_once_with("rg", "lb")


if __name__ == "__main__":
    unittest.main()
