"""
Unit tests for client_options module
"""

import ssl
import unittest
from unittest.mock import Mock, patch

from azure.core.pipeline.transport import RequestsTransport

from azure_infra_client import client_options
from azure_infra_client.client_options import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY,
    MAX_CONNECTIONS_PER_HOST,
    RETRIABLE_STATUS_CODES,
    AzureRetryPolicy,
    BlobRetryPolicy,
    ClientOptions,
    TLS12HTTPAdapter,
    build_session,
    build_transport,
    default_client_options,
    reset_default_client_options,
)
from azure_infra_client.exceptions import InvalidArgumentError


def pipeline_response(status):
    response = Mock()
    response.http_request.method = "GET"
    response.http_response.status_code = status
    response.http_response.headers = {}
    return response


class TestClientOptions(unittest.TestCase):
    """Test client option defaults and validation"""

    def test_defaults(self):
        options = ClientOptions(transport=Mock())
        self.assertEqual(options.max_retries, 3)
        self.assertEqual(options.initial_retry_delay, 5.0)
        self.assertEqual(options.max_retry_delay, float("inf"))
        self.assertEqual(options.retriable_status_codes, frozenset({408, 500, 502, 503, 504}))

    def test_transport_built_when_missing(self):
        options = ClientOptions()
        self.assertIsInstance(options.transport, RequestsTransport)

    def test_invalid_values(self):
        with self.assertRaises(InvalidArgumentError):
            ClientOptions(max_retries=-1, transport=Mock())
        with self.assertRaises(InvalidArgumentError):
            ClientOptions(initial_retry_delay=0, transport=Mock())
        with self.assertRaises(InvalidArgumentError):
            ClientOptions(initial_retry_delay=10, max_retry_delay=5, transport=Mock())
        with self.assertRaises(InvalidArgumentError):
            ClientOptions(retriable_status_codes=frozenset({429}), transport=Mock())

    def test_client_kwargs(self):
        transport = Mock()
        options = ClientOptions(max_retries=2, transport=transport)
        kwargs = options.client_kwargs()

        self.assertIs(kwargs["transport"], transport)
        self.assertIsInstance(kwargs["retry_policy"], AzureRetryPolicy)
        self.assertEqual(kwargs["retry_policy"].total_retries, 2)


class TestAzureRetryPolicy(unittest.TestCase):
    """Test retry decisions and back-off"""

    def test_only_retriable_statuses_are_retried(self):
        policy = AzureRetryPolicy()
        settings = policy.configure_retries({})

        for status in sorted(RETRIABLE_STATUS_CODES):
            self.assertTrue(policy.is_retry(settings, pipeline_response(status)), status)
        for status in (200, 404, 429, 501, 505):
            self.assertFalse(policy.is_retry(settings, pipeline_response(status)), status)

    def test_attempt_budget(self):
        policy = AzureRetryPolicy(max_retries=DEFAULT_MAX_RETRIES)
        settings = policy.configure_retries({})
        self.assertEqual(settings["total"], DEFAULT_MAX_RETRIES)

    def test_backoff_is_exponential_from_initial_delay(self):
        policy = AzureRetryPolicy(initial_retry_delay=DEFAULT_RETRY_DELAY)
        delays = [policy.get_backoff_time({"history": [None] * attempts}) for attempts in (1, 2, 3)]
        self.assertEqual(delays, [5.0, 10.0, 20.0])

    def test_backoff_is_capped(self):
        policy = AzureRetryPolicy(initial_retry_delay=5, max_retry_delay=8)
        for attempts in range(1, 6):
            delay = policy.get_backoff_time({"history": [None] * attempts})
            self.assertGreaterEqual(delay, 5)
            self.assertLessEqual(delay, 8)


class TestBlobRetryPolicy(unittest.TestCase):
    """Test the blob storage retry policy built from client options"""

    def setUp(self):
        self.options = ClientOptions(max_retries=3, initial_retry_delay=1, max_retry_delay=2, transport=Mock())

    def test_backoff_is_capped(self):
        policy = self.options.storage_retry_policy()

        self.assertIsInstance(policy, BlobRetryPolicy)
        self.assertEqual(policy.total_retries, 3)
        self.assertEqual([policy.get_backoff_time({"count": n}) for n in (1, 2, 3)], [1, 2, 2])

    @patch("azure.storage.blob.ExponentialRetry.increment", return_value=True)
    def test_only_retriable_statuses_are_retried(self, base_increment):
        policy = self.options.storage_retry_policy()

        self.assertFalse(policy.increment({}, Mock(), response=Mock(status_code=409)))
        base_increment.assert_not_called()

        self.assertTrue(policy.increment({}, Mock(), response=Mock(status_code=503)))
        self.assertTrue(policy.increment({}, Mock(), error=Exception("connection reset")))
        self.assertEqual(base_increment.call_count, 2)


class TestTransport(unittest.TestCase):
    """Test the shared HTTP session"""

    def test_session_uses_tls12_adapter(self):
        session = build_session()
        adapter = session.get_adapter("https://management.azure.com/")

        self.assertIsInstance(adapter, TLS12HTTPAdapter)
        self.assertTrue(session.trust_env)
        self.assertEqual(adapter._pool_maxsize, MAX_CONNECTIONS_PER_HOST)

    def test_adapter_minimum_tls_version(self):
        adapter = build_session().get_adapter("https://management.azure.com/")
        context = adapter.poolmanager.connection_pool_kw["ssl_context"]
        self.assertEqual(context.minimum_version, ssl.TLSVersion.TLSv1_2)

    def test_transport_does_not_own_session(self):
        session = build_session()
        transport = build_transport(session)

        self.assertIs(transport.session, session)
        self.assertFalse(transport._session_owner)


class TestDefaultClientOptions(unittest.TestCase):
    """Test the process-wide defaults"""

    def setUp(self):
        reset_default_client_options()

    def tearDown(self):
        reset_default_client_options()

    def test_built_once(self):
        with patch("azure_infra_client.config.client_options_from_env") as from_env:
            from_env.return_value = ClientOptions(transport=Mock())
            first = default_client_options()
            second = default_client_options()

        self.assertIs(first, second)
        from_env.assert_called_once_with()

    def test_reset(self):
        with patch("azure_infra_client.config.client_options_from_env") as from_env:
            from_env.side_effect = [ClientOptions(transport=Mock()), ClientOptions(transport=Mock())]
            first = default_client_options()
            client_options.reset_default_client_options()
            second = default_client_options()

        self.assertIsNot(first, second)


if __name__ == "__main__":
    unittest.main()
