"""
Shared transport and retry options for Azure clients

All clients produced by a factory share one HTTP session (connection pool,
proxy settings, TLS configuration) and one retry budget. The defaults are built
once per process on first use and can be replaced per factory.
"""

import logging
import socket
import ssl
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

import requests
from azure.core.pipeline.policies import RetryMode, RetryPolicy
from azure.core.pipeline.transport import RequestsTransport
from azure.storage.blob import ExponentialRetry
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection

from .constants import LOGGER_NAME
from .exceptions import InvalidArgumentError

# Retry defaults
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 5.0
DEFAULT_MAX_RETRY_DELAY = float("inf")

RETRIABLE_STATUS_CODES: FrozenSet[int] = frozenset({
    408,  # Request Timeout
    500,  # Internal Server Error
    502,  # Bad Gateway
    503,  # Service Unavailable
    504,  # Gateway Timeout
})

# Transport defaults
DIAL_TIMEOUT = 30
KEEP_ALIVE = 30
READ_TIMEOUT = 300
MAX_CONNECTIONS_PER_HOST = 100
MAX_IDLE_CONNECTIONS = 100


def _keep_alive_socket_options():
    options = list(HTTPConnection.default_socket_options)
    options.append((socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1))
    # Not every platform exposes the TCP keep-alive tuning knobs
    if hasattr(socket, "TCP_KEEPIDLE"):
        options.append((socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, KEEP_ALIVE))
    if hasattr(socket, "TCP_KEEPINTVL"):
        options.append((socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, KEEP_ALIVE))
    return options


class TLS12HTTPAdapter(HTTPAdapter):
    """HTTP adapter enforcing TLS 1.2 or newer and TCP keep-alive"""

    def init_poolmanager(self, *args, **kwargs):
        context = ssl.create_default_context()
        context.minimum_version = ssl.TLSVersion.TLSv1_2
        kwargs["ssl_context"] = context
        kwargs["socket_options"] = _keep_alive_socket_options()
        return super().init_poolmanager(*args, **kwargs)


def build_session() -> requests.Session:
    """
    Build the HTTP session shared by all Azure clients

    The session takes proxies from the environment and caps the pool at
    MAX_CONNECTIONS_PER_HOST connections per host.

    Returns:
        Configured requests session
    """
    session = requests.Session()
    session.trust_env = True
    adapter = TLS12HTTPAdapter(
        pool_connections=MAX_IDLE_CONNECTIONS,
        pool_maxsize=MAX_CONNECTIONS_PER_HOST,
        pool_block=True,
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def build_transport(session: Optional[requests.Session] = None) -> RequestsTransport:
    """
    Wrap a session in an azure-core transport

    The transport does not own the session, so closing one Azure client never
    closes the connections of the others.
    """
    return RequestsTransport(
        session=session or build_session(),
        session_owner=False,
        connection_timeout=DIAL_TIMEOUT,
        read_timeout=READ_TIMEOUT,
    )


class AzureRetryPolicy(RetryPolicy):
    """
    Exponential back-off retry restricted to a fixed set of status codes

    Each delay is initial_retry_delay * 2 ** (attempt - 1), capped at
    max_retry_delay. Transport errors are retried by the base policy.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_retry_delay: float = DEFAULT_RETRY_DELAY,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
        retriable_status_codes: FrozenSet[int] = RETRIABLE_STATUS_CODES,
        **kwargs: Any,
    ):
        self.initial_retry_delay = initial_retry_delay
        self.max_retry_delay = max_retry_delay
        self.retriable_status_codes = frozenset(retriable_status_codes)
        super().__init__(
            retry_total=max_retries,
            retry_connect=max_retries,
            retry_read=max_retries,
            retry_status=max_retries,
            retry_backoff_factor=initial_retry_delay,
            retry_mode=RetryMode.Exponential,
            retry_on_status_codes=list(self.retriable_status_codes),
            **kwargs,
        )

    def is_retry(self, settings, response) -> bool:
        if response.http_response.status_code not in self.retriable_status_codes:
            return False
        return super().is_retry(settings, response)

    def get_backoff_time(self, settings) -> float:
        attempts = max(len(settings["history"]), 1)
        delay = self.initial_retry_delay * (2 ** (attempts - 1))
        return min(delay, self.max_retry_delay)


class BlobRetryPolicy(ExponentialRetry):
    """
    Storage data-plane retry carrying the same budget as AzureRetryPolicy

    Responses are retried only for the shared retriable status codes and the
    delays follow the same capped exponential schedule, without jitter.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_retry_delay: float = DEFAULT_RETRY_DELAY,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
        retriable_status_codes: FrozenSet[int] = RETRIABLE_STATUS_CODES,
        **kwargs: Any,
    ):
        self.initial_retry_delay = initial_retry_delay
        self.max_retry_delay = max_retry_delay
        self.retriable_status_codes = frozenset(retriable_status_codes)
        super().__init__(
            initial_backoff=initial_retry_delay,
            increment_base=2,
            retry_total=max_retries,
            random_jitter_range=0,
            **kwargs,
        )

    def increment(self, settings, request, response=None, error=None) -> bool:
        if error is None and response is not None and response.status_code not in self.retriable_status_codes:
            return False
        return super().increment(settings, request, response=response, error=error)

    def get_backoff_time(self, settings) -> float:
        attempts = max(settings["count"], 1)
        delay = self.initial_retry_delay * (2 ** (attempts - 1))
        return min(delay, self.max_retry_delay)


@dataclass(frozen=True)
class ClientOptions:
    """Retry budget and transport shared by the clients of a factory"""

    max_retries: int = DEFAULT_MAX_RETRIES
    initial_retry_delay: float = DEFAULT_RETRY_DELAY
    max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY
    retriable_status_codes: FrozenSet[int] = RETRIABLE_STATUS_CODES
    transport: Optional[RequestsTransport] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if self.max_retries < 0:
            raise InvalidArgumentError(f"max_retries must not be negative, got {self.max_retries}")
        if self.initial_retry_delay <= 0:
            raise InvalidArgumentError(f"initial_retry_delay must be positive, got {self.initial_retry_delay}")
        if self.max_retry_delay < self.initial_retry_delay:
            raise InvalidArgumentError(
                f"max_retry_delay ({self.max_retry_delay}) must not be smaller than "
                f"initial_retry_delay ({self.initial_retry_delay})"
            )
        unsupported = set(self.retriable_status_codes) - RETRIABLE_STATUS_CODES
        if unsupported:
            raise InvalidArgumentError(f"status codes {sorted(unsupported)} are not retriable")
        if self.transport is None:
            object.__setattr__(self, "transport", build_transport())

    def retry_policy(self) -> AzureRetryPolicy:
        """Create a retry policy carrying this budget."""
        return AzureRetryPolicy(
            max_retries=self.max_retries,
            initial_retry_delay=self.initial_retry_delay,
            max_retry_delay=self.max_retry_delay,
            retriable_status_codes=self.retriable_status_codes,
        )

    def storage_retry_policy(self) -> BlobRetryPolicy:
        """Create a blob storage retry policy carrying this budget."""
        return BlobRetryPolicy(
            max_retries=self.max_retries,
            initial_retry_delay=self.initial_retry_delay,
            max_retry_delay=self.max_retry_delay,
            retriable_status_codes=self.retriable_status_codes,
        )

    def client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments understood by every azure-core based client."""
        return {
            "retry_policy": self.retry_policy(),
            "transport": self.transport,
        }


_default_options: Optional[ClientOptions] = None
_default_options_lock = threading.Lock()


def default_client_options() -> ClientOptions:
    """
    Return the process-wide default client options

    Built from the environment on first use (see config.client_options_from_env).
    """
    global _default_options
    with _default_options_lock:
        if _default_options is None:
            # Imported here because config depends on this module
            from .config import client_options_from_env

            _default_options = client_options_from_env()
            logging.getLogger(f"{LOGGER_NAME}.client_options").debug(
                f"Initialized default client options: {_default_options}"
            )
        return _default_options


def reset_default_client_options() -> None:
    """Forget the process-wide defaults so the next call rebuilds them."""
    global _default_options
    with _default_options_lock:
        _default_options = None
