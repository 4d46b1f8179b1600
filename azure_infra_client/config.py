"""
Environment-based configuration

Environment variables:
- AZURE_INFRA_CLIENT_MAX_RETRIES: maximum retries per request (default 3)
- AZURE_INFRA_CLIENT_RETRY_DELAY: initial retry delay in seconds (default 5)
- AZURE_INFRA_CLIENT_MAX_RETRY_DELAY: retry delay cap in seconds (default unbounded)
- AZURE_INFRA_CLIENT_CLOUD: cloud name used when none is passed explicitly
- AZURE_INFRA_CLIENT_DEBUG: "true" enables debug logging (see logging_setup)
"""

import os
from typing import Callable, Mapping, Optional, TypeVar

from .client_options import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY,
    DEFAULT_RETRY_DELAY,
    ClientOptions,
)
from .cloud import CloudConfiguration
from .exceptions import InvalidConfigError

ENV_MAX_RETRIES = "AZURE_INFRA_CLIENT_MAX_RETRIES"
ENV_RETRY_DELAY = "AZURE_INFRA_CLIENT_RETRY_DELAY"
ENV_MAX_RETRY_DELAY = "AZURE_INFRA_CLIENT_MAX_RETRY_DELAY"
ENV_CLOUD = "AZURE_INFRA_CLIENT_CLOUD"
ENV_DEBUG = "AZURE_INFRA_CLIENT_DEBUG"

T = TypeVar("T")


def _read(environ: Mapping[str, str], name: str, parse: Callable[[str], T], default: T) -> T:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return parse(raw)
    except ValueError as e:
        raise InvalidConfigError(f"invalid value '{raw}' for {name}: {e}") from e


def client_options_from_env(environ: Optional[Mapping[str, str]] = None) -> ClientOptions:
    """
    Build client options from environment variables

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        ClientOptions with unset variables left at their defaults

    Raises:
        InvalidConfigError: If a variable cannot be parsed
    """
    environ = os.environ if environ is None else environ
    return ClientOptions(
        max_retries=_read(environ, ENV_MAX_RETRIES, int, DEFAULT_MAX_RETRIES),
        initial_retry_delay=_read(environ, ENV_RETRY_DELAY, float, DEFAULT_RETRY_DELAY),
        max_retry_delay=_read(environ, ENV_MAX_RETRY_DELAY, float, DEFAULT_MAX_RETRY_DELAY),
    )


def cloud_configuration_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[CloudConfiguration]:
    """Return the cloud configuration named by AZURE_INFRA_CLIENT_CLOUD, if set."""
    environ = os.environ if environ is None else environ
    name = environ.get(ENV_CLOUD, "").strip()
    if not name:
        return None
    return CloudConfiguration(name=name)


def debug_enabled(environ: Optional[Mapping[str, str]] = None) -> bool:
    environ = os.environ if environ is None else environ
    return environ.get(ENV_DEBUG, "").lower() == "true"
