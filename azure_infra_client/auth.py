"""
Credential resolution for Azure clients

Turns a Kubernetes secret (or a workload identity token file) into a ClientAuth
record and an azure-identity token credential. Two shapes are supported:

- static service principal credentials (client ID and client secret)
- workload identity, where a rotating token is exchanged through a client assertion
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union

import yaml
from azure.core.credentials import TokenCredential
from azure.identity import ClientAssertionCredential, ClientSecretCredential

from .cloud import CloudConfiguration, resolve_cloud_environment
from .constants import (
    CLIENT_ID_KEY,
    CLIENT_SECRET_KEY,
    DNS_CLIENT_ID_KEY,
    DNS_CLIENT_SECRET_KEY,
    DNS_SUBSCRIPTION_ID_KEY,
    DNS_TENANT_ID_KEY,
    LOGGER_NAME,
    PURPOSE_LABEL,
    PURPOSE_WORKLOAD_IDENTITY_TOKEN_REQUESTOR,
    SUBSCRIPTION_ID_KEY,
    TENANT_ID_KEY,
    WORKLOAD_IDENTITY_CONFIG_API_VERSION,
    WORKLOAD_IDENTITY_CONFIG_KEY,
    WORKLOAD_IDENTITY_CONFIG_KIND,
    WORKLOAD_IDENTITY_TOKEN_KEY,
)
from .exceptions import InvalidConfigError, MissingConfigError, MissingFieldError
from .validators import InputValidator

logger = logging.getLogger(f"{LOGGER_NAME}.auth")

TokenRetriever = Callable[[], str]

# (canonical key, DNS alternate key, human readable name)
_STATIC_FIELDS = {
    "subscription_id": (SUBSCRIPTION_ID_KEY, DNS_SUBSCRIPTION_ID_KEY, "subscription ID"),
    "tenant_id": (TENANT_ID_KEY, DNS_TENANT_ID_KEY, "tenant ID"),
    "client_id": (CLIENT_ID_KEY, DNS_CLIENT_ID_KEY, "client ID"),
    "client_secret": (CLIENT_SECRET_KEY, DNS_CLIENT_SECRET_KEY, "client secret"),
}


@dataclass(frozen=True)
class ClientAuth:
    """
    Azure service principal credentials

    Exactly one of client_secret and token_retriever is set. The token retriever
    returns the current federated token and re-reads its source on every call.
    """

    subscription_id: str
    tenant_id: str
    client_id: str
    client_secret: str = field(default="", repr=False)
    token_retriever: Optional[TokenRetriever] = field(default=None, repr=False)

    def __post_init__(self):
        InputValidator.validate_required(self.subscription_id, "subscriptionID", "subscription ID")
        InputValidator.validate_required(self.tenant_id, "tenantID", "tenant ID")
        InputValidator.validate_required(self.client_id, "clientID", "client ID")
        if bool(self.client_secret) == (self.token_retriever is not None):
            raise MissingFieldError(
                "exactly one of client secret and token retriever must be set",
                field=CLIENT_SECRET_KEY,
            )

    @property
    def uses_workload_identity(self) -> bool:
        return self.token_retriever is not None

    def get_token_credential(self, cloud_configuration: Optional[CloudConfiguration] = None) -> TokenCredential:
        """
        Create the token credential for these credentials

        Args:
            cloud_configuration: Cloud whose authority host the credential uses

        Returns:
            ClientAssertionCredential for workload identity, ClientSecretCredential otherwise
        """
        environment = resolve_cloud_environment(cloud_configuration)
        if self.token_retriever is not None:
            return ClientAssertionCredential(
                self.tenant_id,
                self.client_id,
                self.token_retriever,
                authority=environment.authority_host,
            )
        return ClientSecretCredential(
            self.tenant_id,
            self.client_id,
            self.client_secret,
            authority=environment.authority_host,
        )


def _secret_name(secret: Any) -> str:
    metadata = getattr(secret, "metadata", None)
    namespace = getattr(metadata, "namespace", None) or ""
    name = getattr(metadata, "name", None) or ""
    return f"{namespace}/{name}"


def _decode_value(value: Union[str, bytes]) -> bytes:
    if isinstance(value, bytes):
        return value
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidConfigError(f"secret value is not valid base64: {e}") from e


def secret_data(secret: Any) -> Dict[str, bytes]:
    """
    Decode the data of a Kubernetes secret

    The Kubernetes API returns secret values base64 encoded; values that are
    already bytes are taken as they are.

    Args:
        secret: V1Secret (or any object with a ``data`` mapping)

    Returns:
        Mapping from data key to raw bytes
    """
    data = getattr(secret, "data", None) or {}
    return {key: _decode_value(value) for key, value in data.items()}


def _secret_value(secret: Any, key: str) -> Optional[bytes]:
    data = getattr(secret, "data", None) or {}
    if key not in data:
        return None
    return _decode_value(data[key])


def _is_workload_identity(secret: Any) -> bool:
    metadata = getattr(secret, "metadata", None)
    labels = getattr(metadata, "labels", None) or {}
    return labels.get(PURPOSE_LABEL) == PURPOSE_WORKLOAD_IDENTITY_TOKEN_REQUESTOR


def secret_token_retriever(secret: Any) -> TokenRetriever:
    """Token retriever reading the 'token' data key of the secret on every call."""
    def retrieve() -> str:
        token = _secret_value(secret, WORKLOAD_IDENTITY_TOKEN_KEY)
        if token is None:
            raise MissingFieldError(
                f"secret {_secret_name(secret)} doesn't have a '{WORKLOAD_IDENTITY_TOKEN_KEY}' data key",
                field=WORKLOAD_IDENTITY_TOKEN_KEY,
            )
        return token.decode("utf-8")

    return retrieve


def token_file_retriever(path: Union[str, Path]) -> TokenRetriever:
    """Token retriever reading the token file on every call."""
    token_path = Path(path)

    def retrieve() -> str:
        return token_path.read_text(encoding="utf-8").strip()

    return retrieve


def _decode_workload_identity_config(secret: Any, raw: bytes) -> Tuple[str, str, str]:
    try:
        document = yaml.safe_load(raw.decode("utf-8"))
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise InvalidConfigError(
            f"could not decode '{WORKLOAD_IDENTITY_CONFIG_KEY}' as {WORKLOAD_IDENTITY_CONFIG_KIND}: {e}"
        ) from e

    if not isinstance(document, dict):
        raise InvalidConfigError(
            f"could not decode '{WORKLOAD_IDENTITY_CONFIG_KEY}' as {WORKLOAD_IDENTITY_CONFIG_KIND}: "
            f"secret {_secret_name(secret)} holds no mapping"
        )
    if document.get("kind") != WORKLOAD_IDENTITY_CONFIG_KIND or \
            document.get("apiVersion") != WORKLOAD_IDENTITY_CONFIG_API_VERSION:
        raise InvalidConfigError(
            f"could not decode '{WORKLOAD_IDENTITY_CONFIG_KEY}' as {WORKLOAD_IDENTITY_CONFIG_KIND}: "
            f"unexpected apiVersion '{document.get('apiVersion')}' and kind '{document.get('kind')}'"
        )

    values = []
    for key, description in (("clientID", "client ID"), ("tenantID", "tenant ID"), ("subscriptionID", "subscription ID")):
        value = document.get(key)
        if not isinstance(value, str) or not value:
            raise InvalidConfigError(
                f"{WORKLOAD_IDENTITY_CONFIG_KIND} in secret {_secret_name(secret)} doesn't have a {description}"
            )
        values.append(value)
    client_id, tenant_id, subscription_id = values
    return client_id, tenant_id, subscription_id


def _workload_identity_auth(secret: Any) -> ClientAuth:
    raw_config = _secret_value(secret, WORKLOAD_IDENTITY_CONFIG_KEY)
    if raw_config is not None:
        client_id, tenant_id, subscription_id = _decode_workload_identity_config(secret, raw_config)
    else:
        ids = {}
        for attribute, key, description in (
            ("subscription_id", SUBSCRIPTION_ID_KEY, "subscription ID"),
            ("tenant_id", TENANT_ID_KEY, "tenant ID"),
            ("client_id", CLIENT_ID_KEY, "client ID"),
        ):
            value = _secret_value(secret, key)
            if not value:
                raise MissingConfigError(
                    f"secret \"{_secret_name(secret)}\" is missing a '{WORKLOAD_IDENTITY_CONFIG_KEY}' data key "
                    f"and doesn't have a {description}",
                    field=key,
                )
            ids[attribute] = value.decode("utf-8")
        client_id, tenant_id, subscription_id = ids["client_id"], ids["tenant_id"], ids["subscription_id"]

    logger.debug(f"Resolved workload identity credentials from secret {_secret_name(secret)}")
    return ClientAuth(
        subscription_id=subscription_id,
        tenant_id=tenant_id,
        client_id=client_id,
        token_retriever=secret_token_retriever(secret),
    )


def _static_auth(secret: Any, allow_dns_keys: bool) -> ClientAuth:
    values = {}
    for attribute, (key, dns_key, description) in _STATIC_FIELDS.items():
        value = _secret_value(secret, key)
        if value is None and allow_dns_keys:
            value = _secret_value(secret, dns_key)
        if value is None:
            raise MissingFieldError(
                f"secret {_secret_name(secret)} is missing {description} (data key '{key}')",
                field=key,
            )
        values[attribute] = value.decode("utf-8")

    logger.debug(f"Resolved static credentials from secret {_secret_name(secret)}")
    return ClientAuth(**values)


def new_client_auth_from_secret(secret: Any, allow_dns_keys: bool = False) -> ClientAuth:
    """
    Read client credentials from a secret

    Args:
        secret: V1Secret holding the credentials
        allow_dns_keys: Whether the dns* alternate keys may stand in for missing canonical keys

    Returns:
        ClientAuth; workload identity secrets yield a token retriever and no client secret

    Raises:
        MissingFieldError: If a required value is missing
        MissingConfigError: If a workload identity secret has neither config nor ID keys
        InvalidConfigError: If the workload identity config cannot be decoded
    """
    if _is_workload_identity(secret):
        return _workload_identity_auth(secret)
    return _static_auth(secret, allow_dns_keys)


def get_client_auth_data(core_api: Any, secret_ref: Any, allow_dns_keys: bool = False) -> ClientAuth:
    """
    Load the referenced secret and read client credentials from it

    Args:
        core_api: kubernetes CoreV1Api used to read the secret
        secret_ref: V1SecretReference (anything with name and namespace)
        allow_dns_keys: Whether the dns* alternate keys are accepted

    Returns:
        ClientAuth read from the secret
    """
    secret = core_api.read_namespaced_secret(secret_ref.name, secret_ref.namespace)
    return new_client_auth_from_secret(secret, allow_dns_keys)


def new_client_auth_from_token_file(
    path: Union[str, Path],
    client_id: str,
    tenant_id: str,
    subscription_id: str,
) -> ClientAuth:
    """Create workload identity credentials backed by a projected token file."""
    return ClientAuth(
        subscription_id=subscription_id,
        tenant_id=tenant_id,
        client_id=client_id,
        token_retriever=token_file_retriever(path),
    )
