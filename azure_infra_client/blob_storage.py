"""
Blob storage data-plane client authenticated with a storage account shared key

Unlike the management clients, this client talks to the blob endpoint of one
storage account (https://<account>.<blobStorageDomain>) and is configured from
the storageAccount/storageKey fields of a secret.
"""

import logging
from typing import Any, Optional

from azure.core.credentials import AzureNamedKeyCredential
from azure.core.exceptions import HttpResponseError
from azure.storage.blob import BlobServiceClient, StorageErrorCode

from .auth import secret_data
from .client_options import ClientOptions, default_client_options
from .cloud import CloudConfiguration, resolve_cloud_environment
from .config import cloud_configuration_from_env
from .constants import (
    BLOB_IMMUTABLE_DUE_TO_POLICY_ERROR_CODE,
    BLOB_MARKED_FOR_DELETION_TAG_KEY,
    LOGGER_NAME,
    STORAGE_ACCOUNT_KEY,
    STORAGE_DOMAIN_KEY,
    STORAGE_KEY_KEY,
)
from .exceptions import MissingFieldError
from .validators import InputValidator


def _error_code(error: HttpResponseError) -> Optional[str]:
    return getattr(error, "error_code", None)


class BlobStorageClient:
    """
    Container scoped blob operations

    Every operation is idempotent: creating an existing container, deleting a
    missing container or a missing blob all succeed.
    """

    def __init__(self, service_client: BlobServiceClient):
        """
        Initialize blob storage client

        Args:
            service_client: BlobServiceClient of the storage account
        """
        self.service_client = service_client
        self.logger = logging.getLogger(f"{LOGGER_NAME}.BlobStorageClient")

    def create_container_if_not_exists(self, container: str) -> None:
        InputValidator.validate_resource_name(container, "container")
        try:
            self.service_client.create_container(container)
        except HttpResponseError as e:
            if _error_code(e) != StorageErrorCode.CONTAINER_ALREADY_EXISTS:
                raise
            self.logger.debug(f"Container {container} already exists")
            return
        self.logger.info(f"Created container {container}")

    def delete_container_if_exists(self, container: str) -> None:
        """Delete a container; a missing container or one being deleted counts as success."""
        InputValidator.validate_resource_name(container, "container")
        try:
            self.service_client.delete_container(container)
        except HttpResponseError as e:
            if _error_code(e) not in (StorageErrorCode.CONTAINER_NOT_FOUND, StorageErrorCode.CONTAINER_BEING_DELETED):
                raise
            self.logger.warning(f"Container {container} does not exist or is being deleted")
            return
        self.logger.info(f"Deleted container {container}")

    def delete_objects_with_prefix(self, container: str, prefix: str) -> None:
        """
        Delete every blob whose name starts with prefix, including snapshots

        Blobs protected by an immutability policy cannot be deleted yet. They are
        tagged with BLOB_MARKED_FOR_DELETION_TAG_KEY=true instead, so the storage
        account lifecycle policy removes them once the policy permits it.

        Args:
            container: Container holding the blobs
            prefix: Blob name prefix; an empty prefix matches every blob
        """
        InputValidator.validate_resource_name(container, "container")
        container_client = self.service_client.get_container_client(container)
        deleted = 0
        marked = 0
        for blob in container_client.list_blobs(name_starts_with=prefix, include=["deleted"]):
            if self._delete_blob_if_exists(container_client, blob.name):
                deleted += 1
            else:
                marked += 1
        self.logger.debug(
            f"Processed blobs with prefix '{prefix}' in {container}: {deleted} deleted, {marked} marked for deletion"
        )

    def _delete_blob_if_exists(self, container_client: Any, blob_name: str) -> bool:
        """Delete one blob; returns False if it was tagged for deferred deletion instead."""
        try:
            container_client.delete_blob(blob_name, delete_snapshots="include")
        except HttpResponseError as e:
            code = _error_code(e)
            if code == StorageErrorCode.BLOB_NOT_FOUND:
                return True
            if code != BLOB_IMMUTABLE_DUE_TO_POLICY_ERROR_CODE:
                raise
            container_client.get_blob_client(blob_name).set_blob_tags({BLOB_MARKED_FOR_DELETION_TAG_KEY: "true"})
            self.logger.warning(
                f"Blob {blob_name} is protected by an immutability policy, marked it for deletion instead"
            )
            return False
        return True

    def close(self) -> None:
        self.service_client.close()


def new_blob_storage_client_from_secret(
    secret: Any,
    cloud_configuration: Optional[CloudConfiguration] = None,
    client_options: Optional[ClientOptions] = None,
) -> BlobStorageClient:
    """
    Create a blob storage client from the storage fields of a secret

    Args:
        secret: V1Secret with storageAccount, storageKey and optional storageDomain
        cloud_configuration: Cloud providing the default blob storage domain;
            AZURE_INFRA_CLIENT_CLOUD or AzurePublic when omitted
        client_options: Retry budget and transport; process defaults when omitted

    Returns:
        BlobStorageClient for https://<storageAccount>.<domain>

    Raises:
        MissingFieldError: If storageAccount or storageKey is missing
    """
    data = secret_data(secret)
    metadata = getattr(secret, "metadata", None)
    secret_name = f"{getattr(metadata, 'namespace', '')}/{getattr(metadata, 'name', '')}"

    account = data.get(STORAGE_ACCOUNT_KEY)
    if not account:
        raise MissingFieldError(f"secret {secret_name} doesn't have a storage account", field=STORAGE_ACCOUNT_KEY)
    key = data.get(STORAGE_KEY_KEY)
    if not key:
        raise MissingFieldError(f"secret {secret_name} doesn't have a storage key", field=STORAGE_KEY_KEY)

    domain = data.get(STORAGE_DOMAIN_KEY)
    if domain:
        domain = domain.decode("utf-8")
    else:
        cloud = cloud_configuration or cloud_configuration_from_env()
        domain = resolve_cloud_environment(cloud).blob_storage_domain

    options = client_options or default_client_options()
    account_name = account.decode("utf-8")
    account_url = f"https://{account_name}.{domain}"
    service_client = BlobServiceClient(
        account_url=account_url,
        credential=AzureNamedKeyCredential(account_name, key.decode("utf-8")),
        retry_policy=options.storage_retry_policy(),
        transport=options.transport,
    )
    logging.getLogger(f"{LOGGER_NAME}.blob_storage").info(f"Created blob storage client for {account_url}")
    return BlobStorageClient(service_client)
