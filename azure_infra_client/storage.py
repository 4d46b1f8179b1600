"""
Typed clients for azure-mgmt-storage: storage accounts, blob containers and
lifecycle management policies
"""

import threading
from typing import Any, Optional, Tuple

from azure.mgmt.storage.models import (
    BlobContainer,
    DateAfterModification,
    ImmutabilityPolicy,
    ManagementPolicy,
    ManagementPolicyAction,
    ManagementPolicyBaseBlob,
    ManagementPolicyDefinition,
    ManagementPolicyFilter,
    ManagementPolicyName,
    ManagementPolicyRule,
    ManagementPolicySchema,
    Sku,
    StorageAccountCreateParameters,
    StorageAccountRegenerateKeyParameters,
    TagFilter,
)

from .constants import BLOB_DELETION_LIFECYCLE_POLICY_NAME, BLOB_MARKED_FOR_DELETION_TAG_KEY
from .errors import filter_not_found
from .exceptions import InvalidArgumentError, StorageKeyNotFoundError
from .lro import BaseClient

# Storage account defaults
STORAGE_ACCOUNT_KIND = "BlobStorage"
STORAGE_ACCOUNT_SKU = "Standard_LRS"
STORAGE_ACCOUNT_ACCESS_TIER = "Cool"
STORAGE_ACCOUNT_MIN_TLS_VERSION = "TLS1_2"

IMMUTABILITY_POLICY_STATE_LOCKED = "Locked"


class StorageAccountClient(BaseClient):
    """Storage accounts (storage_client.storage_accounts)"""

    resource_type = "storage account"

    def create_storage_account(
        self,
        resource_group_name: str,
        name: str,
        region: str,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Any:
        """
        Create a blob storage account and wait until it is provisioned

        The account is a Standard_LRS BlobStorage account in the Cool tier that
        only accepts HTTPS with TLS 1.2 or newer and forbids public blob access.

        Returns:
            The created StorageAccount
        """
        self._validate_names(resource_group_name=resource_group_name, name=name, region=region)
        parameters = StorageAccountCreateParameters(
            sku=Sku(name=STORAGE_ACCOUNT_SKU),
            kind=STORAGE_ACCOUNT_KIND,
            location=region,
            access_tier=STORAGE_ACCOUNT_ACCESS_TIER,
            enable_https_traffic_only=True,
            allow_blob_public_access=False,
            minimum_tls_version=STORAGE_ACCOUNT_MIN_TLS_VERSION,
        )
        result = self._run(
            self._operations.begin_create,
            f"create storage account {resource_group_name}/{name}",
            resource_group_name,
            name,
            parameters,
            timeout=timeout,
            cancel_event=cancel_event,
        )
        self.logger.info(f"Created storage account {resource_group_name}/{name} in {region}")
        return result

    def get(self, resource_group_name: str, name: str) -> Optional[Any]:
        """Get a storage account, or None if it does not exist."""
        self._validate_names(resource_group_name=resource_group_name, name=name)
        return self._get_if_exists(self._operations.get_properties, resource_group_name, name)

    def delete(self, resource_group_name: str, name: str) -> None:
        """Delete a storage account if it exists."""
        self._validate_names(resource_group_name=resource_group_name, name=name)
        try:
            self._operations.delete(resource_group_name, name)
        except Exception as e:
            if filter_not_found(e) is not None:
                raise
            self.logger.warning(f"Storage account {resource_group_name}/{name} does not exist, nothing to delete")
            return
        self.logger.info(f"Deleted storage account {resource_group_name}/{name}")

    def list_storage_account_key(self, resource_group_name: str, name: str) -> str:
        """
        Return the first access key of a storage account

        Raises:
            StorageKeyNotFoundError: If Azure returns no keys
        """
        self._validate_names(resource_group_name=resource_group_name, name=name)
        response = self._operations.list_keys(resource_group_name, name, expand="kerb")
        keys = response.keys or []
        if not keys:
            raise StorageKeyNotFoundError(
                f"could not list keys as less than one key exists for storage account {name}"
            )
        return keys[0].value

    def rotate_key(self, resource_group_name: str, name: str, key_name: str) -> Any:
        """
        Regenerate one access key of a storage account

        Args:
            resource_group_name: Resource group of the account
            name: Storage account name
            key_name: Key to regenerate ("key1" or "key2")

        Returns:
            The regenerated StorageAccountKey

        Raises:
            StorageKeyNotFoundError: If the regenerated key is not part of the response
        """
        self._validate_names(resource_group_name=resource_group_name, name=name, key_name=key_name)
        response = self._operations.regenerate_key(
            resource_group_name,
            name,
            StorageAccountRegenerateKeyParameters(key_name=key_name),
        )
        for key in response.keys or []:
            if key.key_name == key_name:
                self.logger.info(f"Rotated key {key_name} of storage account {resource_group_name}/{name}")
                return key
        raise StorageKeyNotFoundError(f"key {key_name} of storage account {name} was not returned after rotation")


class BlobContainersClient(BaseClient):
    """
    Blob containers managed through the resource manager (storage_client.blob_containers)

    Immutability policy writes are guarded by the policy etag: create returns
    it; extend, lock and delete require it.
    """

    resource_type = "blob container"

    def get_container(self, resource_group_name: str, account_name: str, container_name: str) -> Optional[Any]:
        """Get a container, or None if it does not exist."""
        self._validate_names(
            resource_group_name=resource_group_name, account_name=account_name, container_name=container_name
        )
        return self._get_if_exists(self._operations.get, resource_group_name, account_name, container_name)

    def create_container(self, resource_group_name: str, account_name: str, container_name: str) -> Any:
        self._validate_names(
            resource_group_name=resource_group_name, account_name=account_name, container_name=container_name
        )
        result = self._operations.create(resource_group_name, account_name, container_name, BlobContainer())
        self.logger.info(f"Created blob container {account_name}/{container_name}")
        return result

    def delete_container(self, resource_group_name: str, account_name: str, container_name: str) -> None:
        """
        Delete a container if it exists

        A container with an immutability policy can only be deleted once it is empty.
        """
        self._validate_names(
            resource_group_name=resource_group_name, account_name=account_name, container_name=container_name
        )
        try:
            self._operations.delete(resource_group_name, account_name, container_name)
        except Exception as e:
            if filter_not_found(e) is not None:
                raise
            self.logger.warning(f"Blob container {account_name}/{container_name} does not exist, nothing to delete")
            return
        self.logger.info(f"Deleted blob container {account_name}/{container_name}")

    def get_immutability_policy(
        self, resource_group_name: str, account_name: str, container_name: str
    ) -> Tuple[Optional[int], bool, Optional[str]]:
        """
        Read the immutability policy of a container

        Returns:
            (immutability period in days, whether the policy is locked, policy etag);
            (None, False, None) when the container carries no policy state
        """
        self._validate_names(
            resource_group_name=resource_group_name, account_name=account_name, container_name=container_name
        )
        policy = self._operations.get_immutability_policy(resource_group_name, account_name, container_name)
        if policy is None or policy.state is None:
            return None, False, None
        return (
            policy.immutability_period_since_creation_in_days,
            policy.state == IMMUTABILITY_POLICY_STATE_LOCKED,
            policy.etag,
        )

    def create_or_update_immutability_policy(
        self,
        resource_group_name: str,
        account_name: str,
        container_name: str,
        immutability_period_days: int,
    ) -> Optional[str]:
        """
        Create or update an unlocked immutability policy

        Returns:
            Etag of the stored policy
        """
        self._validate_names(
            resource_group_name=resource_group_name, account_name=account_name, container_name=container_name
        )
        policy = self._operations.create_or_update_immutability_policy(
            resource_group_name,
            account_name,
            container_name,
            parameters=_immutability_policy(immutability_period_days),
        )
        self.logger.info(
            f"Set immutability policy of {account_name}/{container_name} to {immutability_period_days} day(s)"
        )
        return policy.etag

    def extend_immutability_policy(
        self,
        resource_group_name: str,
        account_name: str,
        container_name: str,
        immutability_period_days: int,
        etag: str,
    ) -> None:
        """Extend a locked immutability policy; only valid on locked policies."""
        self._validate_names(
            resource_group_name=resource_group_name, account_name=account_name, container_name=container_name
        )
        _require_etag(etag)
        self._operations.extend_immutability_policy(
            resource_group_name,
            account_name,
            container_name,
            etag,
            parameters=_immutability_policy(immutability_period_days),
        )
        self.logger.info(
            f"Extended immutability policy of {account_name}/{container_name} to {immutability_period_days} day(s)"
        )

    def lock_immutability_policy(
        self, resource_group_name: str, account_name: str, container_name: str, etag: str
    ) -> None:
        """Lock an unlocked immutability policy. Locking cannot be undone."""
        self._validate_names(
            resource_group_name=resource_group_name, account_name=account_name, container_name=container_name
        )
        _require_etag(etag)
        self._operations.lock_immutability_policy(resource_group_name, account_name, container_name, etag)
        self.logger.info(f"Locked immutability policy of {account_name}/{container_name}")

    def delete_immutability_policy(
        self, resource_group_name: str, account_name: str, container_name: str, etag: str
    ) -> None:
        """Delete an unlocked immutability policy."""
        self._validate_names(
            resource_group_name=resource_group_name, account_name=account_name, container_name=container_name
        )
        _require_etag(etag)
        self._operations.delete_immutability_policy(resource_group_name, account_name, container_name, etag)
        self.logger.info(f"Deleted immutability policy of {account_name}/{container_name}")


def _immutability_policy(days: int) -> ImmutabilityPolicy:
    return ImmutabilityPolicy(
        immutability_period_since_creation_in_days=days,
        allow_protected_append_writes=False,
        allow_protected_append_writes_all=False,
    )


def _require_etag(etag: Optional[str]) -> None:
    if not etag:
        raise InvalidArgumentError("an immutability policy etag is required")


class ManagementPoliciesClient(BaseClient):
    """Lifecycle management policies of storage accounts (storage_client.management_policies)"""

    resource_type = "management policy"

    def create_or_update(self, resource_group_name: str, account_name: str, days_after_creation: int) -> Any:
        """
        Install the lifecycle rule deleting blobs marked for deletion

        Block blobs tagged with BLOB_MARKED_FOR_DELETION_TAG_KEY == "true" are
        deleted days_after_creation days after their creation. The default
        policy of the account is replaced, existing rules are not kept.
        """
        self._validate_names(resource_group_name=resource_group_name, account_name=account_name)
        rule = ManagementPolicyRule(
            name=BLOB_DELETION_LIFECYCLE_POLICY_NAME,
            type="Lifecycle",
            enabled=True,
            definition=ManagementPolicyDefinition(
                actions=ManagementPolicyAction(
                    base_blob=ManagementPolicyBaseBlob(
                        delete=DateAfterModification(days_after_creation_greater_than=float(days_after_creation)),
                    ),
                ),
                filters=ManagementPolicyFilter(
                    blob_types=["blockBlob"],
                    prefix_match=[""],
                    blob_index_match=[
                        TagFilter(name=BLOB_MARKED_FOR_DELETION_TAG_KEY, op="==", value="true"),
                    ],
                ),
            ),
        )
        result = self._operations.create_or_update(
            resource_group_name,
            account_name,
            ManagementPolicyName.DEFAULT,
            ManagementPolicy(policy=ManagementPolicySchema(rules=[rule])),
        )
        self.logger.info(
            f"Installed lifecycle policy on {account_name} deleting marked blobs after {days_after_creation} day(s)"
        )
        return result
