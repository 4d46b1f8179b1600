"""
Constants shared across the Azure infrastructure client
"""

# Secret data keys
SUBSCRIPTION_ID_KEY = "subscriptionID"
TENANT_ID_KEY = "tenantID"
CLIENT_ID_KEY = "clientID"
CLIENT_SECRET_KEY = "clientSecret"

# Alternate secret data keys accepted for DNS secrets
DNS_SUBSCRIPTION_ID_KEY = "dnsSubscriptionID"
DNS_TENANT_ID_KEY = "dnsTenantID"
DNS_CLIENT_ID_KEY = "dnsClientID"
DNS_CLIENT_SECRET_KEY = "dnsClientSecret"

# Storage secret data keys
STORAGE_ACCOUNT_KEY = "storageAccount"
STORAGE_KEY_KEY = "storageKey"
STORAGE_DOMAIN_KEY = "storageDomain"

# Workload identity
PURPOSE_LABEL = "security.gardener.cloud/purpose"
PURPOSE_WORKLOAD_IDENTITY_TOKEN_REQUESTOR = "workload-identity-token-requestor"
WORKLOAD_IDENTITY_TOKEN_KEY = "token"
WORKLOAD_IDENTITY_CONFIG_KEY = "config"
WORKLOAD_IDENTITY_CONFIG_API_VERSION = "azure.provider.extensions.gardener.cloud/v1alpha1"
WORKLOAD_IDENTITY_CONFIG_KIND = "WorkloadIdentityConfig"

# Blob lifecycle
BLOB_MARKED_FOR_DELETION_TAG_KEY = "marked-for-deletion"
BLOB_DELETION_LIFECYCLE_POLICY_NAME = "delete-marked-blobs"
# Storage service error code for blobs still under an immutability policy
BLOB_IMMUTABLE_DUE_TO_POLICY_ERROR_CODE = "BlobImmutableDueToPolicy"

# Root logger name for the package
LOGGER_NAME = "azure_infra_client"
