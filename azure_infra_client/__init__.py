"""Azure infrastructure client - credential resolution, client factory and long-running operation wrappers"""

from .__version__ import __version__
from .auth import (
    ClientAuth,
    get_client_auth_data,
    new_client_auth_from_secret,
    new_client_auth_from_token_file,
    secret_data,
    token_file_retriever,
)
from .blob_storage import BlobStorageClient, new_blob_storage_client_from_secret
from .client_options import ClientOptions, default_client_options
from .cloud import CloudConfiguration, CloudEnvironment, resolve_cloud_environment
from .dns import relative_record_set_name, resource_group_from_zone_resource_id, split_zone_id, zone_id
from .errors import ErrorKind, classify_error, filter_not_found, is_not_found, is_transient, is_unauthorized
from .exceptions import (
    AzureClientError,
    InvalidArgumentError,
    InvalidConfigError,
    InvalidZoneIDError,
    MissingConfigError,
    MissingFieldError,
    OperationCancelledError,
    OperationFailedError,
    OperationTimeoutError,
    StorageKeyNotFoundError,
    UnknownCloudConfigurationError,
    UnsupportedRecordTypeError,
    ZoneMismatchError,
)
from .factory import AzureClientFactory, new_factory_from_secret_ref
from .logging_setup import setup_logging

__all__ = [
    "__version__",
    "AzureClientFactory",
    "new_factory_from_secret_ref",
    "setup_logging",
    "ClientAuth",
    "get_client_auth_data",
    "new_client_auth_from_secret",
    "new_client_auth_from_token_file",
    "secret_data",
    "token_file_retriever",
    "BlobStorageClient",
    "new_blob_storage_client_from_secret",
    "ClientOptions",
    "default_client_options",
    "CloudConfiguration",
    "CloudEnvironment",
    "resolve_cloud_environment",
    "zone_id",
    "split_zone_id",
    "relative_record_set_name",
    "resource_group_from_zone_resource_id",
    "ErrorKind",
    "classify_error",
    "filter_not_found",
    "is_not_found",
    "is_transient",
    "is_unauthorized",
    "AzureClientError",
    "InvalidArgumentError",
    "InvalidConfigError",
    "InvalidZoneIDError",
    "MissingConfigError",
    "MissingFieldError",
    "OperationCancelledError",
    "OperationFailedError",
    "OperationTimeoutError",
    "StorageKeyNotFoundError",
    "UnknownCloudConfigurationError",
    "UnsupportedRecordTypeError",
    "ZoneMismatchError",
]
