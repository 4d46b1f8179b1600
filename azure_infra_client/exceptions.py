"""
Custom exceptions for standardized error handling
"""

from typing import Optional


class AzureClientError(Exception):
    """Base exception for the Azure infrastructure client"""


class InvalidArgumentError(AzureClientError, ValueError):
    """Input was malformed or incomplete"""


class MissingFieldError(InvalidArgumentError):
    """A required credential field is missing"""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class MissingConfigError(MissingFieldError):
    """Workload identity secret has neither a 'config' data key nor the ID keys"""


class InvalidConfigError(InvalidArgumentError):
    """A configuration document or value could not be decoded"""


class UnknownCloudConfigurationError(InvalidArgumentError):
    """Cloud configuration name is not one of the known Azure clouds"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown cloud configuration name '{name}'")


class InvalidZoneIDError(InvalidArgumentError):
    """Zone ID is not of the form <resourceGroup>/<zoneName>"""


class ZoneMismatchError(InvalidArgumentError):
    """Record name does not belong to the zone"""


class UnsupportedRecordTypeError(InvalidArgumentError):
    """DNS record type cannot be managed"""


class OperationCancelledError(AzureClientError):
    """A long-running operation was cancelled before it completed"""

    def __init__(self, message: str, operation: Optional[str] = None):
        self.operation = operation
        super().__init__(message)


class OperationTimeoutError(OperationCancelledError):
    """The deadline for a long-running operation expired"""


class OperationFailedError(AzureClientError):
    """The final poll of a long-running operation reported a failure"""

    def __init__(self, message: str, operation: Optional[str] = None):
        self.operation = operation
        super().__init__(message)


class StorageKeyNotFoundError(AzureClientError):
    """Storage account key was not returned by Azure"""
