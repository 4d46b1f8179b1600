"""
Error classification for Azure SDK errors

Several generations of Azure SDK errors coexist in a process: the azure-core
``HttpResponseError`` family, autorest/msrest style errors that carry the HTTP
response, and authentication library call errors. The helpers here inspect the
error structurally (by attribute, not by type) so callers never have to know
which generation raised it. Errors are only inspected, never rewrapped.
"""

from enum import Enum
from typing import Iterator, Optional

from azure.core.exceptions import (
    ClientAuthenticationError,
    ResourceNotFoundError,
    ServiceRequestError,
    ServiceResponseError,
)

from .exceptions import InvalidArgumentError, OperationCancelledError, OperationFailedError

HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404

# Mirrors client_options.RETRIABLE_STATUS_CODES; kept here to avoid an import cycle
TRANSIENT_STATUS_CODES = frozenset({408, 500, 502, 503, 504})

# Guards against pathological cause chains
MAX_CAUSE_DEPTH = 16


class ErrorKind(Enum):
    """Stable classification of errors raised by the client"""

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    INVALID_ARGUMENT = "invalid_argument"
    TRANSIENT = "transient"
    OPERATION = "operation"
    CANCELLED = "cancelled"
    OTHER = "other"


def _error_chain(err: BaseException) -> Iterator[BaseException]:
    """Yield the error followed by its explicit causes and inner exceptions."""
    seen = set()
    current: Optional[BaseException] = err
    while current is not None and id(current) not in seen and len(seen) < MAX_CAUSE_DEPTH:
        seen.add(id(current))
        yield current
        following = current.__cause__
        if following is None:
            inner = getattr(current, "inner_exception", None)
            following = inner if isinstance(inner, BaseException) else None
        current = following


def _status_of(response) -> Optional[int]:
    if response is None:
        return None
    status = getattr(response, "status_code", None)
    if status is None:
        status = getattr(response, "status", None)
    return status if isinstance(status, int) else None


def _has_status(err: BaseException, status: int) -> bool:
    """
    Check a single error for the given HTTP status

    Recognized shapes:
    - response error: ``err.status_code``
    - detailed error: ``err.status_code`` or ``err.response.status_code``
    - call error: ``err.resp.status_code`` (or ``err.resp.status``)
    """
    code = getattr(err, "status_code", None)
    if isinstance(code, int) and code == status:
        return True
    if _status_of(getattr(err, "response", None)) == status:
        return True
    if _status_of(getattr(err, "resp", None)) == status:
        return True
    return False


def is_not_found(err: Optional[BaseException]) -> bool:
    """Return True if the error reports HTTP 404 in any known SDK shape."""
    if err is None:
        return False
    for candidate in _error_chain(err):
        if isinstance(candidate, ResourceNotFoundError) or _has_status(candidate, HTTP_NOT_FOUND):
            return True
    return False


def is_unauthorized(err: Optional[BaseException]) -> bool:
    """Return True if the error reports HTTP 401 or a failed authentication."""
    if err is None:
        return False
    for candidate in _error_chain(err):
        if isinstance(candidate, ClientAuthenticationError) or _has_status(candidate, HTTP_UNAUTHORIZED):
            return True
    return False


def is_transient(err: Optional[BaseException]) -> bool:
    """Return True for transport errors and retriable HTTP statuses."""
    if err is None:
        return False
    for candidate in _error_chain(err):
        if isinstance(candidate, (ServiceRequestError, ServiceResponseError)):
            return True
        if any(_has_status(candidate, code) for code in TRANSIENT_STATUS_CODES):
            return True
    return False


def filter_not_found(err: Optional[BaseException]) -> Optional[BaseException]:
    """
    Drop not-found errors

    Args:
        err: Error raised by an Azure call, or None

    Returns:
        None if the error is a not-found error, otherwise the error unchanged
    """
    if err is None or is_not_found(err):
        return None
    return err


def classify_error(err: Optional[BaseException]) -> Optional[ErrorKind]:
    """
    Map an error onto the client's error taxonomy

    Returns:
        The ErrorKind of the error, or None when there is no error
    """
    if err is None:
        return None
    if isinstance(err, OperationCancelledError):
        return ErrorKind.CANCELLED
    if isinstance(err, InvalidArgumentError):
        return ErrorKind.INVALID_ARGUMENT
    if is_not_found(err):
        return ErrorKind.NOT_FOUND
    if is_unauthorized(err):
        return ErrorKind.UNAUTHORIZED
    if isinstance(err, OperationFailedError):
        return ErrorKind.OPERATION
    if is_transient(err):
        return ErrorKind.TRANSIENT
    return ErrorKind.OTHER
