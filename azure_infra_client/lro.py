"""
Long-running operation handling for typed Azure clients

Azure create, update and delete calls return a poller. The typed clients hide
the poller: every such call is driven to a terminal state before it returns, so
callers observe a synchronous operation. Pagers are drained eagerly.

Cancellation: the SDK is synchronous, so operations accept an optional
``cancel_event`` (threading.Event) and ``timeout`` (seconds). Both are checked
between poll slices of at most POLL_WAIT_SECONDS, and listings check the event
between items. The server-side operation is not cancelled; its outcome is
visible through a later get.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from .constants import LOGGER_NAME
from .errors import is_not_found
from .exceptions import InvalidArgumentError, OperationCancelledError, OperationFailedError, OperationTimeoutError
from .validators import InputValidator

POLL_WAIT_SECONDS = 1.0


def wait_for_completion(
    poller: Any,
    operation: str,
    timeout: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Any:
    """
    Poll a long-running operation until it reaches a terminal state

    Args:
        poller: azure-core LROPoller returned by a begin_* call
        operation: Description of the operation for errors and logs
        timeout: Optional deadline in seconds
        cancel_event: Optional event; once set, polling stops

    Returns:
        The final result of the operation

    Raises:
        OperationCancelledError: If cancel_event was set before completion
        OperationTimeoutError: If the deadline expired before completion
        OperationFailedError: If the operation finished in a failed state
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    try:
        while not poller.done():
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelledError(f"{operation} was cancelled", operation=operation)
            wait = POLL_WAIT_SECONDS
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise OperationTimeoutError(f"{operation} did not complete within {timeout}s", operation=operation)
                wait = min(wait, remaining)
            poller.wait(timeout=wait)
        return poller.result()
    except OperationCancelledError:
        raise
    except Exception as e:
        raise OperationFailedError(f"{operation} failed: {e}", operation=operation) from e


def drain(pager: Iterable[Any], cancel_event: Optional[threading.Event] = None) -> List[Any]:
    """
    Collect every item of every page of a pager

    The cancel event is checked before the first page is requested and before
    each further item, so a set event stops the drain within one page fetch.

    Raises:
        OperationCancelledError: If cancel_event was set before the pager was exhausted
    """
    items = []
    iterator = iter(pager)
    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError(f"listing was cancelled after {len(items)} item(s)", operation="list")
        try:
            item = next(iterator)
        except StopIteration:
            return items
        items.append(item)


class BaseClient:
    """
    Base class for typed clients

    Holds the subscription the client acts on and the SDK operations group it
    wraps, and provides the get/create/delete building blocks.
    """

    resource_type = "resource"
    # Whether the get call of the operations group accepts an expand argument
    supports_expand = True

    def __init__(self, operations: Any, subscription_id: str):
        """
        Initialize typed client

        Args:
            operations: SDK operations group (e.g. network_client.virtual_networks)
            subscription_id: Subscription the SDK client is bound to
        """
        self._operations = operations
        self.subscription_id = subscription_id
        self.logger = logging.getLogger(f"{LOGGER_NAME}.{self.__class__.__name__}")

    def _validate_names(self, **names: str) -> None:
        for label, value in names.items():
            InputValidator.validate_resource_name(value, label.replace("_", " "))

    def _expand_kwargs(self, expand: Optional[str]) -> Dict[str, str]:
        if expand is None:
            return {}
        if not self.supports_expand:
            raise InvalidArgumentError(f"get of {self.resource_type} does not support expand")
        return {"expand": expand}

    def _get_if_exists(self, call: Callable[..., Any], *args: Any, **kwargs: Any) -> Optional[Any]:
        """Run a get call; a not-found error yields None."""
        try:
            return call(*args, **kwargs)
        except Exception as e:
            if is_not_found(e):
                self.logger.debug(f"{self.resource_type} {'/'.join(str(a) for a in args)} not found")
                return None
            raise

    def _run(
        self,
        begin: Callable[..., Any],
        operation: str,
        *args: Any,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        **kwargs: Any,
    ) -> Any:
        """Submit a long-running operation and poll it to completion."""
        self.logger.debug(f"Starting {operation}")
        poller = begin(*args, **kwargs)
        result = wait_for_completion(poller, operation, timeout=timeout, cancel_event=cancel_event)
        self.logger.debug(f"Finished {operation}")
        return result

    def _run_delete(
        self,
        begin: Callable[..., Any],
        operation: str,
        *args: Any,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        **kwargs: Any,
    ) -> None:
        """Submit a delete and poll it to completion; not-found counts as success."""
        try:
            self._run(begin, operation, *args, timeout=timeout, cancel_event=cancel_event, **kwargs)
        except OperationCancelledError:
            raise
        except Exception as e:
            if not is_not_found(e):
                raise
            self.logger.warning(f"{operation}: {self.resource_type} does not exist, nothing to delete")
            return
        self.logger.info(f"Deleted {self.resource_type} ({operation})")


class ResourceClient(BaseClient):
    """
    Typed client for a resource addressed by resource group and name

    Subclasses bind an SDK operations group that offers get, list,
    begin_create_or_update and begin_delete.
    """

    def get(self, resource_group_name: str, name: str, expand: Optional[str] = None) -> Optional[Any]:
        """
        Get a resource

        Args:
            resource_group_name: Resource group of the resource
            name: Resource name
            expand: Optional expand expression narrowing returned sub-fields

        Returns:
            The resource, or None if it does not exist
        """
        self._validate_names(resource_group_name=resource_group_name, name=name)
        kwargs = self._expand_kwargs(expand)
        return self._get_if_exists(self._operations.get, resource_group_name, name, **kwargs)

    def list(self, resource_group_name: str, cancel_event: Optional[threading.Event] = None) -> List[Any]:
        """List all resources of this kind in a resource group."""
        self._validate_names(resource_group_name=resource_group_name)
        items = drain(self._operations.list(resource_group_name), cancel_event)
        self.logger.debug(f"Listed {len(items)} {self.resource_type}(s) in {resource_group_name}")
        return items

    def create_or_update(
        self,
        resource_group_name: str,
        name: str,
        parameters: Any,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Any:
        """
        Create or update a resource and wait for the operation to finish

        Returns:
            The resource as reported by the completed operation
        """
        self._validate_names(resource_group_name=resource_group_name, name=name)
        result = self._run(
            self._operations.begin_create_or_update,
            f"create or update {self.resource_type} {resource_group_name}/{name}",
            resource_group_name,
            name,
            parameters,
            timeout=timeout,
            cancel_event=cancel_event,
        )
        self.logger.info(f"Created or updated {self.resource_type} {resource_group_name}/{name}")
        return result

    def delete(
        self,
        resource_group_name: str,
        name: str,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """Delete a resource if it exists and wait for the deletion to finish."""
        self._validate_names(resource_group_name=resource_group_name, name=name)
        self._run_delete(
            self._operations.begin_delete,
            f"delete {self.resource_type} {resource_group_name}/{name}",
            resource_group_name,
            name,
            timeout=timeout,
            cancel_event=cancel_event,
        )


class SubResourceClient(BaseClient):
    """
    Typed client for a resource that lives inside a parent resource

    Examples are subnets of a virtual network and backend pools of a load balancer.
    """

    parent_type = "parent"

    def get(self, resource_group_name: str, parent_name: str, name: str, expand: Optional[str] = None) -> Optional[Any]:
        """Get a sub-resource, or None if it does not exist."""
        self._validate_names(resource_group_name=resource_group_name, parent_name=parent_name, name=name)
        kwargs = self._expand_kwargs(expand)
        return self._get_if_exists(self._operations.get, resource_group_name, parent_name, name, **kwargs)

    def list(
        self, resource_group_name: str, parent_name: str, cancel_event: Optional[threading.Event] = None
    ) -> List[Any]:
        """List all sub-resources of a parent resource."""
        self._validate_names(resource_group_name=resource_group_name, parent_name=parent_name)
        items = drain(self._operations.list(resource_group_name, parent_name), cancel_event)
        self.logger.debug(
            f"Listed {len(items)} {self.resource_type}(s) in {self.parent_type} {resource_group_name}/{parent_name}"
        )
        return items

    def create_or_update(
        self,
        resource_group_name: str,
        parent_name: str,
        name: str,
        parameters: Any,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Any:
        """Create or update a sub-resource and wait for the operation to finish."""
        self._validate_names(resource_group_name=resource_group_name, parent_name=parent_name, name=name)
        result = self._run(
            self._operations.begin_create_or_update,
            f"create or update {self.resource_type} {resource_group_name}/{parent_name}/{name}",
            resource_group_name,
            parent_name,
            name,
            parameters,
            timeout=timeout,
            cancel_event=cancel_event,
        )
        self.logger.info(f"Created or updated {self.resource_type} {resource_group_name}/{parent_name}/{name}")
        return result

    def delete(
        self,
        resource_group_name: str,
        parent_name: str,
        name: str,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """Delete a sub-resource if it exists and wait for the deletion to finish."""
        self._validate_names(resource_group_name=resource_group_name, parent_name=parent_name, name=name)
        self._run_delete(
            self._operations.begin_delete,
            f"delete {self.resource_type} {resource_group_name}/{parent_name}/{name}",
            resource_group_name,
            parent_name,
            name,
            timeout=timeout,
            cancel_event=cancel_event,
        )
