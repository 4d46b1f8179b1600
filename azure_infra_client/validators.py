"""
Input validation utilities
"""

from typing import Optional

from .exceptions import InvalidArgumentError, InvalidZoneIDError, MissingFieldError

# Configuration constants
MAX_RESOURCE_NAME_LENGTH = 260
ZONE_ID_SEPARATOR = "/"


class InputValidator:
    """Validates names and identifiers before they are sent to Azure"""

    @staticmethod
    def validate_required(value: Optional[str], field: str, description: str) -> str:
        """
        Ensure a credential field is present

        Args:
            value: Field value
            field: Secret data key of the field (reported on the error)
            description: Human readable field name for the error message

        Returns:
            The value

        Raises:
            MissingFieldError: If the value is missing or empty
        """
        if not value:
            raise MissingFieldError(f"missing {description}", field=field)
        return value

    @staticmethod
    def validate_resource_name(name: str, resource_type: str) -> str:
        """
        Validate an Azure resource name

        Args:
            name: Resource name
            resource_type: Type of resource (for error messages)

        Returns:
            Validated resource name

        Raises:
            InvalidArgumentError: If name is empty or too long
        """
        if not name or not isinstance(name, str):
            raise InvalidArgumentError(f"{resource_type.capitalize()} name cannot be empty")

        if len(name) > MAX_RESOURCE_NAME_LENGTH:
            raise InvalidArgumentError(
                f"{resource_type.capitalize()} name must be between 1 and {MAX_RESOURCE_NAME_LENGTH} characters"
            )

        return name

    @staticmethod
    def validate_zone_id(zone_id: str) -> str:
        """
        Validate a zone ID of the form <resourceGroup>/<zoneName>

        Raises:
            InvalidZoneIDError: If there is not exactly one separator or a part is empty
        """
        if not isinstance(zone_id, str) or zone_id.count(ZONE_ID_SEPARATOR) != 1:
            raise InvalidZoneIDError(f"zone ID '{zone_id}' must have the form <resourceGroup>/<zoneName>")
        resource_group, zone_name = zone_id.split(ZONE_ID_SEPARATOR)
        if not resource_group or not zone_name:
            raise InvalidZoneIDError(f"zone ID '{zone_id}' has an empty resource group or zone name")
        return zone_id
