"""
DNS zone and record set clients (azure-mgmt-dns) and zone naming helpers

A zone is addressed by a zone ID of the form <resourceGroup>/<zoneName>, which
carries everything needed to reach the zone without an extra lookup. Record
names are fully qualified; Azure stores them relative to the zone, with "@"
standing for the apex.
"""

import re
import threading
from typing import Any, Dict, List, Optional, Tuple

from azure.mgmt.dns.models import AaaaRecord, ARecord, CnameRecord, RecordSet, TxtRecord

from .errors import filter_not_found
from .exceptions import InvalidArgumentError, UnsupportedRecordTypeError, ZoneMismatchError
from .lro import BaseClient, drain
from .validators import ZONE_ID_SEPARATOR, InputValidator

APEX_RECORD_NAME = "@"

RECORD_TYPE_A = "A"
RECORD_TYPE_AAAA = "AAAA"
RECORD_TYPE_CNAME = "CNAME"
RECORD_TYPE_TXT = "TXT"
SUPPORTED_RECORD_TYPES = (RECORD_TYPE_A, RECORD_TYPE_AAAA, RECORD_TYPE_CNAME, RECORD_TYPE_TXT)

_RESOURCE_GROUP_PATTERN = re.compile(r"/resourceGroups/([^/]+)/")


def zone_id(resource_group_name: str, zone_name: str) -> str:
    """Build the zone ID <resourceGroup>/<zoneName>."""
    return f"{resource_group_name}{ZONE_ID_SEPARATOR}{zone_name}"


def split_zone_id(zone_id: str) -> Tuple[str, str]:
    """
    Split a zone ID into resource group and zone name

    Raises:
        InvalidZoneIDError: If the ID does not contain exactly one separator
    """
    InputValidator.validate_zone_id(zone_id)
    resource_group_name, zone_name = zone_id.split(ZONE_ID_SEPARATOR)
    return resource_group_name, zone_name


def relative_record_set_name(name: str, zone_name: str) -> str:
    """
    Compute the zone relative name of a record set

    Args:
        name: Fully qualified record name, e.g. "api.foo.example.com"
        zone_name: Zone the record belongs to, e.g. "example.com"

    Returns:
        "@" for the zone apex, otherwise the name without the zone suffix

    Raises:
        ZoneMismatchError: If the name is not inside the zone
    """
    if name == zone_name:
        return APEX_RECORD_NAME
    suffix = "." + zone_name
    if not name.endswith(suffix):
        raise ZoneMismatchError(f"name {name} does not match zone name {zone_name}")
    return name[:-len(suffix)]


def resource_group_from_zone_resource_id(resource_id: str) -> str:
    """
    Extract the resource group from the full ARM ID of a zone

    Raises:
        InvalidArgumentError: If the ID has no resourceGroups segment
    """
    match = _RESOURCE_GROUP_PATTERN.search(resource_id or "")
    if match is None:
        raise InvalidArgumentError(f"unexpected DNS zone ID {resource_id}")
    return match.group(1)


def new_record_set(record_type: str, values: List[str], ttl: int) -> RecordSet:
    """
    Build the record set payload for a record type

    Raises:
        UnsupportedRecordTypeError: For record types other than A, AAAA, CNAME and TXT
        InvalidArgumentError: If a CNAME is given anything but exactly one value
    """
    if record_type == RECORD_TYPE_A:
        return RecordSet(ttl=ttl, a_records=[ARecord(ipv4_address=v) for v in values])
    if record_type == RECORD_TYPE_AAAA:
        return RecordSet(ttl=ttl, aaaa_records=[AaaaRecord(ipv6_address=v) for v in values])
    if record_type == RECORD_TYPE_CNAME:
        if len(values) != 1:
            raise InvalidArgumentError(f"a CNAME record set takes exactly one value, got {len(values)}")
        return RecordSet(ttl=ttl, cname_record=CnameRecord(cname=values[0]))
    if record_type == RECORD_TYPE_TXT:
        return RecordSet(ttl=ttl, txt_records=[TxtRecord(value=[v]) for v in values])
    raise UnsupportedRecordTypeError(
        f"record type {record_type} is not supported, expected one of {', '.join(SUPPORTED_RECORD_TYPES)}"
    )


class DNSZoneClient(BaseClient):
    """DNS zones of the subscription (dns_client.zones)"""

    resource_type = "DNS zone"

    def list(self, cancel_event: Optional[threading.Event] = None) -> Dict[str, str]:
        """
        List all zones of the subscription

        Returns:
            Mapping from zone name to zone ID
        """
        zones = {}
        for zone in drain(self._operations.list(), cancel_event):
            resource_group_name = resource_group_from_zone_resource_id(zone.id)
            zones[zone.name] = zone_id(resource_group_name, zone.name)
        self.logger.debug(f"Listed {len(zones)} DNS zone(s)")
        return zones


class DNSRecordSetClient(BaseClient):
    """Record sets of a DNS zone (dns_client.record_sets)"""

    resource_type = "DNS record set"

    def create_or_update(self, zone_id: str, name: str, record_type: str, values: List[str], ttl: int) -> Any:
        """
        Create or update a record set

        Args:
            zone_id: Zone ID <resourceGroup>/<zoneName>
            name: Fully qualified record name
            record_type: One of A, AAAA, CNAME, TXT
            values: Record values; exactly one for CNAME
            ttl: Time to live in seconds

        Returns:
            The stored RecordSet
        """
        resource_group_name, zone_name = split_zone_id(zone_id)
        relative_name = relative_record_set_name(name, zone_name)
        parameters = new_record_set(record_type, values, ttl)
        result = self._operations.create_or_update(
            resource_group_name, zone_name, relative_name, record_type, parameters
        )
        self.logger.info(f"Created or updated {record_type} record set {name} in zone {zone_id}")
        return result

    def get(self, zone_id: str, name: str, record_type: str) -> Optional[Any]:
        """Get a record set, or None if it does not exist."""
        resource_group_name, zone_name = split_zone_id(zone_id)
        relative_name = relative_record_set_name(name, zone_name)
        return self._get_if_exists(self._operations.get, resource_group_name, zone_name, relative_name, record_type)

    def delete(self, zone_id: str, name: str, record_type: str) -> None:
        """Delete a record set if it exists."""
        resource_group_name, zone_name = split_zone_id(zone_id)
        relative_name = relative_record_set_name(name, zone_name)
        try:
            self._operations.delete(resource_group_name, zone_name, relative_name, record_type)
        except Exception as e:
            if filter_not_found(e) is not None:
                raise
            self.logger.warning(f"{record_type} record set {name} in zone {zone_id} does not exist, nothing to delete")
            return
        self.logger.info(f"Deleted {record_type} record set {name} in zone {zone_id}")
