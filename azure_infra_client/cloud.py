"""
Cloud environment resolution

Maps a named Azure cloud onto the endpoints clients need. The blob storage
domain is resolved here as well because the SDK cloud settings do not carry it.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from azure.identity import AzureAuthorityHosts

from .exceptions import UnknownCloudConfigurationError

AZURE_PUBLIC = "AzurePublic"
AZURE_GOVERNMENT = "AzureGovernment"
AZURE_CHINA = "AzureChina"


@dataclass(frozen=True)
class CloudConfiguration:
    """Named cloud selection; an empty name means AzurePublic"""

    name: str = ""


@dataclass(frozen=True)
class CloudEnvironment:
    """Endpoints of a resolved Azure cloud"""

    name: str
    active_directory_endpoint: str
    resource_manager_endpoint: str
    blob_storage_domain: str

    @property
    def authority_host(self) -> str:
        """Authority host in the form azure-identity credentials expect."""
        return self.active_directory_endpoint

    @property
    def credential_scopes(self) -> List[str]:
        """Token scopes for the resource manager of this cloud."""
        return [self.resource_manager_endpoint.rstrip("/") + "/.default"]

    def management_client_kwargs(self) -> Dict[str, object]:
        """Keyword arguments pointing an ARM client at this cloud."""
        return {
            "base_url": self.resource_manager_endpoint,
            "credential_scopes": self.credential_scopes,
        }


AZURE_PUBLIC_CLOUD = CloudEnvironment(
    name=AZURE_PUBLIC,
    active_directory_endpoint=f"https://{AzureAuthorityHosts.AZURE_PUBLIC_CLOUD}/",
    resource_manager_endpoint="https://management.azure.com/",
    blob_storage_domain="blob.core.windows.net",
)

AZURE_GOVERNMENT_CLOUD = CloudEnvironment(
    name=AZURE_GOVERNMENT,
    active_directory_endpoint=f"https://{AzureAuthorityHosts.AZURE_GOVERNMENT}/",
    resource_manager_endpoint="https://management.usgovcloudapi.net/",
    blob_storage_domain="blob.core.usgovcloudapi.net",
)

AZURE_CHINA_CLOUD = CloudEnvironment(
    name=AZURE_CHINA,
    active_directory_endpoint=f"https://{AzureAuthorityHosts.AZURE_CHINA}/",
    resource_manager_endpoint="https://management.chinacloudapi.cn/",
    blob_storage_domain="blob.core.chinacloudapi.cn",
)

_CLOUDS_BY_NAME = {
    "": AZURE_PUBLIC_CLOUD,
    AZURE_PUBLIC.lower(): AZURE_PUBLIC_CLOUD,
    AZURE_GOVERNMENT.lower(): AZURE_GOVERNMENT_CLOUD,
    AZURE_CHINA.lower(): AZURE_CHINA_CLOUD,
}


def resolve_cloud_environment(cloud_configuration: Optional[CloudConfiguration] = None) -> CloudEnvironment:
    """
    Resolve a cloud configuration to its endpoints

    Args:
        cloud_configuration: Cloud selection; None or an empty name selects AzurePublic

    Returns:
        CloudEnvironment with all endpoints set

    Raises:
        UnknownCloudConfigurationError: If the name is not a known cloud
    """
    name = cloud_configuration.name if cloud_configuration is not None else ""
    environment = _CLOUDS_BY_NAME.get((name or "").strip().lower())
    if environment is None:
        raise UnknownCloudConfigurationError(name)
    return environment
