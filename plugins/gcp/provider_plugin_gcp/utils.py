from typing import Dict, List, Optional

from googleapiclient.discovery_cache.base import Cache as GoogleApiClientCache

import providerlib.logger

log = providerlib.logger.getLogger("provider.plugins.gcp")
providerlib.logger.getLogger("googleapiclient").setLevel(providerlib.logger.ERROR)


class MemoryCache(GoogleApiClientCache):
    _cache: Dict[str, str] = {}

    def get(self, url: str) -> Optional[str]:
        return MemoryCache._cache.get(url)

    def set(self, url: str, content: str) -> None:
        MemoryCache._cache[url] = content


def parse_resource_name(name: str) -> str:
    """
    Returns the last segment of a resource path.
    projects/p/locations/global/buckets/_Default -> _Default
    """
    if not name:
        return ""
    return name.rsplit("/", maxsplit=1)[-1]


def _segment_after(path: str, marker: str) -> str:
    parts = path.split("/") if path else []
    for idx, part in enumerate(parts):
        if part == marker and idx + 1 < len(parts):
            return parts[idx + 1]
    return ""


def extract_constraint_name(policy_name: str) -> str:
    """
    organizations/123456/policies/compute.disableSerialPortAccess -> compute.disableSerialPortAccess
    """
    return _segment_after(policy_name, "policies")


def extract_ca_pool_name(resource_path: str) -> str:
    """
    projects/p/locations/us-central1/caPools/my-pool/certificateAuthorities/ca1 -> my-pool
    """
    return _segment_after(resource_path, "caPools")


def audit_config_id(parent: str, service: str) -> str:
    return f"{parent}-auditConfig-{service}"


def region_name_from_region_url(region_url: str) -> str:
    """
    https://www.googleapis.com/compute/v1/projects/p/regions/us-central1 -> us-central1
    """
    return _segment_after(region_url, "regions")


def parse_location(resource_path: str) -> str:
    """
    projects/p/locations/us-central1/functions/f -> us-central1
    """
    return _segment_after(resource_path, "locations")


# database version prefix (MYSQL_8_0 -> MYSQL) to the discovery type suffix
CloudSqlTypes = {
    "MYSQL": "mysql",
    "POSTGRES": "postgresql",
    "SQLSERVER": "sqlserver",
}


def parse_cloud_sql_type(database_version: str) -> str:
    prefix = database_version.split("_", maxsplit=1)[0] if database_version else ""
    return CloudSqlTypes.get(prefix.upper(), prefix.lower())


def split_targets(values: Optional[List[str]]) -> List[str]:
    """
    Discovery targets can be given as separate values or comma separated.
    ["projects,instances", " folders "] -> ["projects", "instances", "folders"]
    """
    return [t.strip() for value in values or [] for t in value.split(",") if t.strip()]
