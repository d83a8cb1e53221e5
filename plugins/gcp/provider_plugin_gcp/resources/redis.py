from __future__ import annotations

from typing import ClassVar, Dict, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper, last_segment
from provider_plugin_gcp.utils import parse_location

service_name = "redis"


@define(eq=False, slots=False)
class GcpRedisInstance(GcpResource):
    kind: ClassVar[str] = "gcp_redis_instance"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v1",
        accessors=["projects", "locations", "instances"],
        action="list",
        request_parameter={"parent": "projects/{project}/locations/-"},
        request_parameter_in={"project"},
        response_path="instances",
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "name",
        "name": last_segment("name"),
        "labels": "labels",
        "ctime": "createTime",
        "display_name": "displayName",
        "location_id": "locationId",
        "tier": "tier",
        "redis_version": "redisVersion",
        "state": "state",
        "memory_size_gb": "memorySizeGb",
        "auth_enabled": "authEnabled",
        "transit_encryption_mode": "transitEncryptionMode",
    }
    display_name: Optional[str] = None
    location_id: Optional[str] = None
    tier: Optional[str] = None
    redis_version: Optional[str] = None
    state: Optional[str] = None
    memory_size_gb: Optional[int] = None
    auth_enabled: Optional[bool] = None
    transit_encryption_mode: Optional[str] = None


@define(eq=False, slots=False)
class GcpRedisCluster(GcpResource):
    kind: ClassVar[str] = "gcp_redis_cluster"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v1",
        accessors=["projects", "locations", "clusters"],
        action="list",
        request_parameter={"parent": "projects/{project}/locations/-"},
        request_parameter_in={"project"},
        response_path="clusters",
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "name",
        "name": last_segment("name"),
        "ctime": "createTime",
        "location": lambda js: parse_location(js.get("name", "")),
        "state": "state",
        "shard_count": "shardCount",
        "replica_count": "replicaCount",
        "authorization_mode": "authorizationMode",
    }
    location: Optional[str] = None
    state: Optional[str] = None
    shard_count: Optional[int] = None
    replica_count: Optional[int] = None
    authorization_mode: Optional[str] = None
