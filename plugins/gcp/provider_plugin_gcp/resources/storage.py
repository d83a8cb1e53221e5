from __future__ import annotations

from typing import ClassVar, Dict, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper


@define(eq=False, slots=False)
class GcpBucket(GcpResource):
    kind: ClassVar[str] = "gcp_bucket"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service="storage",
        version="v1",
        accessors=["buckets"],
        action="list",
        request_parameter={"project": "{project}"},
        request_parameter_in={"project"},
        response_path="items",
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "id",
        "name": "name",
        "labels": "labels",
        "ctime": "timeCreated",
        "location": "location",
        "location_type": "locationType",
        "storage_class": "storageClass",
        "uniform_bucket_level_access": "iamConfiguration.uniformBucketLevelAccess.enabled",
        "public_access_prevention": "iamConfiguration.publicAccessPrevention",
        "versioning_enabled": "versioning.enabled",
    }
    location: Optional[str] = None
    location_type: Optional[str] = None
    storage_class: Optional[str] = None
    uniform_bucket_level_access: Optional[bool] = None
    public_access_prevention: Optional[str] = None
    versioning_enabled: Optional[bool] = None
