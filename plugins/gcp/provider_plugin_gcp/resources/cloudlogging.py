from __future__ import annotations

from typing import ClassVar, Dict, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper, last_segment
from provider_plugin_gcp.utils import parse_location


@define(eq=False, slots=False)
class GcpLoggingBucket(GcpResource):
    kind: ClassVar[str] = "gcp_logging_bucket"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service="logging",
        version="v2",
        accessors=["projects", "locations", "buckets"],
        action="list",
        request_parameter={"parent": "projects/{project}/locations/-"},
        request_parameter_in={"project"},
        response_path="buckets",
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "name",
        "name": last_segment("name"),
        "ctime": "createTime",
        "location": lambda js: parse_location(js.get("name", "")),
        "retention_days": "retentionDays",
        "lifecycle_state": "lifecycleState",
        "locked": "locked",
    }
    location: Optional[str] = None
    retention_days: Optional[int] = None
    lifecycle_state: Optional[str] = None
    locked: Optional[bool] = None
