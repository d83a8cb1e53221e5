from __future__ import annotations

from typing import ClassVar, Dict, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper, last_segment
from provider_plugin_gcp.utils import parse_location


@define(eq=False, slots=False)
class GcpCloudFunction(GcpResource):
    kind: ClassVar[str] = "gcp_cloud_function"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service="cloudfunctions",
        version="v2",
        accessors=["projects", "locations", "functions"],
        action="list",
        request_parameter={"parent": "projects/{project}/locations/-"},
        request_parameter_in={"project"},
        response_path="functions",
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "name",
        "name": last_segment("name"),
        "labels": "labels",
        "location": lambda js: parse_location(js.get("name", "")),
        "state": "state",
        "environment": "environment",
        "runtime": "buildConfig.runtime",
        "url": "url",
    }
    location: Optional[str] = None
    state: Optional[str] = None
    environment: Optional[str] = None
    runtime: Optional[str] = None
    url: Optional[str] = None
