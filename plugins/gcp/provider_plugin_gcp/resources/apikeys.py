from __future__ import annotations

from typing import Any, ClassVar, Dict, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper, last_segment


@define(eq=False, slots=False)
class GcpApiKey(GcpResource):
    kind: ClassVar[str] = "gcp_api_key"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service="apikeys",
        version="v2",
        accessors=["projects", "locations", "keys"],
        action="list",
        request_parameter={"parent": "projects/{project}/locations/global"},
        request_parameter_in={"project"},
        response_path="keys",
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": last_segment("name"),
        "name": lambda js: js.get("displayName") or last_segment("name")(js),
        "labels": "annotations",
        "ctime": "createTime",
        "uid": "uid",
        "restrictions": "restrictions",
    }
    uid: Optional[str] = None
    restrictions: Optional[Dict[str, Any]] = None
