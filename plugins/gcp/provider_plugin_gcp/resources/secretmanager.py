from __future__ import annotations

from typing import ClassVar, Dict, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper, last_segment


@define(eq=False, slots=False)
class GcpSecret(GcpResource):
    kind: ClassVar[str] = "gcp_secret"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service="secretmanager",
        version="v1",
        accessors=["projects", "secrets"],
        action="list",
        request_parameter={"parent": "projects/{project}"},
        request_parameter_in={"project"},
        response_path="secrets",
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "name",
        "name": last_segment("name"),
        "labels": "labels",
        "ctime": "createTime",
        "expire_time": "expireTime",
        "rotation_period": "rotation.rotationPeriod",
    }
    expire_time: Optional[str] = None
    rotation_period: Optional[str] = None
