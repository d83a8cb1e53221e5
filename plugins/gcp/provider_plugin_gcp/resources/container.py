from __future__ import annotations

from typing import ClassVar, Dict, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper

service_name = "container"


@define(eq=False, slots=False)
class GcpContainerCluster(GcpResource):
    kind: ClassVar[str] = "gcp_container_cluster"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v1",
        accessors=["projects", "locations", "clusters"],
        action="list",
        request_parameter={"parent": "projects/{project}/locations/-"},
        request_parameter_in={"project"},
        response_path="clusters",
        required_iam_permissions=["container.clusters.list"],
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "id",
        "name": "name",
        "labels": "resourceLabels",
        "ctime": "createTime",
        "location": "location",
        "status": "status",
        "current_master_version": "currentMasterVersion",
        "current_node_count": "currentNodeCount",
        "endpoint": "endpoint",
    }
    location: Optional[str] = None
    status: Optional[str] = None
    current_master_version: Optional[str] = None
    current_node_count: Optional[int] = None
    endpoint: Optional[str] = None
