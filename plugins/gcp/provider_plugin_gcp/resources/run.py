from __future__ import annotations

from typing import ClassVar, Dict, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper, last_segment
from provider_plugin_gcp.utils import parse_location

service_name = "run"


def run_spec(accessor: str) -> GcpApiSpec:
    return GcpApiSpec(
        service=service_name,
        version="v2",
        accessors=["projects", "locations", accessor],
        action="list",
        request_parameter={"parent": "projects/{project}/locations/-"},
        request_parameter_in={"project"},
        response_path=accessor,
    )


def run_mapping(**extra: Mapper) -> Dict[str, Mapper]:
    return {
        "id": "name",
        "name": last_segment("name"),
        "labels": "labels",
        "ctime": "createTime",
        "region": lambda js: parse_location(js.get("name", "")),
        "launch_stage": "launchStage",
        **extra,
    }


@define(eq=False, slots=False)
class GcpCloudRunService(GcpResource):
    kind: ClassVar[str] = "gcp_cloud_run_service"
    api_spec: ClassVar[GcpApiSpec] = run_spec("services")
    mapping: ClassVar[Dict[str, Mapper]] = run_mapping(ingress="ingress", uri="uri")
    region: Optional[str] = None
    launch_stage: Optional[str] = None
    ingress: Optional[str] = None
    uri: Optional[str] = None


@define(eq=False, slots=False)
class GcpCloudRunJob(GcpResource):
    kind: ClassVar[str] = "gcp_cloud_run_job"
    api_spec: ClassVar[GcpApiSpec] = run_spec("jobs")
    mapping: ClassVar[Dict[str, Mapper]] = run_mapping(execution_count="executionCount")
    region: Optional[str] = None
    launch_stage: Optional[str] = None
    execution_count: Optional[int] = None
