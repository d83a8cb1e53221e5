from __future__ import annotations

from typing import ClassVar, Dict, List, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec, InternalZoneProp
from provider_plugin_gcp.resources.base import GcpResource, Mapper, last_segment
from provider_plugin_gcp.utils import region_name_from_region_url

service_name = "compute"


def compute_mapping(**extra: Mapper) -> Dict[str, Mapper]:
    return {
        "id": "id",
        "name": "name",
        "labels": "labels",
        "ctime": "creationTimestamp",
        "link": "selfLink",
        "description": "description",
        **extra,
    }


@define(eq=False, slots=False)
class GcpComputeResource(GcpResource):
    kind: ClassVar[str] = "gcp_compute_resource"
    link: Optional[str] = None
    description: Optional[str] = None


@define(eq=False, slots=False)
class GcpRegion(GcpComputeResource):
    kind: ClassVar[str] = "gcp_region"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v1",
        accessors=["regions"],
        action="list",
        request_parameter={"project": "{project}"},
        request_parameter_in={"project"},
        response_path="items",
    )
    mapping: ClassVar[Dict[str, Mapper]] = compute_mapping(status="status")
    status: Optional[str] = None


@define(eq=False, slots=False)
class GcpInstance(GcpComputeResource):
    kind: ClassVar[str] = "gcp_instance"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v1",
        accessors=["instances"],
        action="aggregatedList",
        request_parameter={"project": "{project}"},
        request_parameter_in={"project"},
        response_path="items",
        response_regional_sub_path="instances",
    )
    mapping: ClassVar[Dict[str, Mapper]] = compute_mapping(
        status="status",
        zone=lambda js: js.get(InternalZoneProp) or last_segment("zone")(js),
        machine_type=last_segment("machineType"),
        cpu_platform="cpuPlatform",
    )
    status: Optional[str] = None
    zone: Optional[str] = None
    machine_type: Optional[str] = None
    cpu_platform: Optional[str] = None

    @property
    def running(self) -> bool:
        return self.status == "RUNNING"


@define(eq=False, slots=False)
class GcpImage(GcpComputeResource):
    kind: ClassVar[str] = "gcp_image"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v1",
        accessors=["images"],
        action="list",
        request_parameter={"project": "{project}"},
        request_parameter_in={"project"},
        response_path="items",
    )
    mapping: ClassVar[Dict[str, Mapper]] = compute_mapping(
        status="status",
        family="family",
        disk_size_gb="diskSizeGb",
        architecture="architecture",
    )
    status: Optional[str] = None
    family: Optional[str] = None
    disk_size_gb: Optional[str] = None
    architecture: Optional[str] = None


@define(eq=False, slots=False)
class GcpNetwork(GcpComputeResource):
    kind: ClassVar[str] = "gcp_network"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v1",
        accessors=["networks"],
        action="list",
        request_parameter={"project": "{project}"},
        request_parameter_in={"project"},
        response_path="items",
    )
    mapping: ClassVar[Dict[str, Mapper]] = compute_mapping(
        auto_create_subnetworks="autoCreateSubnetworks",
        routing_mode="routingConfig.routingMode",
        mtu="mtu",
    )
    auto_create_subnetworks: Optional[bool] = None
    routing_mode: Optional[str] = None
    mtu: Optional[int] = None


@define(eq=False, slots=False)
class GcpSubnetwork(GcpComputeResource):
    kind: ClassVar[str] = "gcp_subnetwork"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v1",
        accessors=["subnetworks"],
        action="aggregatedList",
        request_parameter={"project": "{project}"},
        request_parameter_in={"project"},
        response_path="items",
        response_regional_sub_path="subnetworks",
    )
    mapping: ClassVar[Dict[str, Mapper]] = compute_mapping(
        region_url="region",
        network=last_segment("network"),
        ip_cidr_range="ipCidrRange",
        private_ip_google_access="privateIpGoogleAccess",
    )
    region_url: Optional[str] = None
    network: Optional[str] = None
    ip_cidr_range: Optional[str] = None
    private_ip_google_access: Optional[bool] = None

    @property
    def region(self) -> str:
        # the aggregated list stores the plain region name, the object itself the region url
        if self.region_url and "/" not in self.region_url:
            return self.region_url
        return region_name_from_region_url(self.region_url or "")


@define(eq=False, slots=False)
class GcpFirewall(GcpComputeResource):
    kind: ClassVar[str] = "gcp_firewall"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v1",
        accessors=["firewalls"],
        action="list",
        request_parameter={"project": "{project}"},
        request_parameter_in={"project"},
        response_path="items",
    )
    mapping: ClassVar[Dict[str, Mapper]] = compute_mapping(
        network=last_segment("network"),
        direction="direction",
        priority="priority",
        disabled="disabled",
        source_ranges="sourceRanges",
    )
    network: Optional[str] = None
    direction: Optional[str] = None
    priority: Optional[int] = None
    disabled: Optional[bool] = None
    source_ranges: Optional[List[str]] = None
