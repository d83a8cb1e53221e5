from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper, ResourceBuilder, last_segment
from provider_plugin_gcp.utils import parse_location

service_name = "cloudkms"


@define(eq=False, slots=False)
class GcpKmsLocation(GcpResource):
    kind: ClassVar[str] = "gcp_kms_location"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v1",
        accessors=["projects", "locations"],
        action="list",
        request_parameter={"name": "projects/{project}"},
        request_parameter_in={"project"},
        response_path="locations",
        required_iam_permissions=["cloudkms.locations.list"],
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "locationId",
        "name": "displayName",
        "labels": "labels",
        "resource_name": "name",
    }
    resource_name: Optional[str] = None


@define(eq=False, slots=False)
class GcpKmsKeyRing(GcpResource):
    kind: ClassVar[str] = "gcp_kms_keyring"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v1",
        accessors=["projects", "locations", "keyRings"],
        action="list",
        request_parameter={"parent": "projects/{project}/locations/{location}"},
        request_parameter_in={"project", "location"},
        response_path="keyRings",
        required_iam_permissions=["cloudkms.keyRings.list"],
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "name",
        "name": last_segment("name"),
        "ctime": "createTime",
        "location": lambda js: parse_location(js.get("name", "")),
    }
    location: Optional[str] = None

    @classmethod
    def collect_resources(cls, builder: ResourceBuilder, **kwargs: Any) -> List[GcpResource]:
        # keyrings are listed per location, all locations are queried in parallel
        locations = builder.resources_of(GcpKmsLocation)

        def keyrings_in(location: GcpKmsLocation) -> List[GcpResource]:
            return super(GcpKmsKeyRing, cls).collect_resources(builder, location=location.id, **kwargs)

        return builder.fan_out(locations, keyrings_in)

    @classmethod
    def called_collect_apis(cls) -> List[GcpApiSpec]:
        return [GcpKmsLocation.api_spec, cls.api_spec]
