from __future__ import annotations

from typing import ClassVar, Dict, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper


@define(eq=False, slots=False)
class GcpDnsManagedZone(GcpResource):
    kind: ClassVar[str] = "gcp_dns_managed_zone"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service="dns",
        version="v1",
        accessors=["managedZones"],
        action="list",
        request_parameter={"project": "{project}"},
        request_parameter_in={"project"},
        response_path="managedZones",
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "id",
        "name": "name",
        "labels": "labels",
        "ctime": "creationTime",
        "dns_name": "dnsName",
        "visibility": "visibility",
        "dnssec_state": "dnssecConfig.state",
        "description": "description",
    }
    dns_name: Optional[str] = None
    visibility: Optional[str] = None
    dnssec_state: Optional[str] = None
    description: Optional[str] = None
