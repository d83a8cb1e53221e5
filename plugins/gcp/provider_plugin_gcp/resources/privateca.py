from __future__ import annotations

from typing import ClassVar, Dict, List, Optional

from attr import define, field

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper, last_segment
from provider_plugin_gcp.utils import extract_ca_pool_name, parse_location


@define(eq=False, slots=False)
class GcpCertificateAuthority(GcpResource):
    kind: ClassVar[str] = "gcp_certificate_authority"
    # `-` lists across all locations and pools
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service="privateca",
        version="v1",
        accessors=["projects", "locations", "caPools", "certificateAuthorities"],
        action="list",
        request_parameter={"parent": "projects/{project}/locations/-/caPools/-"},
        request_parameter_in={"project"},
        response_path="certificateAuthorities",
        required_iam_permissions=["privateca.certificateAuthorities.list"],
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "name",
        "name": last_segment("name"),
        "labels": "labels",
        "ctime": "createTime",
        "ca_pool": lambda js: extract_ca_pool_name(js.get("name", "")),
        "location": lambda js: parse_location(js.get("name", "")),
        "type": "type",
        "state": "state",
        "tier": "tier",
        "lifetime": "lifetime",
        "pem_ca_certificates": "pemCaCertificates",
    }
    ca_pool: Optional[str] = None
    location: Optional[str] = None
    type: Optional[str] = None
    state: Optional[str] = None
    tier: Optional[str] = None
    lifetime: Optional[str] = None
    pem_ca_certificates: List[str] = field(factory=list)
