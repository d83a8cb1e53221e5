from __future__ import annotations

from typing import ClassVar, Dict, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper


@define(eq=False, slots=False)
class GcpServiceAccount(GcpResource):
    kind: ClassVar[str] = "gcp_service_account"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service="iam",
        version="v1",
        accessors=["projects", "serviceAccounts"],
        action="list",
        request_parameter={"name": "projects/{project}"},
        request_parameter_in={"project"},
        response_path="accounts",
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "uniqueId",
        "name": "email",
        "display_name": "displayName",
        "disabled": "disabled",
        "oauth2_client_id": "oauth2ClientId",
    }
    display_name: Optional[str] = None
    disabled: Optional[bool] = None
    oauth2_client_id: Optional[str] = None
