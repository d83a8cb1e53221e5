from __future__ import annotations

from typing import ClassVar, Dict, List, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec, GcpClient
from provider_plugin_gcp.resources.base import GcpResource, Mapper
from provider_plugin_gcp.utils import extract_constraint_name
from providerlib.json import Json


def _enforced(js: Json) -> Optional[bool]:
    rules = (js.get("spec") or {}).get("rules") or []
    if not rules:
        return None
    return any(rule.get("enforce") is True for rule in rules)


@define(eq=False, slots=False)
class GcpOrgPolicy(GcpResource):
    """An organization policy set on a project, folder or organization, named after its constraint."""

    kind: ClassVar[str] = "gcp_org_policy"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service="orgpolicy",
        version="v2",
        accessors=["projects", "policies"],
        action="list",
        request_parameter={"parent": "projects/{project}"},
        request_parameter_in={"project"},
        response_path="policies",
        required_iam_permissions=["orgpolicy.policies.list"],
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "name",
        "name": lambda js: extract_constraint_name(js.get("name", "")),
        "etag": "spec.etag",
        "update_time": "spec.updateTime",
        "inherit_from_parent": "spec.inheritFromParent",
        "reset": "spec.reset",
        "enforced": _enforced,
    }
    etag: Optional[str] = None
    update_time: Optional[str] = None
    inherit_from_parent: Optional[bool] = None
    reset: Optional[bool] = None
    enforced: Optional[bool] = None

    @classmethod
    def list_for(cls, client: GcpClient, parent: str) -> List[GcpOrgPolicy]:
        """Policies of any parent: organizations/{id}, folders/{id} or projects/{id}."""
        kind = parent.split("/", maxsplit=1)[0]
        spec = GcpApiSpec(
            service=cls.api_spec.service,
            version=cls.api_spec.version,
            accessors=[kind, "policies"],
            action="list",
            request_parameter={"parent": parent},
            request_parameter_in=set(),
            response_path="policies",
            required_iam_permissions=["orgpolicy.policies.list"],
        )
        return [p for js in client.list(spec) if (p := cls.from_api(js)) is not None]
