from __future__ import annotations

import logging
from collections import defaultdict
from typing import ClassVar, Dict, List, Optional, Set

from attr import define, field

from provider_plugin_gcp.gcp_client import GcpApiSpec, GcpClient
from provider_plugin_gcp.resources.base import GcpResource, Mapper, ResourceBuilder, last_segment
from provider_plugin_gcp.utils import audit_config_id
from providerlib.json import Json

log = logging.getLogger("provider.plugins.gcp")

service_name = "cloudresourcemanager"


@define(eq=False, slots=False)
class GcpOrganization(GcpResource):
    kind: ClassVar[str] = "gcp_organization"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v3",
        accessors=["organizations"],
        action="get",
        request_parameter={"name": "organizations/{organization}"},
        request_parameter_in={"organization"},
        required_iam_permissions=["resourcemanager.organizations.get"],
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": last_segment("name"),
        "name": "displayName",
        "ctime": "createTime",
        "state": "state",
        "directory_customer_id": "directoryCustomerId",
    }
    state: Optional[str] = None
    directory_customer_id: Optional[str] = None

    @property
    def resource_name(self) -> str:
        return f"organizations/{self.id}"

    @classmethod
    def get(cls, client: GcpClient, organization_id: str) -> Optional[GcpOrganization]:
        return cls.from_api(client.get(cls.api_spec, organization=organization_id))

    @classmethod
    def collect_resources(cls, builder: ResourceBuilder, **kwargs: str) -> List[GcpResource]:
        # a single organization is read with get, never listed
        if organization := cls.get(builder.client, kwargs["organization"]):
            return [organization]
        return []


@define(eq=False, slots=False)
class GcpFolder(GcpResource):
    kind: ClassVar[str] = "gcp_folder"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v3",
        accessors=["folders"],
        action="search",
        request_parameter={},
        request_parameter_in=set(),
        response_path="folders",
        required_iam_permissions=["resourcemanager.folders.list"],
    )
    list_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v3",
        accessors=["folders"],
        action="list",
        request_parameter={"parent": "{parent}"},
        request_parameter_in={"parent"},
        response_path="folders",
        required_iam_permissions=["resourcemanager.folders.list"],
    )
    get_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v3",
        accessors=["folders"],
        action="get",
        request_parameter={"name": "folders/{folder}"},
        request_parameter_in={"folder"},
        required_iam_permissions=["resourcemanager.folders.get"],
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": last_segment("name"),
        "name": "displayName",
        "ctime": "createTime",
        "parent": "parent",
        "state": "state",
    }
    parent: Optional[str] = None
    state: Optional[str] = None

    @property
    def resource_name(self) -> str:
        return f"folders/{self.id}"

    @classmethod
    def get(cls, client: GcpClient, folder_id: str) -> Optional[GcpFolder]:
        return cls.from_api(client.get(cls.get_spec, folder=folder_id))

    @classmethod
    def list_children(cls, client: GcpClient, parent: str) -> List[GcpFolder]:
        """Direct children of the parent (organizations/{id} or folders/{id}), not recursive."""
        return [f for js in client.list(cls.list_spec, parent=parent) if (f := cls.from_api(js)) is not None]

    @classmethod
    def search(cls, client: GcpClient) -> List[GcpFolder]:
        """All folders visible to the caller, in the whole resource hierarchy."""
        return [f for js in client.list(cls.api_spec) if (f := cls.from_api(js)) is not None]

    @classmethod
    def called_collect_apis(cls) -> List[GcpApiSpec]:
        return [cls.api_spec, cls.list_spec, cls.get_spec]


def get_children(folders: List[GcpFolder], root: str) -> List[GcpFolder]:
    """
    Returns every folder that is transitively reachable from root over parent edges.
    root is the resource name of an organization or folder, e.g. organizations/123 or folders/456.
    """
    by_parent: Dict[str, List[GcpFolder]] = defaultdict(list)
    for folder in folders:
        if folder.parent:
            by_parent[folder.parent].append(folder)

    result: List[GcpFolder] = []
    visited: Set[str] = set()
    stack = [root]
    while stack:
        parent = stack.pop()
        for child in by_parent.get(parent, []):
            if child.resource_name in visited:
                continue
            visited.add(child.resource_name)
            result.append(child)
            stack.append(child.resource_name)
    return result


@define(eq=False, slots=False)
class GcpProject(GcpResource):
    kind: ClassVar[str] = "gcp_project"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v3",
        accessors=["projects"],
        action="search",
        request_parameter={},
        request_parameter_in=set(),
        response_path="projects",
        required_iam_permissions=["resourcemanager.projects.list"],
    )
    get_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v3",
        accessors=["projects"],
        action="get",
        request_parameter={"name": "projects/{project}"},
        request_parameter_in={"project"},
        required_iam_permissions=["resourcemanager.projects.get"],
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "projectId",
        "name": "displayName",
        "number": last_segment("name"),
        "labels": "labels",
        "ctime": "createTime",
        "parent": "parent",
        "state": "state",
    }
    number: Optional[str] = None
    parent: Optional[str] = None
    state: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.state in (None, "ACTIVE")

    @classmethod
    def get(cls, client: GcpClient, project_id: str) -> Optional[GcpProject]:
        return cls.from_api(client.get(cls.get_spec, project=project_id))

    @classmethod
    def search(cls, client: GcpClient) -> List[GcpProject]:
        return [p for js in client.list(cls.api_spec) if (p := cls.from_api(js)) is not None]

    @classmethod
    def list_nested(
        cls, client: GcpClient, parent: str, folders: Optional[List[GcpFolder]] = None
    ) -> List[GcpProject]:
        """
        All active projects below parent (organizations/{id} or folders/{id}), including the ones in nested folders.
        folders is the result of GcpFolder.search, it is fetched when not given.
        """
        all_folders = GcpFolder.search(client) if folders is None else folders
        parents = {parent} | {f.resource_name for f in get_children(all_folders, parent)}
        projects = [p for p in cls.search(client) if p.parent in parents and p.active]
        log.debug(f"Found {len(projects)} projects below {parent}")
        return projects

    @classmethod
    def called_collect_apis(cls) -> List[GcpApiSpec]:
        return [cls.api_spec, cls.get_spec]


def _audit_log_types(js: Json) -> List[str]:
    return [c["logType"] for c in js.get("auditLogConfigs") or [] if c.get("logType")]


def _audit_exempted_members(js: Json) -> List[str]:
    return sorted({m for c in js.get("auditLogConfigs") or [] for m in c.get("exemptedMembers") or []})


@define(eq=False, slots=False)
class GcpAuditConfig(GcpResource):
    """Data access audit logging of one service, read from the iam policy of a project."""

    kind: ClassVar[str] = "gcp_audit_config"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service=service_name,
        version="v3",
        accessors=["projects"],
        action="getIamPolicy",
        request_parameter={"resource": "projects/{project}", "body": {"options": {"requestedPolicyVersion": 3}}},
        request_parameter_in={"project"},
        response_path="auditConfigs",
        required_iam_permissions=["resourcemanager.projects.getIamPolicy"],
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "service",
        "name": "service",
        "log_types": _audit_log_types,
        "exempted_members": _audit_exempted_members,
    }
    log_types: List[str] = field(factory=list)
    exempted_members: List[str] = field(factory=list)

    def adjust_from_api(self, builder: ResourceBuilder, source: Json) -> GcpResource:
        super().adjust_from_api(builder, source)
        # audit configs have no name of their own
        self.id = audit_config_id(f"projects/{self.project_id}", self.name or "")
        return self


@define(eq=False, slots=False)
class GcpWorkspaceCustomer(GcpResource):
    kind: ClassVar[str] = "gcp_workspace_customer"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service="admin",
        version="directory_v1",
        accessors=["customers"],
        action="get",
        request_parameter={"customerKey": "{customer}"},
        request_parameter_in={"customer"},
        required_iam_permissions=[],
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "id",
        "name": "customerDomain",
        "ctime": "customerCreationTime",
        "language": "language",
    }
    language: Optional[str] = None

    @classmethod
    def get(cls, client: GcpClient, customer_id: str) -> Optional[GcpWorkspaceCustomer]:
        return cls.from_api(client.get(cls.api_spec, customer=customer_id))
