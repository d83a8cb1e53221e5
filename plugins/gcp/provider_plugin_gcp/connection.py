from __future__ import annotations

import logging
from enum import Enum
from typing import ClassVar, Dict, Optional, Union

from attrs import frozen
from google.auth.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.errors import HttpError

from provider_plugin_gcp import platform
from provider_plugin_gcp.config import GcpConfig
from provider_plugin_gcp.credentials import (
    AmbientCredentialProvider,
    CredentialProvider,
    ServiceAccountCredentialProvider,
)
from provider_plugin_gcp.gcp_client import GcpClient
from provider_plugin_gcp.resources.base import GcpResource
from provider_plugin_gcp.resources.resourcemanager import GcpFolder, GcpOrganization, GcpProject, GcpWorkspaceCustomer
from providerlib.errors import AccessError, ConfigurationError, ProviderTypeMismatchError
from providerlib.inventory import Asset, Config, CredentialType

log = logging.getLogger("provider.plugins.gcp")

ConnectionType = "gcp"
WorkspaceConnectionType = "google-workspace"
SnapshotConnectionType = "gcp-snapshot"
GcrRuntime = "gcp-gcr"


class ResourceType(Enum):
    project = "project"
    organization = "organization"
    folder = "folder"
    workspace = "workspace"
    gcr = "gcr"


@frozen
class ProjectTarget:
    kind: ClassVar[ResourceType] = ResourceType.project
    project_id: str

    @property
    def id(self) -> str:
        return self.project_id


@frozen
class OrganizationTarget:
    kind: ClassVar[ResourceType] = ResourceType.organization
    organization_id: str

    @property
    def id(self) -> str:
        return self.organization_id


@frozen
class FolderTarget:
    kind: ClassVar[ResourceType] = ResourceType.folder
    folder_id: str

    @property
    def id(self) -> str:
        return self.folder_id


@frozen
class WorkspaceTarget:
    kind: ClassVar[ResourceType] = ResourceType.workspace
    customer_id: str
    impersonated_user: str

    @property
    def id(self) -> str:
        return self.customer_id


@frozen
class GcrTarget:
    kind: ClassVar[ResourceType] = ResourceType.gcr
    project_id: str
    repository: str = ""

    @property
    def id(self) -> str:
        return self.project_id

    @property
    def registry(self) -> str:
        """The registry path to walk, e.g. gcr.io/my-project/my-repo"""
        path = "gcr.io/" + self.project_id
        return path + "/" + self.repository if self.repository else path


ScanTarget = Union[ProjectTarget, OrganizationTarget, FolderTarget, WorkspaceTarget, GcrTarget]


def parse_scan_target(options: Dict[str, str], runtime: Optional[str] = None) -> ScanTarget:
    """
    Selects exactly one scan target from the connection options.
    Precedence: organization, project, workspace customer, folder.
    The legacy keys organization and project are only used when the canonical key is absent or empty.
    """
    organization_id = options.get("organization-id") or options.get("organization") or ""
    project_id = options.get("project-id") or options.get("project") or ""
    customer_id = options.get("customer-id") or ""
    folder_id = options.get("folder-id") or ""

    if runtime == GcrRuntime:
        if not project_id:
            raise ConfigurationError("gcr discovery requires a gcp project id")
        return GcrTarget(project_id, options.get("repository") or "")
    if organization_id:
        return OrganizationTarget(organization_id)
    if project_id:
        return ProjectTarget(project_id)
    if customer_id:
        return WorkspaceTarget(customer_id, options.get("impersonated-user-email") or "")
    if folder_id:
        return FolderTarget(folder_id)
    raise ConfigurationError(
        "requires a gcp organization id, gcp project id, google workspace customer id or gcp folder id"
    )


class GcpConnection:
    def __init__(
        self,
        connection_id: str,
        asset: Asset,
        conf: Config,
        credential_provider: Optional[CredentialProvider] = None,
        config: Optional[GcpConfig] = None,
    ) -> None:
        if conf.type not in (ConnectionType, WorkspaceConnectionType):
            raise ProviderTypeMismatchError(ConnectionType, conf.type)
        self.id = connection_id
        self.asset = asset
        self.conf = conf
        self.config = config or GcpConfig()
        self.target: ScanTarget = parse_scan_target(conf.options, conf.runtime)

        service_account = conf.credential_of(CredentialType.json)
        if isinstance(self.target, WorkspaceTarget):
            if service_account is None:
                raise ConfigurationError("google workspace provider requires a service account")
            if not self.target.impersonated_user:
                raise ConfigurationError("google workspace provider requires an impersonated-user-email")

        if credential_provider is not None:
            self.credential_provider = credential_provider
        elif service_account is not None:
            subject = self.target.impersonated_user if isinstance(self.target, WorkspaceTarget) else None
            self.credential_provider = ServiceAccountCredentialProvider(service_account.secret, subject)
        else:
            self.credential_provider = AmbientCredentialProvider()

        self.resource: Optional[GcpResource] = self._validate()

    @property
    def resource_type(self) -> ResourceType:
        return self.target.kind

    @property
    def resource_id(self) -> str:
        return self.target.id

    @property
    def name(self) -> str:
        if self.resource is not None and self.resource.name:
            return self.resource.name
        return f"GCP {self.resource_type.value.capitalize()} {self.resource_id}"

    @property
    def platform_id(self) -> str:
        if isinstance(self.target, OrganizationTarget):
            return platform.organization_platform_id(self.resource_id)
        if isinstance(self.target, FolderTarget):
            return platform.folder_platform_id(self.resource_id)
        if isinstance(self.target, WorkspaceTarget):
            return f"//platformid.api.mondoo.app/runtime/google-workspace/customer/{self.resource_id}"
        return platform.project_platform_id(self.resource_id)

    def credentials(self, *scopes: str) -> Credentials:
        return self.credential_provider.credentials(*scopes)

    def client(self, *scopes: str) -> AuthorizedHttp:
        return self.credential_provider.client(*scopes)

    def gcp_client(self, project_id: Optional[str] = None, *scopes: str) -> GcpClient:
        if project_id is None and isinstance(self.target, (ProjectTarget, GcrTarget)):
            project_id = self.target.project_id
        return GcpClient(self.credentials(*scopes), project_id=project_id)

    def _validate(self) -> Optional[GcpResource]:
        # one read to make sure the target exists and is accessible
        target = self.target
        try:
            if isinstance(target, OrganizationTarget):
                return GcpOrganization.get(self.gcp_client(), target.organization_id)
            elif isinstance(target, ProjectTarget):
                return GcpProject.get(self.gcp_client(), target.project_id)
            elif isinstance(target, FolderTarget):
                return GcpFolder.get(self.gcp_client(), target.folder_id)
            elif isinstance(target, WorkspaceTarget):
                client = GcpClient(self.credentials(*self.config.workspace_scopes))
                return GcpWorkspaceCustomer.get(client, target.customer_id)
            return None
        except HttpError as e:
            log.debug(f"Validating read of {target.kind.value} {target.id} failed: {e}")
            raise AccessError(target.kind.value, target.id) from e

