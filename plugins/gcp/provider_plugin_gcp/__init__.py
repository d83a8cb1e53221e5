from typing import Any, Dict, List, Optional

import requests
from googleapiclient.errors import HttpError

from providerlib.args import ArgumentParser
from providerlib.config import Config
from providerlib.errors import ConfigurationError, DiscoveryError
from providerlib.inventory import Asset, Config as ConnectionConfig, Credential, Discovery, Inventory
from providerlib.plugin import ConnectResult, ProviderPlugin
from .config import GcpConfig
from .connection import (
    ConnectionType,
    FolderTarget,
    GcpConnection,
    GcrRuntime,
    GcrTarget,
    OrganizationTarget,
    ProjectTarget,
    SnapshotConnectionType,
    WorkspaceTarget,
)
from .credentials import CredentialProvider, find_service_account
from .discovery import DiscoveryAuto, discover
from .platform import folder_platform, gcp_platform, organization_platform, project_platform
from .utils import log

CliUsage = "missing argument, use `gcp project id`, `gcp organization id`, `gcp folder id` or `gcp gcr id`"

# first cli argument -> option key of the connection config
CliResourceKeys = {
    "org": "organization-id",
    "organization": "organization-id",
    "project": "project-id",
    "folder": "folder-id",
}


class GcpProviderPlugin(ProviderPlugin):
    """Google Cloud Platform inventory provider.

    Resolves an organization, folder, project or container registry into an
    inventory of assets, one asset per discovered cloud object.
    """

    provider_name = "gcp"

    def __init__(
        self, config: Optional[GcpConfig] = None, credential_provider: Optional[CredentialProvider] = None
    ) -> None:
        super().__init__()
        self.config = config
        self.credential_provider = credential_provider

    @staticmethod
    def add_args(arg_parser: ArgumentParser) -> None:
        arg_parser.add_argument(
            "target",
            nargs="*",
            help="What to connect to: org|project|folder|gcr|snapshot|instance followed by its id or name",
        )
        arg_parser.add_argument(
            "--credentials-path",
            dest="credentials_path",
            default=None,
            help="Path to a service account json file. Credential env vars take precedence.",
        )
        arg_parser.add_argument(
            "--discover",
            dest="discover",
            nargs="+",
            default=None,
            help="Discovery targets, space or comma separated, e.g. auto, all, projects,instances (default: auto)",
        )
        arg_parser.add_argument("--project-id", dest="project_id", default=None, help="Project of gcr and snapshots")
        arg_parser.add_argument("--repository", dest="repository", default=None, help="GCR repository to scan")
        arg_parser.add_argument("--zone", dest="zone", default=None, help="Zone of the snapshot or instance")
        arg_parser.add_argument(
            "--create-snapshot",
            dest="create_snapshot",
            action="store_true",
            default=False,
            help="Create a snapshot of the instance before scanning",
        )

    @staticmethod
    def add_config(config: Config) -> None:
        config.add_config(GcpConfig)

    @property
    def gcp_config(self) -> GcpConfig:
        if self.config is None:
            try:
                self.config = Config.gcp
            except AttributeError:
                self.config = GcpConfig()
        return self.config

    def parse_cli(self, args: List[str], flags: Dict[str, Any]) -> Asset:
        if len(args) != 2:
            raise ConfigurationError(CliUsage)
        kind, identifier = args
        conf = ConnectionConfig(type=ConnectionType)
        credentials_path = flags.get("credentials_path") or self.gcp_config.credentials_path
        if (blob := find_service_account(credentials_path)) is not None:
            conf.credentials.append(Credential.json_blob(blob))

        if kind in CliResourceKeys:
            conf.options[CliResourceKeys[kind]] = identifier
            targets = self.gcp_config.discovery_targets(flags.get("discover"))
            conf.discover = Discovery(targets or [DiscoveryAuto])
        elif kind == "gcr":
            conf.runtime = GcrRuntime
            conf.options["project-id"] = identifier
            if repository := flags.get("repository"):
                conf.options["repository"] = repository
            conf.discover = Discovery([DiscoveryAuto])
        elif kind == "snapshot":
            conf.type = SnapshotConnectionType
            conf.options.update(
                {"snapshot-name": identifier, "project-id": flags.get("project_id") or "", "type": "snapshot"}
            )
            conf.options["zone"] = flags.get("zone") or ""
        elif kind == "instance":
            conf.type = SnapshotConnectionType
            conf.options.update(
                {"instance-name": identifier, "project-id": flags.get("project_id") or "", "type": "instance"}
            )
            conf.options["zone"] = flags.get("zone") or ""
            conf.options["create-snapshot"] = "true" if flags.get("create_snapshot") else "false"
        else:
            raise ConfigurationError(CliUsage)
        return Asset(connections=[conf])

    def connect(self, asset: Asset) -> ConnectResult:
        if not asset.connections:
            raise ConfigurationError("asset has no connection config")
        conf = asset.connections[0]
        if conf.type == SnapshotConnectionType:
            raise ConfigurationError("gcp snapshot scans are not supported by this provider")

        conn = GcpConnection("", asset, conf, self.credential_provider, self.gcp_config)
        conn.id = conf.id = self.register_connection(conn)
        log.debug(f"Connected to {conn.resource_type.value} {conn.resource_id} as connection {conn.id}")

        target = conn.target
        if not isinstance(target, GcrTarget):
            asset.name = asset.name or conn.name
            asset.platform_ids = [conn.platform_id]
        if isinstance(target, OrganizationTarget):
            asset.platform = organization_platform(target.organization_id)
        elif isinstance(target, FolderTarget):
            asset.platform = folder_platform()
        elif isinstance(target, ProjectTarget):
            asset.platform = project_platform(target.project_id)
        elif isinstance(target, WorkspaceTarget):
            asset.platform = gcp_platform("google-workspace", "Google Workspace", ["saas", "google-workspace"])
            asset.platform.runtime = "google-workspace"
            asset.platform.kind = "api"
        elif isinstance(target, GcrTarget):
            asset.name = asset.name or target.registry
            asset.platform = gcp_platform("gcr", "Google Container Registry", ["gcp", target.project_id, "gcr"])
            asset.platform.runtime = GcrRuntime

        inventory: Optional[Inventory] = None
        if conf.discover is not None:
            try:
                inventory = Inventory(discover(conn))
            except (HttpError, requests.RequestException) as e:
                raise DiscoveryError(f"discovery of {target.kind.value} {target.id} failed: {e}") from e
        if isinstance(target, GcrTarget):
            # the images are the inventory, the registry itself is not scanned again
            conf.discover = None
        return ConnectResult(conn.id, asset.name or conn.name, asset, inventory)
