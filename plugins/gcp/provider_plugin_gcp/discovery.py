"""
Expands a connected organization, folder, project or container registry into an asset tree.

A folder or project asset carries what was found below it as related assets, every object appears exactly once
in the tree. Asset.all_assets flattens it.

Every requested discovery target maps to one resource kind. Each kind is listed at most once per
project and every listed object becomes one asset, in listing order. Any listing error aborts the
whole discovery.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Set, Type

from attr import define, field

from provider_plugin_gcp import platform
from provider_plugin_gcp.connection import (
    FolderTarget,
    GcpConnection,
    GcrTarget,
    OrganizationTarget,
    ProjectTarget,
)
from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.gcr import GcrImages
from provider_plugin_gcp.resources.apikeys import GcpApiKey
from provider_plugin_gcp.resources.base import GcpResource, ResourceBuilder
from provider_plugin_gcp.resources.bigquery import GcpBigQueryDataset
from provider_plugin_gcp.resources.cloudfunctions import GcpCloudFunction
from provider_plugin_gcp.resources.cloudlogging import GcpLoggingBucket
from provider_plugin_gcp.resources.compute import GcpFirewall, GcpImage, GcpInstance, GcpNetwork, GcpSubnetwork
from provider_plugin_gcp.resources.container import GcpContainerCluster
from provider_plugin_gcp.resources.dataproc import GcpDataprocCluster
from provider_plugin_gcp.resources.dns import GcpDnsManagedZone
from provider_plugin_gcp.resources.iam import GcpServiceAccount
from provider_plugin_gcp.resources.kms import GcpKmsKeyRing
from provider_plugin_gcp.resources.pubsub import GcpPubSubSnapshot, GcpPubSubSubscription, GcpPubSubTopic
from provider_plugin_gcp.resources.redis import GcpRedisCluster, GcpRedisInstance
from provider_plugin_gcp.resources.resourcemanager import GcpFolder, GcpOrganization, GcpProject, get_children
from provider_plugin_gcp.resources.run import GcpCloudRunJob, GcpCloudRunService
from provider_plugin_gcp.resources.secretmanager import GcpSecret
from provider_plugin_gcp.resources.sqladmin import GcpSqlDatabaseInstance
from provider_plugin_gcp.resources.storage import GcpBucket
from provider_plugin_gcp.utils import split_targets
from providerlib.inventory import Asset, Config, with_parent_connection_id, without_discovery

log = logging.getLogger("provider.plugins.gcp")

# discovery flags
DiscoveryAuto = "auto"
DiscoveryAll = "all"

# top-level assets
DiscoveryOrganization = "organization"
DiscoveryFolders = "folders"
DiscoveryProjects = "projects"

# resources
DiscoveryComputeInstances = "instances"
DiscoveryComputeImages = "compute-images"
DiscoveryComputeNetworks = "compute-networks"
DiscoveryComputeSubnetworks = "compute-subnetworks"
DiscoveryComputeFirewalls = "compute-firewalls"
DiscoveryGkeClusters = "gke-clusters"
DiscoveryStorageBuckets = "storage-buckets"
DiscoveryBigQueryDatasets = "bigquery-datasets"
DiscoveryCloudSqlMySql = "cloud-sql-mysql"
DiscoveryCloudSqlPostgreSql = "cloud-sql-postgresql"
DiscoveryCloudSqlSqlServer = "cloud-sql-sqlserver"
DiscoveryCloudDnsZones = "cloud-dns-zones"
DiscoveryCloudKmsKeyrings = "cloud-kms-keyrings"
DiscoveryMemorystoreRedis = "memorystore-redis"
DiscoveryMemorystoreRedisCluster = "memorystore-rediscluster"
DiscoverySecretManager = "secretmanager-secrets"
DiscoveryPubSubTopics = "pubsub-topics"
DiscoveryPubSubSubscriptions = "pubsub-subscriptions"
DiscoveryPubSubSnapshots = "pubsub-snapshots"
DiscoveryCloudRunServices = "cloudrun-services"
DiscoveryCloudRunJobs = "cloudrun-jobs"
DiscoveryCloudFunctions = "cloud-functions"
DiscoveryDataprocClusters = "dataproc-clusters"
DiscoveryLoggingBuckets = "logging-buckets"
DiscoveryApiKeys = "apikeys"
DiscoveryIamServiceAccounts = "iam-service-accounts"

All = [DiscoveryOrganization, DiscoveryFolders, DiscoveryProjects]

AllApiResources = [
    DiscoveryComputeImages,
    DiscoveryComputeNetworks,
    DiscoveryComputeSubnetworks,
    DiscoveryComputeFirewalls,
    DiscoveryGkeClusters,
    DiscoveryStorageBuckets,
    DiscoveryBigQueryDatasets,
    DiscoveryCloudSqlMySql,
    DiscoveryCloudSqlPostgreSql,
    DiscoveryCloudSqlSqlServer,
    DiscoveryCloudDnsZones,
    DiscoveryCloudKmsKeyrings,
    DiscoveryMemorystoreRedis,
    DiscoveryMemorystoreRedisCluster,
    DiscoveryComputeInstances,
    DiscoverySecretManager,
    DiscoveryPubSubTopics,
    DiscoveryPubSubSubscriptions,
    DiscoveryPubSubSnapshots,
    DiscoveryCloudRunServices,
    DiscoveryCloudRunJobs,
    DiscoveryCloudFunctions,
    DiscoveryDataprocClusters,
    DiscoveryLoggingBuckets,
    DiscoveryApiKeys,
    DiscoveryIamServiceAccounts,
]

Auto = All + AllApiResources

AllCloudSqlTypes = [DiscoveryCloudSqlPostgreSql, DiscoveryCloudSqlSqlServer, DiscoveryCloudSqlMySql]

KnownTargets = {DiscoveryAuto, DiscoveryAll, *All, *AllApiResources}


def get_discovery_targets(config: Config) -> List[str]:
    targets = split_targets(config.discovery_targets())
    for unknown in [t for t in targets if t not in KnownTargets]:
        log.warning(f"Unknown discovery target {unknown} is ignored")
    if not targets:
        return list(Auto)
    if DiscoveryAll in targets:
        return All + AllApiResources
    if DiscoveryAuto in targets:
        # the explicitly requested targets first, followed by the auto targets
        result: List[str] = []
        for target in [t for t in targets if t != DiscoveryAuto] + Auto:
            if target not in result:
                result.append(target)
        return result
    return targets


@define
class ResourceDiscovery:
    """
    How one discovery target turns a listed resource into an asset.
    key is the object name used in the platform id, url_key the one used in the technology url.
    """

    target: str
    clazz: Type[GcpResource]
    service: str
    object_type: Callable[[GcpResource], str]
    platform_name: Callable[[GcpResource], str]
    region: Callable[[GcpResource], str]
    key: Callable[[GcpResource], str] = lambda r: r.name or r.id
    url_key: Optional[Callable[[GcpResource], str]] = None
    name: Callable[[GcpResource], str] = lambda r: r.name or r.id
    labels: Callable[[GcpResource], Dict[str, str]] = lambda r: {}
    accept: Callable[[GcpResource], bool] = lambda r: True

    def asset(self, resource: GcpResource, project_id: str, conf: Config) -> Asset:
        object_type = self.object_type(resource)
        region = self.region(resource) or "global"
        key = self.key(resource)
        url_key = self.url_key(resource) if self.url_key else key
        platform_name = self.platform_name(resource)
        return Asset(
            name=self.name(resource),
            platform_ids=[platform.resource_platform_id(self.service, project_id, region, object_type, key)],
            platform=platform.gcp_platform(
                platform_name,
                technology_url_segments=platform.resource_technology_url(
                    self.service, project_id, region, object_type, url_key
                ),
            ),
            labels=self.labels(resource),
            connections=[conf.clone(without_discovery(), with_parent_connection_id(conf.id))],
        )


def fixed(value: str) -> Callable[[GcpResource], str]:
    return lambda _: value


def own_labels(resource: GcpResource) -> Dict[str, str]:
    return {k: v for k, v in resource.labels.items() if v is not None}


def instance_labels(resource: GcpResource) -> Dict[str, str]:
    return {"mondoo.com/instance": resource.id, **own_labels(resource)}


def sql_type_of(target: str) -> Callable[[GcpResource], bool]:
    sql_type = target.rsplit("-", 1)[-1]

    def accept(resource: GcpResource) -> bool:
        if isinstance(resource, GcpSqlDatabaseInstance) and resource.sql_type == sql_type:
            return True
        log.debug(f"gcp.discovery> skipping cloud sql instance {resource.name} for target {target}")
        return False

    return accept


def _cloud_sql(target: str) -> ResourceDiscovery:
    return ResourceDiscovery(
        target,
        GcpSqlDatabaseInstance,
        "cloud-sql",
        object_type=lambda r: r.sql_type,  # type: ignore
        platform_name=lambda r: f"gcp-sql-{r.sql_type}",  # type: ignore
        region=lambda r: r.region,  # type: ignore
        accept=sql_type_of(target),
    )


ResourceDiscoveries: Dict[str, ResourceDiscovery] = {
    d.target: d
    for d in [
        ResourceDiscovery(
            DiscoveryComputeInstances,
            GcpInstance,
            "compute",
            object_type=fixed("instance"),
            platform_name=fixed("gcp-compute-instance"),
            region=lambda r: r.zone,  # type: ignore
            labels=instance_labels,
            accept=lambda r: r.running,  # type: ignore
        ),
        ResourceDiscovery(
            DiscoveryComputeImages,
            GcpImage,
            "compute",
            object_type=fixed("image"),
            platform_name=fixed("gcp-compute-image"),
            region=fixed("global"),
            labels=own_labels,
        ),
        ResourceDiscovery(
            DiscoveryComputeNetworks,
            GcpNetwork,
            "compute",
            object_type=fixed("network"),
            platform_name=fixed("gcp-compute-network"),
            region=fixed("global"),
        ),
        ResourceDiscovery(
            DiscoveryComputeSubnetworks,
            GcpSubnetwork,
            "compute",
            object_type=fixed("subnetwork"),
            platform_name=fixed("gcp-compute-subnetwork"),
            region=lambda r: r.region,  # type: ignore
        ),
        ResourceDiscovery(
            DiscoveryComputeFirewalls,
            GcpFirewall,
            "compute",
            object_type=fixed("firewall"),
            platform_name=fixed("gcp-compute-firewall"),
            region=fixed("global"),
        ),
        ResourceDiscovery(
            DiscoveryGkeClusters,
            GcpContainerCluster,
            "gke",
            object_type=fixed("cluster"),
            platform_name=fixed("gcp-gke-cluster"),
            region=lambda r: r.location,  # type: ignore
            labels=own_labels,
        ),
        ResourceDiscovery(
            DiscoveryStorageBuckets,
            GcpBucket,
            "storage",
            object_type=fixed("bucket"),
            platform_name=fixed("gcp-storage-bucket"),
            region=lambda r: r.location,  # type: ignore
            labels=own_labels,
        ),
        ResourceDiscovery(
            DiscoveryBigQueryDatasets,
            GcpBigQueryDataset,
            "bigquery",
            object_type=fixed("dataset"),
            platform_name=fixed("gcp-bigquery-dataset"),
            region=lambda r: r.location,  # type: ignore
            key=lambda r: r.id,
            name=lambda r: r.id,
            labels=own_labels,
        ),
        _cloud_sql(DiscoveryCloudSqlMySql),
        _cloud_sql(DiscoveryCloudSqlPostgreSql),
        _cloud_sql(DiscoveryCloudSqlSqlServer),
        ResourceDiscovery(
            DiscoveryCloudDnsZones,
            GcpDnsManagedZone,
            "cloud-dns",
            object_type=fixed("zone"),
            platform_name=fixed("gcp-dns-zone"),
            region=fixed("global"),
            key=lambda r: r.id,
            url_key=lambda r: r.name or r.id,
        ),
        ResourceDiscovery(
            DiscoveryCloudKmsKeyrings,
            GcpKmsKeyRing,
            "cloud-kms",
            object_type=fixed("keyring"),
            platform_name=fixed("gcp-kms-keyring"),
            region=lambda r: r.location,  # type: ignore
        ),
        ResourceDiscovery(
            DiscoveryMemorystoreRedis,
            GcpRedisInstance,
            "memorystore",
            object_type=fixed("redis"),
            platform_name=fixed("gcp-memorystore-redis"),
            region=lambda r: r.location_id,  # type: ignore
        ),
        ResourceDiscovery(
            DiscoveryMemorystoreRedisCluster,
            GcpRedisCluster,
            "memorystore",
            object_type=fixed("rediscluster"),
            platform_name=fixed("gcp-memorystore-rediscluster"),
            region=lambda r: r.location,  # type: ignore
        ),
        ResourceDiscovery(
            DiscoverySecretManager,
            GcpSecret,
            "secretmanager",
            object_type=fixed("secret"),
            platform_name=fixed("gcp-secretmanager-secret"),
            region=fixed("global"),
            labels=own_labels,
        ),
        ResourceDiscovery(
            DiscoveryPubSubTopics,
            GcpPubSubTopic,
            "pubsub",
            object_type=fixed("topic"),
            platform_name=fixed("gcp-pubsub-topic"),
            region=fixed("global"),
        ),
        ResourceDiscovery(
            DiscoveryPubSubSubscriptions,
            GcpPubSubSubscription,
            "pubsub",
            object_type=fixed("subscription"),
            platform_name=fixed("gcp-pubsub-subscription"),
            region=fixed("global"),
        ),
        ResourceDiscovery(
            DiscoveryPubSubSnapshots,
            GcpPubSubSnapshot,
            "pubsub",
            object_type=fixed("snapshot"),
            platform_name=fixed("gcp-pubsub-snapshot"),
            region=fixed("global"),
        ),
        ResourceDiscovery(
            DiscoveryCloudRunServices,
            GcpCloudRunService,
            "cloudrun",
            object_type=fixed("service"),
            platform_name=fixed("gcp-cloudrun-service"),
            region=lambda r: r.region,  # type: ignore
            labels=own_labels,
        ),
        ResourceDiscovery(
            DiscoveryCloudRunJobs,
            GcpCloudRunJob,
            "cloudrun",
            object_type=fixed("job"),
            platform_name=fixed("gcp-cloudrun-job"),
            region=lambda r: r.region,  # type: ignore
            labels=own_labels,
        ),
        ResourceDiscovery(
            DiscoveryCloudFunctions,
            GcpCloudFunction,
            "cloud-functions",
            object_type=fixed("function"),
            platform_name=fixed("gcp-cloud-function"),
            region=lambda r: r.location,  # type: ignore
            labels=own_labels,
        ),
        ResourceDiscovery(
            DiscoveryDataprocClusters,
            GcpDataprocCluster,
            "dataproc",
            object_type=fixed("cluster"),
            platform_name=fixed("gcp-dataproc-cluster"),
            region=lambda r: r.location,  # type: ignore
            labels=own_labels,
        ),
        ResourceDiscovery(
            DiscoveryLoggingBuckets,
            GcpLoggingBucket,
            "logging",
            object_type=fixed("bucket"),
            platform_name=fixed("gcp-logging-bucket"),
            region=lambda r: r.location,  # type: ignore
        ),
        ResourceDiscovery(
            DiscoveryApiKeys,
            GcpApiKey,
            "apikeys",
            object_type=fixed("key"),
            platform_name=fixed("gcp-apikey"),
            region=fixed("global"),
            key=lambda r: r.id,
        ),
        ResourceDiscovery(
            DiscoveryIamServiceAccounts,
            GcpServiceAccount,
            "iam",
            object_type=fixed("service-account"),
            platform_name=fixed("gcp-iam-service-account"),
            region=fixed("global"),
            key=lambda r: r.id,
        ),
    ]
}


@define
class Discoverer:
    """One discovery run for one connection."""

    conn: GcpConnection
    builder: ResourceBuilder
    targets: List[str]
    gcr: Optional[GcrImages] = None
    _seen: Set[str] = field(factory=set)

    def discover(self) -> List[Asset]:
        target = self.conn.target
        log.info(f"Discover {target.kind.value} {target.id} with targets {', '.join(self.targets)}")
        if isinstance(target, OrganizationTarget):
            return self.discover_organization(target)
        elif isinstance(target, FolderTarget):
            return self.discover_folder(target)
        elif isinstance(target, ProjectTarget):
            return self.discover_project_root(target)
        elif isinstance(target, GcrTarget):
            gcr = self.gcr or GcrImages(self.conn.credentials())
            return gcr.list_repository(target.registry, recursive=True)
        log.info(f"Nothing to discover for {target.kind.value} {target.id}")
        return []

    def discover_organization(self, target: OrganizationTarget) -> List[Asset]:
        conf = self.conn.conf
        root = f"organizations/{target.organization_id}"
        assets: List[Asset] = []
        folders: List[GcpFolder] = []
        if DiscoveryProjects in self.targets or DiscoveryFolders in self.targets:
            folders = GcpFolder.search(self.builder.client)
        if DiscoveryProjects in self.targets:
            for project in GcpProject.list_nested(self.builder.client, root, folders):
                project_conf = conf.clone(with_parent_connection_id(conf.id))
                project_conf.options.pop("organization-id", None)
                project_conf.options.pop("organization", None)
                project_conf.options["project-id"] = project.id
                project_asset = self.project_asset(project, project_conf)
                project_asset.related_assets = self.discover_project(project.id, project_conf)
                assets.append(project_asset)
        if DiscoveryFolders in self.targets:
            for folder in get_children(folders, root):
                # discovery stays enabled: the folder discovers its own projects
                folder_conf = conf.clone(with_parent_connection_id(conf.id))
                folder_conf.options.pop("organization-id", None)
                folder_conf.options.pop("organization", None)
                folder_conf.options["folder-id"] = folder.id
                assets.append(self.folder_asset(folder.id, folder_conf))
        return assets

    def discover_folder(self, target: FolderTarget) -> List[Asset]:
        conf = self.conn.conf
        assets: List[Asset] = []
        if DiscoveryFolders in self.targets:
            assets.append(self.folder_asset(target.folder_id, conf.clone(with_parent_connection_id(conf.id))))
        projects: List[Asset] = []
        if DiscoveryProjects in self.targets:
            for project in GcpProject.list_nested(self.builder.client, f"folders/{target.folder_id}"):
                project_conf = conf.clone(with_parent_connection_id(conf.id))
                project_conf.options.pop("folder-id", None)
                project_conf.options["project-id"] = project.id
                projects.append(self.project_asset(project, project_conf))
        if assets:
            assets[0].related_assets = projects
            return assets
        return projects

    def discover_project_root(self, target: ProjectTarget) -> List[Asset]:
        conf = self.conn.conf
        assets: List[Asset] = []
        if DiscoveryProjects in self.targets:
            project = self.conn.resource
            if not isinstance(project, GcpProject):
                project = GcpProject(id=target.project_id)
            assets.append(
                Asset(
                    name="GCP Project " + target.project_id,
                    platform_ids=[platform.project_platform_id(target.project_id)],
                    platform=platform.project_platform(target.project_id),
                    labels=own_labels(project),
                    connections=[conf.clone(without_discovery(), with_parent_connection_id(conf.id))],
                )
            )
        resources = self.discover_project(target.project_id, conf)
        if assets:
            assets[0].related_assets = resources
            return assets
        return resources

    def discover_project(self, project_id: str, conf: Config) -> List[Asset]:
        builder = self.builder.for_project(project_id)
        assets: List[Asset] = []
        for target in self.targets:
            if (discovery := ResourceDiscoveries.get(target)) is None:
                continue
            for resource in builder.resources_of(discovery.clazz):
                if discovery.accept(resource):
                    asset = discovery.asset(resource, project_id, conf)
                    if self._first_time(asset):
                        assets.append(asset)
        return assets

    def project_asset(self, project: GcpProject, conf: Config) -> Asset:
        name = project.name or project.id
        return Asset(
            name=name,
            platform_ids=[platform.project_platform_id(project.id)],
            platform=platform.project_platform(project.id, "GCP Project " + name),
            labels=own_labels(project),
            connections=[conf],
        )

    @staticmethod
    def folder_asset(folder_id: str, conf: Config) -> Asset:
        return Asset(
            name="GCP Folder " + folder_id,
            platform_ids=[platform.folder_platform_id(folder_id)],
            platform=platform.folder_platform(),
            connections=[conf],
        )

    def _first_time(self, asset: Asset) -> bool:
        # the same object can not become two assets
        key = asset.platform_ids[0]
        if key in self._seen:
            return False
        self._seen.add(key)
        return True


def discover(conn: GcpConnection, gcr: Optional[GcrImages] = None) -> List[Asset]:
    targets = get_discovery_targets(conn.conf)
    with ThreadPoolExecutor(max_workers=conn.config.pool_size, thread_name_prefix="gcp-discovery") as executor:
        builder = ResourceBuilder(conn.gcp_client(), conn.config, executor)
        return Discoverer(conn, builder, targets, gcr).discover()


def called_discovery_apis() -> List[GcpApiSpec]:
    """Every api spec that a discovery run may call."""
    classes: List[Type[GcpResource]] = [GcpOrganization, GcpFolder, GcpProject]
    for d in ResourceDiscoveries.values():
        if d.clazz not in classes:
            classes.append(d.clazz)
    specs: Dict[str, GcpApiSpec] = {}
    for clazz in classes:
        for spec in clazz.called_collect_apis():
            specs.setdefault(spec.fqn, spec)
    return list(specs.values())


def required_iam_permissions() -> List[str]:
    return sorted({perm for spec in called_discovery_apis() for perm in spec.iam_permissions})
