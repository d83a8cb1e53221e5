from typing import Dict, List, Optional

from providerlib.inventory import Platform

PlatformIdPrefix = "//platformid.api.mondoo.app/runtime/gcp"
Runtime = "gcp"
ObjectKind = "gcp-object"
Family = ["google"]

PlatformTitles: Dict[str, str] = {
    "gcp-organization": "GCP Organization",
    "gcp-folder": "GCP Folder",
    "gcp-project": "GCP Project",
    "gcp-compute-instance": "GCP Compute Instance",
    "gcp-compute-image": "GCP Compute Image",
    "gcp-compute-network": "GCP Compute Network",
    "gcp-compute-subnetwork": "GCP Compute Subnetwork",
    "gcp-compute-firewall": "GCP Compute Firewall",
    "gcp-gke-cluster": "GCP GKE Cluster",
    "gcp-storage-bucket": "GCP Storage Bucket",
    "gcp-bigquery-dataset": "GCP BigQuery Dataset",
    "gcp-sql-mysql": "GCP Cloud SQL for MySQL",
    "gcp-sql-postgresql": "GCP Cloud SQL for PostgreSQL",
    "gcp-sql-sqlserver": "GCP Cloud SQL for SQL Server",
    "gcp-dns-zone": "GCP Cloud DNS Zone",
    "gcp-kms-keyring": "GCP Cloud KMS Keyring",
    "gcp-memorystore-redis": "GCP Memorystore Redis",
    "gcp-memorystore-rediscluster": "GCP Memorystore Redis Cluster",
    "gcp-secretmanager-secret": "GCP Secret Manager Secret",
    "gcp-pubsub-topic": "GCP Pub/Sub Topic",
    "gcp-pubsub-subscription": "GCP Pub/Sub Subscription",
    "gcp-pubsub-snapshot": "GCP Pub/Sub Snapshot",
    "gcp-cloudrun-service": "GCP Cloud Run Service",
    "gcp-cloudrun-job": "GCP Cloud Run Job",
    "gcp-cloud-function": "GCP Cloud Function",
    "gcp-dataproc-cluster": "GCP Dataproc Cluster",
    "gcp-logging-bucket": "GCP Logging Bucket",
    "gcp-apikey": "GCP API Key",
    "gcp-iam-service-account": "GCP IAM Service Account",
}


def organization_platform_id(organization_id: str) -> str:
    return f"{PlatformIdPrefix}/organizations/{organization_id}"


def project_platform_id(project_id: str) -> str:
    return f"{PlatformIdPrefix}/projects/{project_id}"


def folder_platform_id(folder_id: str) -> str:
    return f"{PlatformIdPrefix}/folders/{folder_id}"


def resource_platform_id(service: str, project: str, region: str, object_type: str, name: str) -> str:
    return f"{PlatformIdPrefix}/{service}/v1/projects/{project}/regions/{region}/{object_type}/{name}"


def resource_technology_url(service: str, project: str, region: str, object_type: str, name: str) -> List[str]:
    return ["gcp", project, service, region, object_type, name]


def title_for_platform_name(name: str) -> str:
    return PlatformTitles.get(name, name)


def gcp_platform(
    name: str, title: Optional[str] = None, technology_url_segments: Optional[List[str]] = None
) -> Platform:
    return Platform(
        name=name,
        title=title or title_for_platform_name(name),
        runtime=Runtime,
        kind=ObjectKind,
        family=list(Family),
        technology_url_segments=technology_url_segments or [],
    )


def organization_platform(organization_id: str) -> Platform:
    return gcp_platform("gcp-organization", technology_url_segments=["gcp", organization_id, "organization"])


def folder_platform() -> Platform:
    return gcp_platform("gcp-folder")


def project_platform(project_id: str, title: Optional[str] = None) -> Platform:
    return gcp_platform("gcp-project", title, ["gcp", project_id, "project"])
