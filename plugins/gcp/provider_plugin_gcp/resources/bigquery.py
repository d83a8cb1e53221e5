from __future__ import annotations

from typing import ClassVar, Dict, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper


@define(eq=False, slots=False)
class GcpBigQueryDataset(GcpResource):
    kind: ClassVar[str] = "gcp_bigquery_dataset"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service="bigquery",
        version="v2",
        accessors=["datasets"],
        action="list",
        request_parameter={"projectId": "{project}"},
        request_parameter_in={"project"},
        response_path="datasets",
        required_iam_permissions=["bigquery.datasets.get"],
    )
    # the dataset id is unique within the project, the api id is project:dataset
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "datasetReference.datasetId",
        "name": "friendlyName",
        "labels": "labels",
        "location": "location",
        "full_id": "id",
    }
    location: Optional[str] = None
    full_id: Optional[str] = None
