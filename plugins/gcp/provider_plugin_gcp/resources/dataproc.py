from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper, ResourceBuilder
from provider_plugin_gcp.resources.compute import GcpRegion
from providerlib.json import Json


@define(eq=False, slots=False)
class GcpDataprocCluster(GcpResource):
    kind: ClassVar[str] = "gcp_dataproc_cluster"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service="dataproc",
        version="v1",
        accessors=["projects", "regions", "clusters"],
        action="list",
        request_parameter={"projectId": "{project}", "region": "{region}"},
        request_parameter_in={"project", "region"},
        response_path="clusters",
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "clusterUuid",
        "name": "clusterName",
        "labels": "labels",
        "state": "status.state",
    }
    location: Optional[str] = None
    state: Optional[str] = None

    @classmethod
    def collect_resources(cls, builder: ResourceBuilder, **kwargs: Any) -> List[GcpResource]:
        # dataproc has no aggregated list: every region is queried, in parallel
        regions = builder.resources_of(GcpRegion)

        def clusters_in(region: GcpRegion) -> List[GcpResource]:
            clusters = super(GcpDataprocCluster, cls).collect_resources(builder, region=region.name, **kwargs)
            for cluster in clusters:
                if isinstance(cluster, GcpDataprocCluster):
                    cluster.location = region.name
            return clusters

        return builder.fan_out(regions, clusters_in)

    @classmethod
    def from_api(cls, json: Json) -> Optional[GcpDataprocCluster]:
        if "clusterUuid" not in json and "clusterName" in json:
            json = {**json, "clusterUuid": json["clusterName"]}
        return super().from_api(json)

    @classmethod
    def called_collect_apis(cls) -> List[GcpApiSpec]:
        return [GcpRegion.api_spec, cls.api_spec]
