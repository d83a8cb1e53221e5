from __future__ import annotations

from typing import ClassVar, Dict, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper
from provider_plugin_gcp.utils import parse_cloud_sql_type


@define(eq=False, slots=False)
class GcpSqlDatabaseInstance(GcpResource):
    kind: ClassVar[str] = "gcp_sql_database_instance"
    api_spec: ClassVar[GcpApiSpec] = GcpApiSpec(
        service="sqladmin",
        version="v1",
        accessors=["instances"],
        action="list",
        request_parameter={"project": "{project}"},
        request_parameter_in={"project"},
        response_path="items",
        required_iam_permissions=["cloudsql.instances.list"],
    )
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "name",
        "name": "name",
        "labels": "settings.userLabels",
        "ctime": "createTime",
        "region": "region",
        "state": "state",
        "database_version": "databaseVersion",
        "database_installed_version": "databaseInstalledVersion",
        "instance_type": "instanceType",
        "connection_name": "connectionName",
    }
    region: Optional[str] = None
    state: Optional[str] = None
    database_version: Optional[str] = None
    database_installed_version: Optional[str] = None
    instance_type: Optional[str] = None
    connection_name: Optional[str] = None

    @property
    def sql_type(self) -> str:
        """mysql, postgresql or sqlserver"""
        return parse_cloud_sql_type(self.database_installed_version or self.database_version or "")
