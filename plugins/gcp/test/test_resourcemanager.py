from google.auth.credentials import AnonymousCredentials

from provider_plugin_gcp.gcp_client import GcpClient
from provider_plugin_gcp.resources.base import ResourceBuilder
from provider_plugin_gcp.resources.resourcemanager import (
    GcpAuditConfig,
    GcpFolder,
    GcpOrganization,
    GcpProject,
    get_children,
)
from fake_client import Responses, calls_of


def folder(folder_id: str, parent: str) -> GcpFolder:
    return GcpFolder(id=folder_id, parent=parent)


def test_get_children() -> None:
    folders = [
        folder("1", "organizations/o"),
        folder("2", "folders/1"),
        folder("3", "folders/2"),
        folder("4", "organizations/other"),
        folder("5", "folders/1"),
    ]
    assert {f.id for f in get_children(folders, "organizations/o")} == {"1", "2", "3", "5"}
    assert {f.id for f in get_children(folders, "folders/2")} == {"3"}
    assert get_children(folders, "folders/3") == []
    assert get_children([], "organizations/o") == []


def test_get_children_with_cycle() -> None:
    folders = [folder("1", "folders/2"), folder("2", "folders/1"), folder("3", "folders/1")]
    children = get_children(folders, "folders/1")
    # every folder is reported once, the walk terminates
    assert sorted(f.id for f in children) == ["1", "2", "3"]


def test_get_organization() -> None:
    Responses["cloudresourcemanager.organizations.get"] = lambda params: {
        "name": params["name"],
        "displayName": "example.com",
        "state": "ACTIVE",
        "directoryCustomerId": "C0123",
    }
    org = GcpOrganization.get(GcpClient(AnonymousCredentials()), "123")
    assert org is not None
    assert org.id == "123"
    assert org.name == "example.com"
    assert org.directory_customer_id == "C0123"
    assert org.resource_name == "organizations/123"


def test_list_nested_projects() -> None:
    Responses["cloudresourcemanager.folders.search"] = [
        {"folders": [{"name": "folders/1", "parent": "organizations/o"}], "nextPageToken": "x"},
        {"folders": [{"name": "folders/2", "parent": "folders/1"}, {"name": "folders/9", "parent": "organizations/x"}]},
    ]
    Responses["cloudresourcemanager.projects.search"] = {
        "projects": [
            {"name": "projects/1", "projectId": "top", "parent": "organizations/o", "state": "ACTIVE"},
            {"name": "projects/2", "projectId": "nested", "parent": "folders/2", "state": "ACTIVE"},
            {"name": "projects/3", "projectId": "deleted", "parent": "folders/1", "state": "DELETE_REQUESTED"},
            {"name": "projects/4", "projectId": "elsewhere", "parent": "folders/9", "state": "ACTIVE"},
        ]
    }
    client = GcpClient(AnonymousCredentials())
    assert [p.id for p in GcpProject.list_nested(client, "organizations/o")] == ["top", "nested"]
    assert [p.id for p in GcpProject.list_nested(client, "folders/2")] == ["nested"]
    assert GcpProject.list_nested(client, "folders/unknown") == []


def test_project_mapping() -> None:
    project = GcpProject.from_api(
        {
            "name": "projects/4711",
            "projectId": "my-project",
            "displayName": "My Project",
            "labels": {"env": "prod"},
            "parent": "folders/1",
            "state": "ACTIVE",
        }
    )
    assert project is not None
    assert project.id == "my-project"
    assert project.number == "4711"
    assert project.name == "My Project"
    assert project.labels == {"env": "prod"}
    assert project.active


def test_list_children() -> None:
    Responses["cloudresourcemanager.folders.list"] = lambda params: {
        "folders": [{"name": "folders/2", "parent": params["parent"], "displayName": "team"}]
    }
    children = GcpFolder.list_children(GcpClient(AnonymousCredentials()), "folders/1")
    assert [(f.id, f.name, f.parent) for f in children] == [("2", "team", "folders/1")]
    assert calls_of("cloudresourcemanager.folders.list") == [{"parent": "folders/1"}]


def test_list_nested_reuses_folders() -> None:
    Responses["cloudresourcemanager.projects.search"] = {
        "projects": [{"name": "projects/2", "projectId": "nested", "parent": "folders/1", "state": "ACTIVE"}]
    }
    client = GcpClient(AnonymousCredentials())
    projects = GcpProject.list_nested(client, "organizations/o", [folder("1", "organizations/o")])
    assert [p.id for p in projects] == ["nested"]
    assert calls_of("cloudresourcemanager.folders.search") == []


def test_collect_audit_configs(builder: ResourceBuilder) -> None:
    Responses["cloudresourcemanager.projects.getIamPolicy"] = {
        "bindings": [{"role": "roles/owner", "members": ["user:a@example.com"]}],
        "auditConfigs": [
            {
                "service": "allServices",
                "auditLogConfigs": [
                    {"logType": "DATA_READ", "exemptedMembers": ["user:b@example.com"]},
                    {"logType": "DATA_WRITE"},
                ],
            },
            {"service": "storage.googleapis.com", "auditLogConfigs": [{"logType": "ADMIN_READ"}]},
        ],
    }
    first, second = builder.resources_of(GcpAuditConfig)
    assert first.id == "projects/test-auditConfig-allServices"
    assert first.name == "allServices"
    assert first.log_types == ["DATA_READ", "DATA_WRITE"]
    assert first.exempted_members == ["user:b@example.com"]
    assert second.id == "projects/test-auditConfig-storage.googleapis.com"
    assert second.exempted_members == []
    (params,) = calls_of("cloudresourcemanager.projects.getIamPolicy")
    assert params["resource"] == "projects/test"
    assert params["body"] == {"options": {"requestedPolicyVersion": 3}}
