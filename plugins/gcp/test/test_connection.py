import pytest

from provider_plugin_gcp.config import GcpConfig
from provider_plugin_gcp.connection import (
    FolderTarget,
    GcpConnection,
    GcrTarget,
    OrganizationTarget,
    ProjectTarget,
    ResourceType,
    WorkspaceTarget,
    parse_scan_target,
)
from provider_plugin_gcp.credentials import CredentialProvider
from providerlib.errors import AccessError, ConfigurationError, ProviderTypeMismatchError
from providerlib.inventory import Asset, Config, Credential
from fake_client import Responses, http_error


def test_scan_target_precedence() -> None:
    both = {"organization-id": "o", "project-id": "p", "customer-id": "c", "folder-id": "f"}
    assert parse_scan_target(both) == OrganizationTarget("o")
    assert parse_scan_target({"project-id": "p", "folder-id": "f"}) == ProjectTarget("p")
    assert parse_scan_target({"customer-id": "c", "folder-id": "f"}) == WorkspaceTarget("c", "")
    assert parse_scan_target({"folder-id": "f"}) == FolderTarget("f")


def test_scan_target_legacy_keys() -> None:
    assert parse_scan_target({"organization": "o"}) == OrganizationTarget("o")
    assert parse_scan_target({"project": "p"}) == ProjectTarget("p")
    # canonical key wins over the legacy one, empty values are ignored
    assert parse_scan_target({"project": "old", "project-id": "new"}) == ProjectTarget("new")
    assert parse_scan_target({"organization-id": "", "project": "p"}) == ProjectTarget("p")


def test_scan_target_gcr() -> None:
    target = parse_scan_target({"project-id": "p", "repository": "images"}, "gcp-gcr")
    assert target == GcrTarget("p", "images")
    assert target.registry == "gcr.io/p/images"
    assert GcrTarget("p").registry == "gcr.io/p"
    with pytest.raises(ConfigurationError):
        parse_scan_target({}, "gcp-gcr")


def test_scan_target_missing() -> None:
    with pytest.raises(ConfigurationError) as e:
        parse_scan_target({"zone": "us-east1-b"})
    assert "gcp project id" in str(e.value)


def test_connect_project(credential_provider: CredentialProvider, gcp_config: GcpConfig) -> None:
    Responses["cloudresourcemanager.projects.get"] = {
        "name": "projects/123",
        "projectId": "my-project",
        "displayName": "My Project",
        "state": "ACTIVE",
    }
    conf = Config(type="gcp", options={"project-id": "my-project"})
    conn = GcpConnection("1", Asset(connections=[conf]), conf, credential_provider, gcp_config)
    assert conn.resource_type == ResourceType.project
    assert conn.resource_id == "my-project"
    assert conn.name == "My Project"
    assert conn.platform_id == "//platformid.api.mondoo.app/runtime/gcp/projects/my-project"


def test_connect_folder_platform_id(credential_provider: CredentialProvider) -> None:
    Responses["cloudresourcemanager.folders.get"] = {"name": "folders/42", "parent": "organizations/1"}
    conf = Config(type="gcp", options={"folder-id": "42"})
    conn = GcpConnection("1", Asset(connections=[conf]), conf, credential_provider)
    assert conn.platform_id == "//platformid.api.mondoo.app/runtime/gcp/folders/42"
    # folders without display name are named by kind and id
    assert conn.name == "GCP Folder 42"


def test_connect_access_error(credential_provider: CredentialProvider) -> None:
    Responses["cloudresourcemanager.organizations.get"] = http_error(403, "PERMISSION_DENIED", "forbidden")
    conf = Config(type="gcp", options={"organization-id": "123"})
    with pytest.raises(AccessError) as e:
        GcpConnection("1", Asset(connections=[conf]), conf, credential_provider)
    assert str(e.value) == "could not find or have no access to organization 123"


def test_connect_wrong_type(credential_provider: CredentialProvider) -> None:
    conf = Config(type="aws", options={"project-id": "p"})
    with pytest.raises(ProviderTypeMismatchError) as e:
        GcpConnection("1", Asset(connections=[conf]), conf, credential_provider)
    assert str(e.value) == "provider type does not match: expected gcp, got aws"


def test_workspace_requires_service_account(credential_provider: CredentialProvider) -> None:
    conf = Config(type="google-workspace", options={"customer-id": "C01", "impersonated-user-email": "a@b.c"})
    with pytest.raises(ConfigurationError) as e:
        GcpConnection("1", Asset(connections=[conf]), conf, credential_provider)
    assert "service account" in str(e.value)

    conf.credentials.append(Credential.json_blob(b'{"type": "service_account"}'))
    del conf.options["impersonated-user-email"]
    with pytest.raises(ConfigurationError) as e:
        GcpConnection("1", Asset(connections=[conf]), conf, credential_provider)
    assert "impersonated-user-email" in str(e.value)


def test_connect_workspace(credential_provider: CredentialProvider) -> None:
    Responses["admin.customers.get"] = {"id": "C01", "customerDomain": "example.com"}
    conf = Config(
        type="google-workspace",
        options={"customer-id": "C01", "impersonated-user-email": "admin@example.com"},
        credentials=[Credential.json_blob(b'{"type": "service_account"}')],
    )
    conn = GcpConnection("1", Asset(connections=[conf]), conf, credential_provider)
    assert conn.resource_type == ResourceType.workspace
    assert conn.name == "example.com"
