import json
from pathlib import Path
from typing import Any, Dict

import google.auth
import pytest
from _pytest.capture import CaptureFixture
from _pytest.monkeypatch import MonkeyPatch
from google.auth.credentials import AnonymousCredentials

from provider_plugin_gcp import GcpProviderPlugin
from provider_plugin_gcp.config import GcpConfig
from provider_plugin_gcp.credentials import CredentialEnvVars, CredentialProvider
from providerlib.args import get_arg_parser
from providerlib.config import Config as AppConfig
from providerlib.errors import ConfigurationError, DiscoveryError
from providerlib.inventory import Asset, Config, CredentialType
from fake_client import Responses, http_error


def flags(*args: str) -> Dict[str, Any]:
    parser = get_arg_parser()
    GcpProviderPlugin.add_args(parser)
    return vars(parser.parse_args(list(args)))


@pytest.fixture
def plugin(no_credential_env: MonkeyPatch, credential_provider: CredentialProvider) -> GcpProviderPlugin:
    return GcpProviderPlugin(GcpConfig(), credential_provider)


@pytest.fixture
def no_credential_env(monkeypatch: MonkeyPatch) -> MonkeyPatch:
    for name in CredentialEnvVars:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_args() -> None:
    parsed = flags("project", "p1", "--discover", "projects", "instances", "--credentials-path", "/tmp/sa.json")
    assert parsed["target"] == ["project", "p1"]
    assert parsed["discover"] == ["projects", "instances"]
    assert parsed["credentials_path"] == "/tmp/sa.json"
    assert parsed["create_snapshot"] is False


def test_parse_cli_requires_two_arguments(plugin: GcpProviderPlugin) -> None:
    for args in ([], ["project"], ["project", "p1", "extra"]):
        with pytest.raises(ConfigurationError) as e:
            plugin.parse_cli(args, {})
        assert "missing argument" in str(e.value)
    with pytest.raises(ConfigurationError):
        plugin.parse_cli(["cluster", "c1"], {})


def test_parse_cli_resources(plugin: GcpProviderPlugin) -> None:
    org = plugin.parse_cli(["org", "123"], {}).connections[0]
    assert org.type == "gcp"
    assert org.options == {"organization-id": "123"}
    assert org.discovery_targets() == ["auto"]

    project = plugin.parse_cli(["project", "p1"], {"discover": ["projects", "instances"]}).connections[0]
    assert project.options == {"project-id": "p1"}
    assert project.discovery_targets() == ["projects", "instances"]

    folder = plugin.parse_cli(["folder", "42"], {}).connections[0]
    assert folder.options == {"folder-id": "42"}


def test_parse_cli_configured_discovery(
    no_credential_env: MonkeyPatch, credential_provider: CredentialProvider
) -> None:
    plugin = GcpProviderPlugin(GcpConfig(discover=["folders"]), credential_provider)
    assert plugin.parse_cli(["org", "1"], {}).connections[0].discovery_targets() == ["folders"]
    # the command line wins over the config
    assert plugin.parse_cli(["org", "1"], {"discover": ["projects"]}).connections[0].discovery_targets() == ["projects"]
    # configured targets may be comma separated as well
    assert GcpConfig(discover=["folders,projects"]).discovery_targets(None) == ["folders", "projects"]


def test_parse_cli_gcr(plugin: GcpProviderPlugin) -> None:
    conf = plugin.parse_cli(["gcr", "p1"], {"repository": "images"}).connections[0]
    assert conf.runtime == "gcp-gcr"
    assert conf.options == {"project-id": "p1", "repository": "images"}


def test_parse_cli_snapshot_and_instance(plugin: GcpProviderPlugin) -> None:
    snapshot = plugin.parse_cli(["snapshot", "snap-1"], {"project_id": "p1", "zone": "us-east1-b"}).connections[0]
    assert snapshot.type == "gcp-snapshot"
    assert snapshot.discover is None
    assert snapshot.options == {"snapshot-name": "snap-1", "project-id": "p1", "type": "snapshot", "zone": "us-east1-b"}

    instance = plugin.parse_cli(
        ["instance", "vm-1"], {"project_id": "p1", "zone": "us-east1-b", "create_snapshot": True}
    ).connections[0]
    assert instance.type == "gcp-snapshot"
    assert instance.options["instance-name"] == "vm-1"
    assert instance.options["type"] == "instance"
    assert instance.options["create-snapshot"] == "true"


def test_parse_cli_credentials(plugin: GcpProviderPlugin, no_credential_env: MonkeyPatch, tmp_path: Path) -> None:
    sa = tmp_path / "sa.json"
    sa.write_text('{"type": "service_account"}')
    conf = plugin.parse_cli(["project", "p1"], {"credentials_path": str(sa)}).connections[0]
    credential = conf.credential_of(CredentialType.json)
    assert credential is not None
    assert credential.secret == b'{"type": "service_account"}'
    # no readable file: ambient credentials are used
    assert plugin.parse_cli(["project", "p1"], {}).connections[0].credentials == []


def test_connect_project(plugin: GcpProviderPlugin) -> None:
    Responses["cloudresourcemanager.projects.get"] = {"name": "projects/1", "projectId": "p1", "displayName": "P1"}
    Responses["pubsub.projects.topics.list"] = {"topics": [{"name": "projects/p1/topics/orders"}]}
    asset = plugin.parse_cli(["project", "p1"], {"discover": ["projects", "pubsub-topics"]})
    result = plugin.connect(asset)
    assert result.asset is asset
    assert result.name == asset.name == "P1"
    assert asset.platform_ids == ["//platformid.api.mondoo.app/runtime/gcp/projects/p1"]
    assert asset.platform is not None and asset.platform.name == "gcp-project"
    conf = asset.connections[0]
    assert conf.id is not None
    assert result.id == conf.id
    assert plugin.connection(conf.id).resource_id == "p1"
    assert result.inventory is not None
    # every discovered object is part of the inventory once
    (project,) = result.inventory.assets
    (topic,) = project.related_assets
    assert result.inventory.all_assets() == [project, topic]
    assert asset.related_assets == []
    assert topic.name == "orders"
    assert topic.connections[0].parent_connection_id == conf.id
    plugin.shutdown()


def test_connect_refuses_snapshots(plugin: GcpProviderPlugin) -> None:
    asset = plugin.parse_cli(["snapshot", "snap-1"], {"project_id": "p1"})
    with pytest.raises(ConfigurationError):
        plugin.connect(asset)
    with pytest.raises(ConfigurationError):
        plugin.connect(Asset())


def test_connect_without_discovery(plugin: GcpProviderPlugin) -> None:
    Responses["cloudresourcemanager.organizations.get"] = {"name": "organizations/o1", "displayName": "example.com"}
    asset = Asset(connections=[Config(type="gcp", options={"organization-id": "o1"})])
    result = plugin.connect(asset)
    assert asset.name == "example.com"
    assert asset.platform_ids == ["//platformid.api.mondoo.app/runtime/gcp/organizations/o1"]
    assert result.inventory is None


def test_discover_comma_separated(plugin: GcpProviderPlugin) -> None:
    Responses["cloudresourcemanager.projects.get"] = {"name": "projects/1", "projectId": "p1", "displayName": "P1"}
    Responses["pubsub.projects.topics.list"] = {"topics": [{"name": "projects/p1/topics/orders"}]}
    parsed = flags("project", "p1", "--discover", "projects, pubsub-topics")
    asset = plugin.parse_cli(parsed["target"], parsed)
    assert asset.connections[0].discovery_targets() == ["projects", "pubsub-topics"]
    inventory = plugin.connect(asset).inventory
    assert inventory is not None
    assert [a.name for a in inventory.all_assets()] == ["GCP Project p1", "orders"]
    plugin.shutdown()


def test_connect_discovery_error(plugin: GcpProviderPlugin) -> None:
    Responses["cloudresourcemanager.projects.get"] = {"name": "projects/1", "projectId": "p1"}
    Responses["pubsub.projects.topics.list"] = http_error(500, "INTERNAL", "backendError", "global")
    asset = plugin.parse_cli(["project", "p1"], {"discover": ["pubsub-topics"]})
    with pytest.raises(DiscoveryError) as e:
        plugin.connect(asset)
    assert "project p1" in str(e.value)
    plugin.shutdown()


@pytest.fixture
def ambient_credentials(no_credential_env: MonkeyPatch) -> MonkeyPatch:
    no_credential_env.setattr(google.auth, "default", lambda scopes=None: (AnonymousCredentials(), None))
    AppConfig.reset()
    return no_credential_env


def test_main(ambient_credentials: MonkeyPatch, capsys: CaptureFixture[str]) -> None:
    Responses["cloudresourcemanager.projects.get"] = {"name": "projects/1", "projectId": "p1", "displayName": "P1"}
    Responses["pubsub.projects.topics.list"] = {"topics": [{"name": "projects/p1/topics/orders"}]}
    assert GcpProviderPlugin.main(["project", "p1", "--discover", "projects,pubsub-topics"]) == 0
    result = json.loads(capsys.readouterr().out)
    assert result["name"] == "P1"
    assert result["asset"]["platform_ids"] == ["//platformid.api.mondoo.app/runtime/gcp/projects/p1"]
    (project,) = result["inventory"]["assets"]
    assert project["name"] == "GCP Project p1"
    assert [a["name"] for a in project["related_assets"]] == ["orders"]


def test_main_errors(ambient_credentials: MonkeyPatch) -> None:
    assert GcpProviderPlugin.main(["project"]) == 1
    Responses["cloudresourcemanager.projects.get"] = {"name": "projects/1", "projectId": "p1"}
    Responses["pubsub.projects.topics.list"] = http_error(500, "INTERNAL", "backendError", "global")
    assert GcpProviderPlugin.main(["project", "p1", "--discover", "pubsub-topics"]) == 1
