from concurrent.futures import ThreadPoolExecutor
from typing import Iterator

from google.auth.credentials import AnonymousCredentials
from googleapiclient import discovery
from pytest import fixture

from provider_plugin_gcp import gcp_client
from provider_plugin_gcp.config import GcpConfig
from provider_plugin_gcp.credentials import CredentialProvider
from provider_plugin_gcp.gcp_client import GcpClient
from provider_plugin_gcp.resources.base import ResourceBuilder
from providerlib.config import Config
import fake_client
from fake_client import build_fake_client


class AnonymousCredentialProvider(CredentialProvider):
    def credentials(self, *scopes: str) -> AnonymousCredentials:
        return AnonymousCredentials()


@fixture(autouse=True)
def fake_api() -> Iterator[None]:
    # change discovery function factory for tests
    gcp_client._discovery_function = build_fake_client
    fake_client.Responses.clear()
    fake_client.Calls.clear()
    yield None
    # reset the original discovery function
    gcp_client._discovery_function = discovery.build
    fake_client.Responses.clear()
    fake_client.Calls.clear()


@fixture
def gcp_config() -> GcpConfig:
    # Initialise config
    Config.reset()
    Config.add_config(GcpConfig)
    Config.init_default_config()
    config: GcpConfig = Config.gcp
    return config


@fixture
def credential_provider() -> CredentialProvider:
    return AnonymousCredentialProvider()


@fixture
def builder(gcp_config: GcpConfig) -> Iterator[ResourceBuilder]:
    with ThreadPoolExecutor(2) as executor:
        client = GcpClient(AnonymousCredentials())
        yield ResourceBuilder(client, gcp_config, executor, project_id="test")
