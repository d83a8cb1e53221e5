import pytest

from provider_plugin_ipmi import IpmiProviderPlugin, parse_target
from provider_plugin_ipmi.config import IpmiConfig
from provider_plugin_ipmi.connection import IpmiCommandError, IpmiConnection, platform_id
from providerlib.errors import ConfigurationError, ProviderTypeMismatchError
from providerlib.inventory import Config, Credential, CredentialType
from fake_session import DeviceGuid, FakeCommand


def test_parse_target() -> None:
    assert parse_target("admin@10.0.0.1") == ("admin", "10.0.0.1", 623)
    assert parse_target("admin@bmc.local:6230") == ("admin", "bmc.local", 6230)
    assert parse_target("admin@[fe80::1]:624") == ("admin", "fe80::1", 624)
    assert parse_target("admin@fe80::1") == ("admin", "fe80::1", 623)
    # the last @ separates user and host
    assert parse_target("me@corp@bmc") == ("me@corp", "bmc", 623)
    for invalid in ["bmc", "@bmc", "admin@", "admin@bmc:http", "admin@bmc:70000"]:
        with pytest.raises(ConfigurationError):
            parse_target(invalid)


def test_parse_cli() -> None:
    plugin = IpmiProviderPlugin(IpmiConfig())
    conf = plugin.parse_cli(["admin@bmc"], {"password": "secret"}).connections[0]
    assert conf.type == "ipmi"
    assert conf.host == "bmc"
    assert conf.port == 623
    credential = conf.credential_of(CredentialType.password)
    assert credential is not None
    assert credential.user == "admin"
    assert credential.secret == b"secret"
    with pytest.raises(ConfigurationError):
        plugin.parse_cli([], {})


def test_parse_cli_ask_pass(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("getpass.getpass", lambda prompt: "typed")
    conf = IpmiProviderPlugin(IpmiConfig()).parse_cli(["admin@bmc:624"], {"ask_pass": True}).connections[0]
    assert conf.port == 624
    assert conf.credentials[0].secret == b"typed"


def test_connection() -> None:
    conf = Config(type="ipmi", host="bmc", port=6230, credentials=[Credential.password("admin", "secret")])
    conn = IpmiConnection("1", conf)
    session = FakeCommand.instances[0]
    assert (session.bmc, session.userid, session.password, session.port) == ("bmc", "admin", "secret", 6230)
    assert conn.device_guid() == str(DeviceGuid)
    assert conn.device_guid() == str(DeviceGuid)
    # the guid is read once
    assert session.raw_calls == 1
    assert conn.platform_id == f"//platformid.api.mondoo.app/runtime/ipmi/deviceid/{DeviceGuid}"
    device = conn.device_id()
    assert device.device_id == 0x20
    assert device.device_revision == 1
    assert device.firmware_revision == "2.45"
    assert device.ipmi_version == "2.0"
    assert device.manufacturer_id == 674
    assert device.product_id == 256
    assert conn.chassis_power() == "on"


def test_connection_errors() -> None:
    with pytest.raises(ProviderTypeMismatchError):
        IpmiConnection("1", Config(type="gcp", host="bmc"))
    with pytest.raises(ConfigurationError):
        IpmiConnection("1", Config(type="ipmi", credentials=[Credential.password("admin", "")]))
    with pytest.raises(ConfigurationError):
        IpmiConnection("1", Config(type="ipmi", host="bmc"))

    conn = IpmiConnection("1", Config(type="ipmi", host="bmc", credentials=[Credential.password("admin", "")]))
    FakeCommand.instances[0].replies[(0x06, 0x08)] = {"error": "timeout", "code": 0xFF}
    with pytest.raises(IpmiCommandError) as e:
        conn.device_guid()
    assert str(e.value) == "ipmi command get device guid failed: timeout"


def test_connect() -> None:
    plugin = IpmiProviderPlugin(IpmiConfig())
    asset = plugin.parse_cli(["admin@bmc"], {"password": "secret"})
    result = plugin.connect(asset)
    assert result.asset is asset
    assert result.name == "IPMI device bmc"
    assert result.inventory is None
    assert asset.platform_ids == [platform_id(str(DeviceGuid))]
    assert asset.platform is not None
    assert asset.platform.name == "ipmi"
    assert asset.name == "IPMI device bmc"
    conf = asset.connections[0]
    assert conf.id is not None
    assert isinstance(plugin.connection(conf.id), IpmiConnection)
    plugin.shutdown()
