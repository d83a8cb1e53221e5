"""
Connection to one baseboard management controller (BMC) over IPMI (lan+).

The device GUID reported by the BMC identifies the asset.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, Optional

from attrs import define
from pyghmi.exceptions import IpmiException
from pyghmi.ipmi.command import Command

from providerlib.errors import AccessError, ConfigurationError, ProviderError, ProviderTypeMismatchError
from providerlib.inventory import Config, CredentialType

log = logging.getLogger("provider.plugins.ipmi")

ConnectionType = "ipmi"
PlatformIdPrefix = "//platformid.api.mondoo.app/runtime/ipmi/deviceid/"

# network function and command codes of the application commands
NetFnApp = 0x06
CmdGetDeviceId = 0x01
CmdGetDeviceGuid = 0x08

# Store the session factory as separate variable.
# This is used in tests to replace the pyghmi session.
_command_function: Callable[..., Any] = Command


class IpmiCommandError(ProviderError):
    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f"ipmi command {command} failed: {reason}")
        self.command = command
        self.reason = reason


@define
class DeviceId:
    device_id: int
    device_revision: int
    firmware_revision: str
    ipmi_version: str
    manufacturer_id: int
    product_id: int

    @staticmethod
    def from_response(data: bytes) -> DeviceId:
        if len(data) < 11:
            raise IpmiCommandError("get device id", f"short response of {len(data)} bytes")
        return DeviceId(
            device_id=data[0],
            device_revision=data[1] & 0x0F,
            firmware_revision=f"{data[2] & 0x7F}.{data[3]:02x}",
            ipmi_version=f"{data[4] & 0x0F}.{data[4] >> 4}",
            manufacturer_id=int.from_bytes(data[6:9], "little") & 0x0FFFFF,
            product_id=int.from_bytes(data[9:11], "little"),
        )


def platform_id(guid: str) -> str:
    return PlatformIdPrefix + guid


class IpmiConnection:
    def __init__(self, connection_id: str, conf: Config, timeout: int = 10) -> None:
        if conf.type != ConnectionType:
            raise ProviderTypeMismatchError(ConnectionType, conf.type)
        if not conf.host:
            raise ConfigurationError("ipmi provider requires a host")
        credential = conf.credential_of(CredentialType.password)
        if credential is None or not credential.user:
            raise ConfigurationError("ipmi provider requires a user and password")

        self.id = connection_id
        self.conf = conf
        self.host = conf.host
        self.port = conf.port or 623
        self.timeout = timeout
        log.debug(f"Open ipmi session to {credential.user}@{self.host}:{self.port}")
        try:
            self.session = _command_function(
                bmc=self.host,
                userid=credential.user,
                password=credential.secret.decode("utf-8"),
                port=self.port,
            )
        except IpmiException as e:
            raise AccessError("ipmi device", f"{self.host}:{self.port}") from e
        self._guid: Optional[str] = None

    def raw_command(self, name: str, netfn: int, command: int) -> bytes:
        try:
            response: Dict[str, Any] = self.session.raw_command(netfn=netfn, command=command, timeout=self.timeout)
        except IpmiException as e:
            raise IpmiCommandError(name, str(e)) from e
        if error := response.get("error"):
            raise IpmiCommandError(name, str(error))
        return bytes(response.get("data") or b"")

    def device_guid(self) -> str:
        """Get Device GUID, formatted as lower case uuid string."""
        if self._guid is None:
            data = self.raw_command("get device guid", NetFnApp, CmdGetDeviceGuid)
            if len(data) < 16:
                raise IpmiCommandError("get device guid", f"short response of {len(data)} bytes")
            # the guid is transmitted least significant byte first
            self._guid = str(uuid.UUID(bytes_le=data[:16]))
        return self._guid

    def device_id(self) -> DeviceId:
        return DeviceId.from_response(self.raw_command("get device id", NetFnApp, CmdGetDeviceId))

    def chassis_power(self) -> str:
        try:
            state: Dict[str, Any] = self.session.get_power()
        except IpmiException as e:
            raise IpmiCommandError("get power", str(e)) from e
        return str(state.get("powerstate", "unknown"))

    @property
    def platform_id(self) -> str:
        return platform_id(self.device_guid())

    def close(self) -> None:
        if (session := getattr(self.session, "ipmi_session", None)) is not None:
            try:
                session.logout()
            except IpmiException as e:
                log.debug(f"Logout from {self.host} failed: {e}")
