from attrs import define, field
from typing import ClassVar


@define
class IpmiConfig:
    kind: ClassVar[str] = "ipmi"
    port: int = field(default=623, metadata={"description": "BMC port used when the target does not name one"})
    timeout: int = field(default=10, metadata={"description": "Seconds to wait for a BMC response"})
