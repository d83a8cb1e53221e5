from attrs import define, field
from typing import List, ClassVar, Optional

from provider_plugin_gcp.utils import split_targets


@define
class GcpConfig:
    kind: ClassVar[str] = "gcp"
    credentials_path: Optional[str] = field(
        default=None,
        metadata={"description": "GCP service account file, used when no credentials environment variable is set"},
    )
    discover: List[str] = field(
        factory=list,
        metadata={"description": "Discovery targets used when none are given on the command line (default: auto)"},
    )
    pool_size: int = field(
        default=8,
        metadata={"description": "Thread pool size used to query regional apis in parallel"},
    )
    workspace_scopes: List[str] = field(
        factory=lambda: ["https://www.googleapis.com/auth/admin.directory.customer.readonly"],
        metadata={"description": "OAuth scopes requested for the Google Workspace validation read"},
    )

    def discovery_targets(self, requested: Optional[List[str]]) -> List[str]:
        return split_targets(requested) or split_targets(self.discover)
