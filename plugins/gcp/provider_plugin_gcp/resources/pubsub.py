from __future__ import annotations

from typing import ClassVar, Dict, Optional

from attr import define

from provider_plugin_gcp.gcp_client import GcpApiSpec
from provider_plugin_gcp.resources.base import GcpResource, Mapper, last_segment

service_name = "pubsub"


def pubsub_spec(accessor: str) -> GcpApiSpec:
    return GcpApiSpec(
        service=service_name,
        version="v1",
        accessors=["projects", accessor],
        action="list",
        request_parameter={"project": "projects/{project}"},
        request_parameter_in={"project"},
        response_path=accessor,
    )


@define(eq=False, slots=False)
class GcpPubSubTopic(GcpResource):
    kind: ClassVar[str] = "gcp_pubsub_topic"
    api_spec: ClassVar[GcpApiSpec] = pubsub_spec("topics")
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "name",
        "name": last_segment("name"),
        "labels": "labels",
        "kms_key_name": "kmsKeyName",
        "message_retention_duration": "messageRetentionDuration",
    }
    kms_key_name: Optional[str] = None
    message_retention_duration: Optional[str] = None


@define(eq=False, slots=False)
class GcpPubSubSubscription(GcpResource):
    kind: ClassVar[str] = "gcp_pubsub_subscription"
    api_spec: ClassVar[GcpApiSpec] = pubsub_spec("subscriptions")
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "name",
        "name": last_segment("name"),
        "labels": "labels",
        "topic": "topic",
        "ack_deadline_seconds": "ackDeadlineSeconds",
        "state": "state",
    }
    topic: Optional[str] = None
    ack_deadline_seconds: Optional[int] = None
    state: Optional[str] = None


@define(eq=False, slots=False)
class GcpPubSubSnapshot(GcpResource):
    kind: ClassVar[str] = "gcp_pubsub_snapshot"
    api_spec: ClassVar[GcpApiSpec] = pubsub_spec("snapshots")
    mapping: ClassVar[Dict[str, Mapper]] = {
        "id": "name",
        "name": last_segment("name"),
        "labels": "labels",
        "topic": "topic",
        "expire_time": "expireTime",
    }
    topic: Optional[str] = None
    expire_time: Optional[str] = None
