"""
All the structures coming from/to the Kubernetes API.

The usage of these classes is spread over the codebase, so they are extracted
into a separate module of such type definitions.

For strict type-checking, they are detailed to the per-field level
(e.g. `TypedDict` instead of just ``Mapping[Any, Any]``) --
as used by the library. The callers can use arbitrary fields at runtime,
which are not declared in the type definitions at type-checking time.

There are two kinds of the objects here:

* JSON-decoded plain dicts ("raw" bodies), as used with the JSON codec
  for the user-defined (third-party) resources.
* Codec-neutral structures of the watch-streams: the events and the envelopes
  with the undecoded payloads, which are decoded one layer up.

The protobuf-decoded messages of the well-known resources are defined
separately in :mod:`schemas`.
"""
import dataclasses
import datetime
import enum
from typing import Any, Collection, List, Mapping, Optional

import iso8601
from typing_extensions import Literal, TypedDict

Labels = Mapping[str, str]
Annotations = Mapping[str, str]


class RawMeta(TypedDict, total=False):
    uid: str
    name: str
    namespace: str
    labels: Labels
    annotations: Annotations
    finalizers: List[str]
    resourceVersion: str
    deletionTimestamp: str
    creationTimestamp: str
    selfLink: str


class RawBody(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawMeta
    spec: Mapping[str, Any]
    status: Mapping[str, Any]


class RawListMeta(TypedDict, total=False):
    resourceVersion: str
    selfLink: str
    # "continue" is a keyword, so it is not declared; it is available at runtime.


class RawList(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawListMeta
    items: List[RawBody]


class RawStatusCause(TypedDict):
    field: str
    reason: str
    message: str


class RawStatusDetails(TypedDict, total=False):
    name: str
    uid: str
    retryAfterSeconds: int
    kind: str
    group: str
    causes: Collection[RawStatusCause]


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.19/#status-v1-meta
# It is also the payload of type==ERROR in the watch-streams (not a connection or client error).
class RawStatus(TypedDict, total=False):
    apiVersion: str
    kind: Literal["Status"]
    code: int
    status: Literal["Success", "Failure"]
    reason: str
    message: str
    details: RawStatusDetails


class EventType(str, enum.Enum):
    """
    The only known types of events in the watch-streams.

    Anything else in the stream is a decoding error, not an ignorable event.
    """
    ADDED = 'ADDED'
    MODIFIED = 'MODIFIED'
    DELETED = 'DELETED'
    ERROR = 'ERROR'


@dataclasses.dataclass(frozen=True)
class Envelope:
    """
    A codec-neutral wrapper of a not yet decoded payload.

    The type metadata (api version & kind) is filled if the codec carries it
    on the wire (the binary codec does, the text codec does not).
    The payload itself is kept in the codec-specific serialization.
    """
    raw: bytes
    api_version: Optional[str] = None
    kind: Optional[str] = None
    content_type: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class WatchEvent:
    """
    One event of a watch-stream: its type, and the opaque object as sent.

    For ``ERROR`` events, the object is a status, not a resource.
    """
    type: EventType
    object: bytes


@dataclasses.dataclass(frozen=True)
class Version:
    """
    The version of the API server, as reported by ``/version``.
    """
    major: str = ''
    minor: str = ''
    git_version: str = ''
    git_commit: str = ''
    git_tree_state: str = ''
    build_date: str = ''
    go_version: str = ''
    compiler: str = ''
    platform: str = ''

    @classmethod
    def from_raw(cls, raw: Mapping[str, str]) -> "Version":
        return cls(
            major=raw.get('major', ''),
            minor=raw.get('minor', ''),
            git_version=raw.get('gitVersion', ''),
            git_commit=raw.get('gitCommit', ''),
            git_tree_state=raw.get('gitTreeState', ''),
            build_date=raw.get('buildDate', ''),
            go_version=raw.get('goVersion', ''),
            compiler=raw.get('compiler', ''),
            platform=raw.get('platform', ''),
        )

    @property
    def built_at(self) -> Optional[datetime.datetime]:
        """ The build date as a datetime, if the server reports a parseable one. """
        try:
            return iso8601.parse_date(self.build_date)
        except iso8601.ParseError:
            return None

    def as_raw(self) -> Mapping[str, str]:
        return {
            'major': self.major,
            'minor': self.minor,
            'gitVersion': self.git_version,
            'gitCommit': self.git_commit,
            'gitTreeState': self.git_tree_state,
            'buildDate': self.build_date,
            'goVersion': self.go_version,
            'compiler': self.compiler,
            'platform': self.platform,
        }
