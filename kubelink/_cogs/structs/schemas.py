"""
Protobuf messages of the well-known K8s API objects.

Only the messages needed by the library are defined: the envelopes
(``runtime.Unknown`` & co), the watch-events, the discovery objects,
and the statuses (for the errors). The field names & numbers are the same
as in K8s's ``generated.proto`` files, so the bytes are wire-compatible
with the API servers.

The descriptors are built at import time and are registered into a private
descriptor pool, not into the default one: so that they never conflict with
other libraries that bring the same K8s messages (e.g. generated by ``protoc``).
"""
from typing import Optional, Sequence, Type

from google.protobuf import descriptor_pb2, descriptor_pool, message, message_factory

Message = message.Message

_FDP = descriptor_pb2.FieldDescriptorProto

RUNTIME_PACKAGE = 'k8s.io.apimachinery.pkg.runtime'
META_PACKAGE = 'k8s.io.apimachinery.pkg.apis.meta.v1'


def _field(
        name: str,
        number: int,
        type: int,
        *,
        repeated: bool = False,
        message_type: Optional[str] = None,
) -> descriptor_pb2.FieldDescriptorProto:
    proto = _FDP(
        name=name,
        json_name=name,  # the K8s field names are already camelCased.
        number=number,
        type=type,  # type: ignore[arg-type]
        label=_FDP.LABEL_REPEATED if repeated else _FDP.LABEL_OPTIONAL,
    )
    if message_type is not None:
        proto.type_name = message_type
    return proto


def _message(name: str, fields: Sequence[descriptor_pb2.FieldDescriptorProto]) -> descriptor_pb2.DescriptorProto:
    proto = descriptor_pb2.DescriptorProto(name=name)
    proto.field.extend(fields)
    return proto


def _file(
        name: str,
        package: str,
        messages: Sequence[descriptor_pb2.DescriptorProto],
        dependencies: Sequence[str] = (),
) -> descriptor_pb2.FileDescriptorProto:
    proto = descriptor_pb2.FileDescriptorProto(name=name, package=package, syntax='proto2')
    proto.dependency.extend(dependencies)
    proto.message_type.extend(messages)
    return proto


_S, _B, _BOOL = _FDP.TYPE_STRING, _FDP.TYPE_BYTES, _FDP.TYPE_BOOL
_I32, _I64, _MSG = _FDP.TYPE_INT32, _FDP.TYPE_INT64, _FDP.TYPE_MESSAGE
_RT = f'.{RUNTIME_PACKAGE}'
_MV = f'.{META_PACKAGE}'

_RUNTIME_FILE = _file('k8s.io/apimachinery/pkg/runtime/generated.proto', RUNTIME_PACKAGE, [
    _message('TypeMeta', [
        _field('apiVersion', 1, _S),
        _field('kind', 2, _S),
    ]),
    _message('Unknown', [
        _field('typeMeta', 1, _MSG, message_type=f'{_RT}.TypeMeta'),
        _field('raw', 2, _B),
        _field('contentEncoding', 3, _S),
        _field('contentType', 4, _S),
    ]),
    _message('RawExtension', [
        _field('raw', 1, _B),
    ]),
])

_META_FILE = _file('k8s.io/apimachinery/pkg/apis/meta/v1/generated.proto', META_PACKAGE, [
    _message('WatchEvent', [
        _field('type', 1, _S),
        _field('object', 2, _MSG, message_type=f'{_RT}.RawExtension'),
    ]),
    _message('GroupVersionForDiscovery', [
        _field('groupVersion', 1, _S),
        _field('version', 2, _S),
    ]),
    _message('ServerAddressByClientCIDR', [
        _field('clientCIDR', 1, _S),
        _field('serverAddress', 2, _S),
    ]),
    _message('APIGroup', [
        _field('name', 1, _S),
        _field('versions', 2, _MSG, repeated=True, message_type=f'{_MV}.GroupVersionForDiscovery'),
        _field('preferredVersion', 3, _MSG, message_type=f'{_MV}.GroupVersionForDiscovery'),
        _field('serverAddressByClientCIDRs', 4, _MSG, repeated=True,
               message_type=f'{_MV}.ServerAddressByClientCIDR'),
    ]),
    _message('APIGroupList', [
        _field('groups', 1, _MSG, repeated=True, message_type=f'{_MV}.APIGroup'),
    ]),
    _message('Verbs', [
        _field('items', 1, _S, repeated=True),
    ]),
    _message('APIResource', [
        _field('name', 1, _S),
        _field('namespaced', 2, _BOOL),
        _field('kind', 3, _S),
        _field('verbs', 4, _MSG, message_type=f'{_MV}.Verbs'),
        _field('shortNames', 5, _S, repeated=True),
        _field('singularName', 6, _S),
        _field('categories', 7, _S, repeated=True),
        _field('group', 8, _S),
        _field('version', 9, _S),
        _field('storageVersionHash', 10, _S),
    ]),
    _message('APIResourceList', [
        _field('groupVersion', 1, _S),
        _field('resources', 2, _MSG, repeated=True, message_type=f'{_MV}.APIResource'),
    ]),
    _message('ListMeta', [
        _field('selfLink', 1, _S),
        _field('resourceVersion', 2, _S),
        _field('continue', 3, _S),
        _field('remainingItemCount', 4, _I64),
    ]),
    _message('StatusCause', [
        _field('reason', 1, _S),
        _field('message', 2, _S),
        _field('field', 3, _S),
    ]),
    _message('StatusDetails', [
        _field('name', 1, _S),
        _field('group', 2, _S),
        _field('kind', 3, _S),
        _field('causes', 4, _MSG, repeated=True, message_type=f'{_MV}.StatusCause'),
        _field('retryAfterSeconds', 5, _I32),
        _field('uid', 6, _S),
    ]),
    _message('Status', [
        _field('metadata', 1, _MSG, message_type=f'{_MV}.ListMeta'),
        _field('status', 2, _S),
        _field('message', 3, _S),
        _field('reason', 4, _S),
        _field('details', 5, _MSG, message_type=f'{_MV}.StatusDetails'),
        _field('code', 6, _I32),
    ]),
], dependencies=[_RUNTIME_FILE.name])

pool = descriptor_pool.DescriptorPool()
pool.AddSerializedFile(_RUNTIME_FILE.SerializeToString())
pool.AddSerializedFile(_META_FILE.SerializeToString())


def _class(fullname: str) -> Type[Message]:
    return message_factory.GetMessageClass(pool.FindMessageTypeByName(fullname))


TypeMeta = _class(f'{RUNTIME_PACKAGE}.TypeMeta')
Unknown = _class(f'{RUNTIME_PACKAGE}.Unknown')
RawExtension = _class(f'{RUNTIME_PACKAGE}.RawExtension')

WatchEvent = _class(f'{META_PACKAGE}.WatchEvent')
GroupVersionForDiscovery = _class(f'{META_PACKAGE}.GroupVersionForDiscovery')
ServerAddressByClientCIDR = _class(f'{META_PACKAGE}.ServerAddressByClientCIDR')
APIGroup = _class(f'{META_PACKAGE}.APIGroup')
APIGroupList = _class(f'{META_PACKAGE}.APIGroupList')
Verbs = _class(f'{META_PACKAGE}.Verbs')
APIResource = _class(f'{META_PACKAGE}.APIResource')
APIResourceList = _class(f'{META_PACKAGE}.APIResourceList')
ListMeta = _class(f'{META_PACKAGE}.ListMeta')
StatusCause = _class(f'{META_PACKAGE}.StatusCause')
StatusDetails = _class(f'{META_PACKAGE}.StatusDetails')
Status = _class(f'{META_PACKAGE}.Status')

