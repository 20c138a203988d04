"""
Clients for the user-defined (third-party) resources.

Such resources have no pre-generated binary schemas, so they are
always transferred with the JSON codec. The callers define the shapes
of their objects on their own (if at all): by default, the objects
are returned as the plain JSON-decoded dicts.

For example::

    metrics = client.thirdparty('metrics.example.com', 'v1')
    await metrics.create('metrics', 'default', {
        'apiVersion': 'metrics.example.com/v1',
        'kind': 'Metric',
        'metadata': {'name': 'foo'},
        'value': 42,
    })
    listing = await metrics.list('metrics', 'default')
    await metrics.delete('metrics', 'default', 'foo')
"""
from typing import Any, Mapping, Optional, Union

from kubelink._cogs.aiokits import aiotasks
from kubelink._cogs.clients import api, auth, codecs, watching
from kubelink._cogs.configs import configuration
from kubelink._cogs.helpers import typedefs
from kubelink._cogs.structs import bodies, references

# For the collection-level operations, the name is irrelevant but must pass the checks.
_ANY_NAME = 'not required'


class ThirdPartyResources:
    """
    A client for one user-defined API group & version.
    """

    def __init__(
            self,
            api_group: str,
            api_version: str,
            *,
            codec: codecs.JSONCodec,
            settings: configuration.ClientSettings,
            context: auth.APIContext,
            logger: typedefs.Logger,
    ) -> None:
        super().__init__()
        self.api_group = api_group
        self.api_version = api_version
        self._codec = codec
        self._settings = settings
        self._context = context
        self._logger = logger

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self.api_group}/{self.api_version}>'

    def _resource(self, plural: str) -> references.Resource:
        return references.Resource(group=self.api_group, version=self.api_version, plural=plural)

    async def create(
            self,
            resource: str,
            namespace: str,
            body: bodies.RawBody,
            *,
            shape: Optional[codecs.Shape] = None,
    ) -> Any:
        references.check_resource(self.api_group, self.api_version, resource, namespace, _ANY_NAME)

        # The namespace is in the URL anyway; keep the body consistent with it.
        metadata = dict(body.get('metadata', {}))
        metadata.setdefault('namespace', namespace)
        payload = {**body, 'metadata': metadata}

        return await api.create(
            url=self._resource(resource).get_url(namespace=namespace),
            method='post',
            codec=self._codec,
            payload=payload,
            shape=shape,
            settings=self._settings,
            context=self._context,
            logger=self._logger,
        )

    async def update(
            self,
            resource: str,
            namespace: str,
            name: str,
            body: bodies.RawBody,
            *,
            shape: Optional[codecs.Shape] = None,
    ) -> Any:
        references.check_resource(self.api_group, self.api_version, resource, namespace, name)
        return await api.create(
            url=self._resource(resource).get_url(namespace=namespace, name=name),
            method='put',
            codec=self._codec,
            payload=body,
            shape=shape,
            settings=self._settings,
            context=self._context,
            logger=self._logger,
        )

    async def get(
            self,
            resource: str,
            namespace: str,
            name: str,
            *,
            shape: Optional[codecs.Shape] = None,
    ) -> Any:
        references.check_resource(self.api_group, self.api_version, resource, namespace, name)
        return await api.get(
            url=self._resource(resource).get_url(namespace=namespace, name=name),
            codec=self._codec,
            shape=shape,
            settings=self._settings,
            context=self._context,
            logger=self._logger,
        )

    async def delete(
            self,
            resource: str,
            namespace: str,
            name: str,
    ) -> None:
        references.check_resource(self.api_group, self.api_version, resource, namespace, name)
        await api.delete(
            url=self._resource(resource).get_url(namespace=namespace, name=name),
            codec=self._codec,
            settings=self._settings,
            context=self._context,
            logger=self._logger,
        )

    async def list(
            self,
            resource: str,
            namespace: str,
            *,
            label_selector: Optional[str] = None,
            shape: Optional[codecs.Shape] = None,
    ) -> Any:
        references.check_resource(self.api_group, self.api_version, resource, namespace, _ANY_NAME)
        params: Mapping[str, str] = {'labelSelector': label_selector} if label_selector else {}
        return await api.get(
            url=self._resource(resource).get_url(namespace=namespace, params=params),
            codec=self._codec,
            shape=shape,
            settings=self._settings,
            context=self._context,
            logger=self._logger,
        )

    async def watch(
            self,
            resource: str,
            namespace: str,
            *,
            shape: Optional[codecs.Shape] = None,
            resource_version: Optional[str] = None,
            label_selector: Optional[str] = None,
            stopper: Optional[aiotasks.Future] = None,
    ) -> Union[watching.Watcher, "watching.TypedWatcher[Any]"]:
        """
        Watch the resources in a namespace.

        Without a shape, the raw watcher is returned: its events carry
        the undecoded (JSON-serialized) objects. With a shape, the objects
        are decoded: use ``dict`` to get them as plain dicts.
        """
        references.check_resource(self.api_group, self.api_version, resource, namespace, _ANY_NAME)
        params = references.build_watch_params(
            resource_version=resource_version,
            timeout_seconds=self._settings.watching.server_timeout,
            label_selector=label_selector,
        )
        watcher = await watching.watch(
            url=self._resource(resource).get_url(namespace=namespace, params=params),
            codec=self._codec,
            stopper=stopper,
            settings=self._settings,
            context=self._context,
            logger=self._logger,
        )
        return watcher if shape is None else watching.TypedWatcher(watcher, shape=shape)
