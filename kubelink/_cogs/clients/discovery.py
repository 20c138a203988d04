"""
Discovery of the API server: its version, API groups, and resources.

All the discovery objects are the well-known K8s kinds, so they are
transferred with the binary (protobuf) codec. The only exception is
the server's version, which is not a K8s object and is always JSON.
"""
from typing import Optional

from kubelink._cogs.aiokits import aiotasks
from kubelink._cogs.clients import api, auth, codecs, watching
from kubelink._cogs.configs import configuration
from kubelink._cogs.helpers import typedefs
from kubelink._cogs.structs import bodies, references, schemas


class Discovery:
    """
    A client to determine the API version and the supported resources of the server.
    """

    def __init__(
            self,
            *,
            json_codec: codecs.JSONCodec,
            protobuf_codec: codecs.ProtobufCodec,
            settings: configuration.ClientSettings,
            context: auth.APIContext,
            logger: typedefs.Logger,
    ) -> None:
        super().__init__()
        self._json_codec = json_codec
        self._protobuf_codec = protobuf_codec
        self._settings = settings
        self._context = context
        self._logger = logger

    async def version(self) -> bodies.Version:
        version: bodies.Version = await api.get(
            url=references.build_path_url('version'),
            codec=self._json_codec,
            shape=bodies.Version.from_raw,
            settings=self._settings,
            context=self._context,
            logger=self._logger,
        )
        return version

    async def api_groups(self) -> schemas.Message:
        return await api.get(
            url=references.build_path_url('apis'),
            codec=self._protobuf_codec,
            shape=schemas.APIGroupList,
            settings=self._settings,
            context=self._context,
            logger=self._logger,
        )

    async def api_group(self, name: str) -> schemas.Message:
        if not name:
            raise references.ValidationError('api_group', "no api group provided")
        return await api.get(
            url=references.build_path_url(f'apis/{name}'),
            codec=self._protobuf_codec,
            shape=schemas.APIGroup,
            settings=self._settings,
            context=self._context,
            logger=self._logger,
        )

    async def api_resources(self, group: str, version: str) -> schemas.Message:
        """
        List the resources of a group's version; an empty group is the core API (``/api``).
        """
        if not version:
            raise references.ValidationError('api_version', "no api version provided")
        return await api.get(
            url=references.build_url(group=group, version=version),
            codec=self._protobuf_codec,
            shape=schemas.APIResourceList,
            settings=self._settings,
            context=self._context,
            logger=self._logger,
        )

    async def watch_api_resources(
            self,
            group: str,
            version: str,
            *,
            resource_version: Optional[str] = None,
            stopper: Optional[aiotasks.Future] = None,
    ) -> "watching.TypedWatcher[schemas.Message]":
        if not version:
            raise references.ValidationError('api_version', "no api version provided")
        params = references.build_watch_params(
            resource_version=resource_version,
            timeout_seconds=self._settings.watching.server_timeout,
        )
        watcher = await watching.watch(
            url=references.build_url(group=group, version=version, params=params),
            codec=self._protobuf_codec,
            stopper=stopper,
            settings=self._settings,
            context=self._context,
            logger=self._logger,
        )
        return watching.TypedWatcher(watcher, shape=schemas.APIResource)
