"""
The client's facade: one entry point with all the pieces wired together.

The low-level API calls expect the codecs, the settings, the HTTP context,
and the logger to be passed explicitly. The client keeps them all in one place
and gives out the resource clients, which pass them to the API calls.

The client must be created in a coroutine (i.e. with a running event loop),
since it creates an aiohttp session, and must be closed when not needed::

    async with kubelink.Client(kubelink.ConnectionInfo(server=...)) as client:
        version = await client.discovery().version()
"""
import logging
from typing import Any, Mapping, Optional

from kubelink._cogs.clients import auth, codecs, discovery, thirdparty
from kubelink._cogs.configs import configuration
from kubelink._cogs.helpers import typedefs
from kubelink._cogs.structs import credentials, references

DEFAULT_LOGGER = logging.getLogger('kubelink.client')


class Client:

    def __init__(
            self,
            info: credentials.ConnectionSource,
            *,
            settings: Optional[configuration.ClientSettings] = None,
            logger: Optional[typedefs.Logger] = None,
    ) -> None:
        super().__init__()
        self.settings = settings if settings is not None else configuration.ClientSettings()
        self.logger = logger if logger is not None else DEFAULT_LOGGER
        self.context = auth.APIContext(info)
        self.json_codec = codecs.JSONCodec()
        self.protobuf_codec = codecs.ProtobufCodec()

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self.context.server}>'

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """ Close the HTTP session and all the watch-streams still open. """
        await self.context.close()

    @property
    def server(self) -> str:
        return self.context.server

    @property
    def default_namespace(self) -> Optional[str]:
        return self.context.default_namespace

    def url_for(
            self,
            group: str,
            version: str,
            namespace: Optional[str] = None,
            resource: Optional[str] = None,
            name: Optional[str] = None,
            *,
            params: Optional[Mapping[str, str]] = None,
    ) -> str:
        return references.build_url(
            group=group,
            version=version,
            namespace=namespace,
            plural=resource,
            name=name,
            server=self.context.server,
            params=params,
        )

    def url_for_path(self, path: str, *, params: Optional[Mapping[str, str]] = None) -> str:
        return references.build_path_url(path, server=self.context.server, params=params)

    def discovery(self) -> discovery.Discovery:
        return discovery.Discovery(
            json_codec=self.json_codec,
            protobuf_codec=self.protobuf_codec,
            settings=self.settings,
            context=self.context,
            logger=self.logger,
        )

    def thirdparty(self, api_group: str, api_version: str) -> thirdparty.ThirdPartyResources:
        return thirdparty.ThirdPartyResources(
            api_group,
            api_version,
            codec=self.json_codec,
            settings=self.settings,
            context=self.context,
            logger=self.logger,
        )
