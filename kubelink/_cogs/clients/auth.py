import base64
import contextlib
import ssl
import tempfile

import aiohttp

from kubelink._cogs.helpers import versions
from kubelink._cogs.structs import credentials


class APIContext:
    """
    A container for an aiohttp session and the contextual info for URL building.

    The container is constructed only once per :class:`kubelink.Client`,
    and is then passed explicitly to all the API calls of that client.

    We assume that the whole client runs in the same event loop, so there is
    no need to split the sessions for multiple loops.
    """

    # The main contained object used by the API methods.
    session: aiohttp.ClientSession

    # Contextual information for URL building.
    server: str
    default_namespace: str | None

    # List of open responses.
    responses: list[aiohttp.ClientResponse]

    def __init__(
            self,
            info: credentials.ConnectionSource,
    ) -> None:
        super().__init__()

        # Generic aiohttp session based on the constructed credentials.
        match info:
            case credentials.ConnectionInfo():
                self.session = self.make_aiohttp_session(info)
            case credentials.AiohttpSession():
                self.session = info.aiohttp_session
            case _:
                raise TypeError(f"Unsupported credentials type: {info!r}")

        # Self-identify, unless the user-provided session does it already.
        if self.session.headers.get('User-Agent') is None:
            self.session.headers['User-Agent'] = f'kubelink/{versions.version or "unknown"}'

        # Contextual information for URL building.
        self.server = info.server
        self.default_namespace = info.default_namespace

        self.responses = []

    def make_aiohttp_session(self, info: credentials.ConnectionInfo) -> aiohttp.ClientSession:
        auth = aiohttp.BasicAuth(info.username, info.password) if info.username and info.password else None
        return aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(limit=0, ssl=make_ssl_context(info)),
            headers=make_auth_headers(info),
            auth=auth,
        )

    def add_response(self, response: aiohttp.ClientResponse) -> None:
        """ Track a long-living (streaming) response to close it with the session. """
        self.responses[:] = [r for r in self.responses if not r.closed]
        if not response.closed:
            self.responses.append(response)

    def close_open_responses(self) -> None:
        while self.responses:
            response = self.responses.pop()
            if not response.closed:
                response.close()

    async def close(self) -> None:
        # Streams first: they hold the connections of this session.
        self.close_open_responses()
        await self.session.close()


def decode_to_pem(data: str | bytes) -> str:
    match data:
        case str() if data.startswith('-----BEGIN '):
            return data
        case bytes() if data.startswith(b'-----BEGIN '):
            return data.decode('ascii')
        case _:
            return base64.b64decode(data).decode('ascii')


def make_auth_headers(info: credentials.ConnectionInfo) -> dict[str, str]:
    # RFC-7235/5.1: the scheme goes first; a token alone implies the bearer scheme.
    match info.scheme, info.token:
        case str() as scheme, str() as token if scheme and token:
            return {'Authorization': f'{scheme} {token}'}
        case str() as scheme, _ if scheme:
            return {'Authorization': scheme}
        case _, str() as token if token:
            return {'Authorization': f'Bearer {token}'}
        case _:
            return {}


def make_ssl_context(info: credentials.ConnectionInfo) -> ssl.SSLContext:
    context = ssl.create_default_context(
        purpose=ssl.Purpose.SERVER_AUTH,
        cafile=info.ca_path,
        cadata=decode_to_pem(info.ca_data) if info.ca_data is not None else None,
    )

    # The client certificates are only accepted from files, so the in-memory data go to
    # temporary files for the loading time only. Nothing is written if there is no need:
    # it can be a readonly filesystem.
    with contextlib.ExitStack() as stack:
        cert_path = info.certificate_path or _tempfile(stack, info.certificate_data)
        pkey_path = info.private_key_path or _tempfile(stack, info.private_key_data)
        if cert_path and pkey_path:
            context.load_cert_chain(certfile=cert_path, keyfile=pkey_path)

    if info.insecure:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def _tempfile(stack: contextlib.ExitStack, data: bytes | None) -> str | None:
    if not data:
        return None
    file = stack.enter_context(tempfile.NamedTemporaryFile(buffering=0))
    file.write(decode_to_pem(data).encode('ascii'))
    return file.name
