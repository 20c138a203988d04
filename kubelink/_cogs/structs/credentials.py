"""
Connection-related structures: what the HTTP session is built from.

The library does not log in on its own: it reads neither the kubeconfigs
nor the service accounts. The callers pass the endpoint and the credentials
already known to them (or a pre-made aiohttp session), and the library
only turns them into an HTTP session.

Only the HTTP- and TLS-level details are covered: the server URL, the TLS
verification settings & client certificates, the ``Authorization`` header
(basic, bearer, or any other scheme), and the namespace implied by default.
"""
import dataclasses
from typing import Optional, Union

import aiohttp


@dataclasses.dataclass(frozen=True)
class ConnectionInfo:
    """
    An API server's endpoint with the credentials and TLS settings to connect to it.

    The certificates & keys are accepted either as file paths or as in-memory
    data (PEM or base64-encoded PEM, as in the kubeconfigs).
    """
    server: str  # e.g. "https://localhost:443"
    ca_path: Optional[str] = None
    ca_data: Optional[bytes] = None
    insecure: Optional[bool] = None
    username: Optional[str] = None
    password: Optional[str] = None
    scheme: Optional[str] = None  # RFC-7235/5.1: e.g. Bearer, Basic, Digest, etc.
    token: Optional[str] = None
    certificate_path: Optional[str] = None
    certificate_data: Optional[bytes] = None
    private_key_path: Optional[str] = None
    private_key_data: Optional[bytes] = None
    default_namespace: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class AiohttpSession:
    """
    A pre-made aiohttp session with all the auth & TLS already configured.

    The session is used as is. It is closed when the client is closed.
    """
    aiohttp_session: aiohttp.ClientSession
    server: str
    default_namespace: Optional[str] = None


ConnectionSource = Union[ConnectionInfo, AiohttpSession]
