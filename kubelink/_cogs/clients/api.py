"""
The generic request dispatcher for all the API calls.

Every call is a single HTTP request & response: there are no retries here.
The request bodies are encoded and the response bodies are decoded
with the codec chosen by the caller (JSON or protobuf).

The failures are translated to the library's own errors:

* non-success statuses -- to :class:`errors.APIError` and its descendants,
  with the status info as decoded from the response body (if any);
* connectivity issues and timeouts -- to :class:`errors.TransportError`.

The cancellation of the calling task cancels the in-flight request promptly:
it is the regular :class:`asyncio.CancelledError`, as everywhere in asyncio.
"""
import asyncio
from typing import Any, Mapping, Optional

import aiohttp

from kubelink._cogs.clients import auth, codecs, errors
from kubelink._cogs.configs import configuration
from kubelink._cogs.helpers import typedefs
from kubelink._cogs.structs import references

# Everything that can happen on the wire, as opposed to the API-level errors.
TRANSPORT_ERRORS = (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError)


async def request(
        method: str,
        url: str,  # relative to the server/api root.
        *,
        codec: codecs.Codec,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> aiohttp.ClientResponse:
    """
    Send a request, check the response for errors, but do not read the body.
    """
    if '://' not in url:
        url = references.build_path_url(url, server=context.server)

    if timeout is None:
        timeout = aiohttp.ClientTimeout(
            total=settings.networking.request_timeout,
            sock_connect=settings.networking.connect_timeout,
        )

    data = codec.encode(payload) if payload is not None else None
    all_headers = {'Accept': codec.content_type}
    if data is not None:
        all_headers['Content-Type'] = codec.content_type
    all_headers.update(headers or {})

    what = f"{method.upper()} {url}"
    try:
        response = await context.session.request(
            method=method,
            url=url,
            data=data,
            headers=all_headers,
            timeout=timeout,
        )
    except TRANSPORT_ERRORS as e:
        logger.debug(f"Request failed: {what} -> {e!r}")
        raise errors.TransportError(f"Request failed: {what} -> {e!r}") from e

    logger.debug(f"Request sent: {what} -> {response.status}")
    await errors.check_response(response, codec=codec)  # but do not parse it!
    return response


async def get(
        url: str,  # relative to the server/api root.
        *,
        codec: codecs.Codec,
        shape: Optional[codecs.Shape] = None,
        settings: configuration.ClientSettings,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> Any:
    response = await request(
        method='get',
        url=url,
        codec=codec,
        headers=headers,
        timeout=timeout,
        settings=settings,
        context=context,
        logger=logger,
    )
    data = await read_body(response)
    return codec.decode(data, shape)


async def create(
        url: str,  # relative to the server/api root.
        *,
        method: str = 'post',
        codec: codecs.Codec,
        payload: Optional[object] = None,
        shape: Optional[codecs.Shape] = None,
        settings: configuration.ClientSettings,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> Any:
    """
    Send an object to the server (``POST`` to create, ``PUT`` to update).
    """
    response = await request(
        method=method,
        url=url,
        codec=codec,
        payload=payload,
        headers=headers,
        timeout=timeout,
        settings=settings,
        context=context,
        logger=logger,
    )
    data = await read_body(response)
    return codec.decode(data, shape)


async def delete(
        url: str,  # relative to the server/api root.
        *,
        codec: codecs.Codec,
        settings: configuration.ClientSettings,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> None:
    """
    Delete an object. The response's body (the object or a status) is ignored.
    """
    response = await request(
        method='delete',
        url=url,
        codec=codec,
        headers=headers,
        timeout=timeout,
        settings=settings,
        context=context,
        logger=logger,
    )
    await read_body(response)


async def read_body(response: aiohttp.ClientResponse) -> bytes:
    try:
        async with response:
            return await response.read()
    except TRANSPORT_ERRORS as e:
        raise errors.TransportError(f"Reading the response failed: {e!r}") from e
