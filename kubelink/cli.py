import asyncio
import enum
import functools
import json
from typing import Any, Awaitable, Callable, Optional, TypeVar

import click
import yaml
from google.protobuf import json_format

from kubelink._cogs.clients import errors
from kubelink._cogs.structs import credentials, references
from kubelink._core import clients
from kubelink._core.engines import loggers

_T = TypeVar('_T')


class OutputFormat(enum.Enum):
    JSON = 'json'
    YAML = 'yaml'


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        name: str = super().convert(value, param, ctx)
        return loggers.LogFormat[name.upper()]


class OutputFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.value for v in OutputFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> OutputFormat:
        name: str = super().convert(value, param, ctx)
        return OutputFormat(name)


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure logging in all commands the same way."""
    @click.option('-v', '--verbose', is_flag=True)
    @click.option('-d', '--debug', is_flag=True)
    @click.option('-q', '--quiet', is_flag=True)
    @click.option('--log-format', type=LogFormatParamType(), default='plain')
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(verbose: bool, quiet: bool, debug: bool,
                log_format: loggers.LogFormat = loggers.LogFormat.PLAIN,
                *args: Any, **kwargs: Any) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet, log_format=log_format)
        return fn(*args, **kwargs)

    return wrapper


def connection_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to build the connection info in all commands the same way."""
    @click.option('--server', type=str, required=True, envvar='KUBELINK_SERVER')
    @click.option('--token', type=str, envvar='KUBELINK_TOKEN')
    @click.option('--ca-file', type=click.Path(exists=True, dir_okay=False), envvar='KUBELINK_CA_FILE')
    @click.option('--insecure', is_flag=True, envvar='KUBELINK_INSECURE')
    @click.option('-o', '--output', type=OutputFormatParamType(), default='yaml')
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(server: str, token: Optional[str], ca_file: Optional[str], insecure: bool,
                output: OutputFormat,
                *args: Any, **kwargs: Any) -> Any:
        info = credentials.ConnectionInfo(
            server=server,
            token=token,
            ca_path=ca_file,
            insecure=insecure or None,
        )
        return fn(info, output, *args, **kwargs)

    return wrapper


@click.version_option(prog_name='kubelink')
@click.group(name='kubelink', context_settings=dict(
    auto_envvar_prefix='KUBELINK',
))
def main() -> None:
    pass


@main.command()
@logging_options
@connection_options
def version(info: credentials.ConnectionInfo, output: OutputFormat) -> None:
    """ Show the version of the API server. """
    async def fetch(client: clients.Client) -> Any:
        server_version = await client.discovery().version()
        return server_version.as_raw()

    echo(run(info, fetch), output=output)


@main.command()
@logging_options
@connection_options
def groups(info: credentials.ConnectionInfo, output: OutputFormat) -> None:
    """ List the API groups of the server. """
    async def fetch(client: clients.Client) -> Any:
        group_list = await client.discovery().api_groups()
        return json_format.MessageToDict(group_list)

    echo(run(info, fetch), output=output)


@main.command()
@logging_options
@connection_options
@click.argument('group')
@click.argument('version')
def resources(info: credentials.ConnectionInfo, output: OutputFormat, group: str, version: str) -> None:
    """ List the resources of an API group's version (use "" for the core API). """
    async def fetch(client: clients.Client) -> Any:
        resource_list = await client.discovery().api_resources(group, version)
        return json_format.MessageToDict(resource_list)

    echo(run(info, fetch), output=output)


@main.command()
@logging_options
@connection_options
@click.option('-n', '--namespace', type=str, default='default', envvar='KUBELINK_NAMESPACE')
@click.option('-l', '--selector', 'label_selector', type=str)
@click.option('--resource-version', type=str)
@click.argument('group')
@click.argument('version')
@click.argument('resource')
def watch(
        info: credentials.ConnectionInfo,
        output: OutputFormat,
        namespace: str,
        label_selector: Optional[str],
        resource_version: Optional[str],
        group: str,
        version: str,
        resource: str,
) -> None:
    """ Watch the third-party resources and print the events as they arrive. """
    async def stream(client: clients.Client) -> None:
        watcher = await client.thirdparty(group, version).watch(
            resource, namespace,
            shape=dict,
            label_selector=label_selector,
            resource_version=resource_version,
        )
        async with watcher:
            async for event, obj in watcher:
                echo({'type': event.type.value, 'object': obj}, output=output, stream=True)

    run(info, stream)


def run(
        info: credentials.ConnectionInfo,
        fn: Callable[[clients.Client], Awaitable[_T]],
) -> _T:
    async def _run() -> _T:
        async with clients.Client(info) as client:
            return await fn(client)

    try:
        return asyncio.run(_run())
    except errors.APIError as e:
        raise click.ClickException(f"API error {e.status}: {e.message or 'no details'}")
    except (references.ValidationError, errors.TransportError, errors.DecodeError,
            errors.FramingError) as e:
        raise click.ClickException(f"{e.__class__.__name__}: {e}")


def echo(data: Any, *, output: OutputFormat, stream: bool = False) -> None:
    match output:
        case OutputFormat.JSON:
            # One event per line for the streams, so that the output can be piped further.
            click.echo(json.dumps(data) if stream else json.dumps(data, indent=2))
        case OutputFormat.YAML:
            click.echo(yaml.safe_dump(data, sort_keys=False, explicit_start=stream), nl=False)
