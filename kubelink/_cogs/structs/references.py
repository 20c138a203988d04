import dataclasses
import urllib.parse
from typing import List, Mapping, Optional


class ValidationError(ValueError):
    """
    Raised when a resource identity is incomplete for the requested operation.

    It is raised before any network activity, and is never retried.
    The missing part of the identity is named in :attr:`field`.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


# The order matters: the first missing part is reported.
_REQUIRED_PARTS = [
    ('api_group', "no api group provided"),
    ('api_version', "no api version provided"),
    ('resource', "no resource provided"),
    ('namespace', "no namespace provided"),
    ('name', "no resource name provided"),
]


def check_resource(
        api_group: str,
        api_version: str,
        resource: str,
        namespace: str,
        name: str,
) -> None:
    """
    Ensure that all parts of the resource identity are set (non-empty).

    For the operations on the resource collections (creating, listing, watching),
    the name is irrelevant, and the callers pass any non-empty placeholder.
    """
    values = dict(
        api_group=api_group,
        api_version=api_version,
        resource=resource,
        namespace=namespace,
        name=name,
    )
    for field, message in _REQUIRED_PARTS:
        if not values[field]:
            raise ValidationError(field, message)


@dataclasses.dataclass(frozen=True)
class Resource:
    """
    A reference to a very specific custom or built-in resource kind.

    The group is an empty string for the core API (``/api/v1``),
    and a domain-like name for all other API groups (``/apis/...``).
    """

    group: str
    version: str
    plural: str

    def __str__(self) -> str:
        return f'{self.plural}.{self.version}.{self.group}'.strip('.')

    @property
    def api_version(self) -> str:
        return f'{self.group}/{self.version}' if self.group else self.version

    def get_url(
            self,
            *,
            server: Optional[str] = None,
            namespace: Optional[str] = None,
            name: Optional[str] = None,
            params: Optional[Mapping[str, str]] = None,
    ) -> str:
        """
        Build a URL to be used with K8s API.

        If the namespace is not set, a cluster-wide URL is returned.

        If the name is not set, the URL for the resource list is returned.
        Otherwise (if set), the URL for the individual resource is returned.

        Params go to the query parameters (``?param1=value1&param2=value2...``).
        """
        return build_url(
            group=self.group,
            version=self.version,
            namespace=namespace,
            plural=self.plural,
            name=name,
            server=server,
            params=params,
        )


def build_url(
        *,
        group: str,
        version: str,
        namespace: Optional[str] = None,
        plural: Optional[str] = None,
        name: Optional[str] = None,
        server: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
) -> str:
    parts: List[Optional[str]] = [
        '/api' if group == '' else '/apis',
        group,
        version,
        'namespaces' if namespace else None,
        namespace,
        plural,
        name,
    ]
    path = '/'.join([part for part in parts if part])
    return build_path_url(path, server=server, params=params)


def build_path_url(
        path: str,
        *,
        server: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Build a URL for an arbitrary path, e.g. for ``/version`` or ``/apis``.

    The server's own path prefix (if any) is preserved: it is typical
    for API servers behind proxies, e.g. ``https://proxy/k8s/clusters/c-123``.
    """
    query = urllib.parse.urlencode(params, encoding='utf-8') if params else ''
    url = '/' + path.lstrip('/') + ('?' if query else '') + query
    return url if server is None else server.rstrip('/') + url


def build_watch_params(
        *,
        resource_version: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        label_selector: Optional[str] = None,
) -> Mapping[str, str]:
    params: dict[str, str] = {}
    params['watch'] = 'true'
    if resource_version is not None:
        params['resourceVersion'] = resource_version
    if timeout_seconds is not None:
        params['timeoutSeconds'] = str(int(timeout_seconds))
    if label_selector is not None:
        params['labelSelector'] = label_selector
    return params
