"""
The library's own version, as installed: for the User-Agent header.

The version is not stored in the code: it comes from the distribution's
metadata, which is built from the git tags. It is ``None`` when the code
runs from a source tree that is not installed.
"""
import importlib.metadata
from typing import Optional


def _detect(distribution: str) -> Optional[str]:
    try:
        return importlib.metadata.version(distribution)
    except importlib.metadata.PackageNotFoundError:
        return None


version: Optional[str] = _detect(__name__.split('.')[0])  # usually "kubelink", unless renamed.
