"""
Detecting the operator's own version, as installed.

The version is determined only once at startup when the code is loaded.
It is used in the ``User-Agent`` header and in ``kassoc --version``.
"""
import importlib.metadata

version: str | None = None

try:
    name, *_ = __name__.split('.')  # usually "kassoc", unless renamed/forked.
    version = importlib.metadata.version(name)
except importlib.metadata.PackageNotFoundError:
    pass  # running from a source tree, not installed.
