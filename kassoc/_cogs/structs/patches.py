"""
All the structures needed for Kubernetes patching.

Currently, it is implemented via a JSON merge-patch (RFC 7386),
i.e. a simple dictionary with field overrides, and ``None`` for field deletions.
"""
from collections.abc import MutableMapping
from typing import Any


class Patch(dict[str, Any]):

    @property
    def meta(self) -> MutableMapping[str, Any]:
        return self.setdefault('metadata', {})

    @property
    def spec(self) -> MutableMapping[str, Any]:
        return self.setdefault('spec', {})

    @property
    def status(self) -> MutableMapping[str, Any]:
        return self.setdefault('status', {})
