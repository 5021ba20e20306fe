"""
The Elasticsearch backend configuration as embedded into Kibana's spec.

The configuration is parsed from the raw Kibana's ``spec.elasticsearch`` into
frozen dataclasses, and compared field by field with the desired configuration.
The fields unknown to the operator are ignored in this comparison
(and are lost when the operator rewrites the configuration).
"""
import dataclasses
from collections.abc import Mapping
from typing import Any


@dataclasses.dataclass(frozen=True)
class InlineAuth:
    username: str = ''
    password: str = ''

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | None) -> "InlineAuth | None":
        if raw is None:
            return None
        return cls(username=raw.get('username', ''), password=raw.get('password', ''))

    def as_raw(self) -> dict[str, Any]:
        return {'username': self.username, 'password': self.password}


@dataclasses.dataclass(frozen=True)
class SecretKeyRef:
    name: str = ''
    key: str = ''

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | None) -> "SecretKeyRef | None":
        if raw is None:
            return None
        return cls(name=raw.get('name', ''), key=raw.get('key', ''))

    def as_raw(self) -> dict[str, Any]:
        return {'name': self.name, 'key': self.key}


@dataclasses.dataclass(frozen=True)
class BackendAuth:
    inline: InlineAuth | None = None
    secret: SecretKeyRef | None = None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | None) -> "BackendAuth":
        raw = raw or {}
        return cls(
            inline=InlineAuth.from_raw(raw.get('inline')),
            secret=SecretKeyRef.from_raw(raw.get('secret')),
        )

    def as_raw(self) -> dict[str, Any]:
        raw: dict[str, Any] = {}
        if self.inline is not None:
            raw['inline'] = self.inline.as_raw()
        if self.secret is not None:
            raw['secret'] = self.secret.as_raw()
        return raw


@dataclasses.dataclass(frozen=True)
class ElasticsearchBackend:
    url: str = ''
    auth: BackendAuth = dataclasses.field(default_factory=BackendAuth)
    ca_cert_secret: str | None = None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | None) -> "ElasticsearchBackend":
        raw = raw or {}
        return cls(
            url=raw.get('url', ''),
            auth=BackendAuth.from_raw(raw.get('auth')),
            ca_cert_secret=raw.get('caCertSecret'),
        )

    def as_raw(self) -> dict[str, Any]:
        raw: dict[str, Any] = {'url': self.url, 'auth': self.auth.as_raw()}
        if self.ca_cert_secret is not None:
            raw['caCertSecret'] = self.ca_cert_secret
        return raw
