import collections
import copy
import io
import json
import logging
import re
import sys
from typing import Any

import aiohttp.web
import pytest
from aiohttp.test_utils import TestServer

from kassoc._cogs.clients import auth, errors
from kassoc._cogs.configs.configuration import OperatorSettings
from kassoc._cogs.structs.credentials import ConnectionInfo
from kassoc._cogs.structs.references import ObjectKey
from kassoc._core.actions.loggers import ObjectPrefixingTextFormatter, configure


@pytest.fixture()
def settings():
    return OperatorSettings()


#
# A fake Kubernetes API server for the client-level tests. Reasons:
# 1. We test our own client wrappers over aiohttp, so the HTTP level is real.
# 2. No external calls must be made under any circumstances.
#    The unit-tests must be fully isolated from the environment.
#

class FakeAPI:
    """
    A registry of the responses served one by one for the requested URLs.

    Every added response is served once, in the order of addition for the same
    method & URL (with the query string). The unmatched requests get HTTP 418,
    so that they fail loudly as client errors and are not retried.
    All the requests are remembered with their parsed payloads for assertions.
    """

    def __init__(self) -> None:
        super().__init__()
        self.responses: dict[tuple[str, str], list[tuple[int, Any, str | None]]] = \
            collections.defaultdict(list)
        self.requests: list[tuple[str, str, Any]] = []

    def add(
            self,
            method: str,
            url: str,
            *,
            status: int = 200,
            json: Any = None,
            text: str | None = None,
    ) -> None:
        self.responses[method.upper(), url].append((status, json, text))

    def add_stream(self, url: str, events: list[Any]) -> None:
        self.add('get', url, text='\n'.join(json.dumps(event) for event in events))

    def calls(self, method: str, url: str) -> list[Any]:
        return [data for m, u, data in self.requests if m == method.upper() and u == url]

    async def handler(self, request: aiohttp.web.Request) -> aiohttp.web.StreamResponse:
        raw = await request.read()
        data = json.loads(raw) if raw else None
        self.requests.append((request.method, request.path_qs, data))

        queue = self.responses.get((request.method, request.path_qs))
        if not queue:
            return aiohttp.web.json_response(status=418, data={
                'kind': 'Status', 'code': 418, 'message': f'unexpected {request.path_qs}',
            })

        status, payload, text = queue.pop(0)
        if text is not None:
            return aiohttp.web.Response(status=status, text=text)
        return aiohttp.web.json_response(payload, status=status)


@pytest.fixture()
async def fake_server():
    """ A running fake API server, and the operator's context logged into it. """
    api = FakeAPI()
    app = aiohttp.web.Application()
    app.router.add_route('*', '/{tail:.*}', api.handler)
    async with TestServer(app) as server:
        context = auth.APIContext(ConnectionInfo(server=str(server.make_url(''))))
        try:
            yield api, context
        finally:
            await context.close()


# The context var is set in a sync fixture: the tests' tasks copy the main context, but not
# the contexts of the async fixtures' tasks.
@pytest.fixture()
def fake_api(fake_server):
    api, context = fake_server
    token = auth.context_var.set(context)
    try:
        yield api
    finally:
        auth.context_var.reset(token)


#
# An in-memory resource store for the reconciler tests.
#

class FakeStore:
    """
    An in-memory store of the raw bodies by resource & key.

    The absent objects raise `APINotFoundError`, as the real API does.
    The errors can be injected per operation & resource via ``fail_on``.
    All writes are recorded in ``writes`` for assertions.
    """

    def __init__(self) -> None:
        super().__init__()
        self.objects: dict[tuple[str, ObjectKey], dict[str, Any]] = {}
        self.writes: list[tuple[str, str, ObjectKey, Any]] = []
        self.failures: dict[tuple[str, str], BaseException] = {}

    def put(self, resource, body):
        meta = body.get('metadata', {})
        key = ObjectKey(meta.get('namespace', ''), meta['name'])
        self.objects[resource.plural, key] = copy.deepcopy(body)

    def get(self, resource, key):
        return self.objects.get((resource.plural, key))

    def fail_on(self, operation, resource, exc):
        self.failures[operation, resource.plural] = exc

    def _check(self, operation, resource):
        exc = self.failures.get((operation, resource.plural))
        if exc is not None:
            raise exc

    def _not_found(self, resource, key):
        return errors.APINotFoundError({
            'kind': 'Status', 'code': 404, 'message': f'{resource.plural} {key} not found',
        }, status=404)

    async def read(self, resource, key, *, logger):
        self._check('read', resource)
        body = self.objects.get((resource.plural, key))
        if body is None:
            raise self._not_found(resource, key)
        return copy.deepcopy(body)

    async def replace(self, resource, body, *, logger):
        self._check('replace', resource)
        meta = body.get('metadata', {})
        key = ObjectKey(meta.get('namespace', ''), meta['name'])
        if (resource.plural, key) not in self.objects:
            raise self._not_found(resource, key)
        self.writes.append(('replace', resource.plural, key, copy.deepcopy(body)))
        self.objects[resource.plural, key] = copy.deepcopy(body)
        return copy.deepcopy(body)

    async def patch(self, resource, key, patch, *, logger):
        self._check('patch', resource)
        body = self.objects.get((resource.plural, key))
        if body is None:
            raise self._not_found(resource, key)
        self.writes.append(('patch', resource.plural, key, copy.deepcopy(dict(patch))))
        _merge(body, copy.deepcopy(dict(patch)))
        return copy.deepcopy(body)


def _merge(target: dict[str, Any], patch: dict[str, Any]) -> None:
    for key, value in patch.items():
        if value is None:
            target.pop(key, None)
        elif isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


@pytest.fixture()
def store():
    return FakeStore()


#
# Helpers for the logging checks.
#

@pytest.fixture()
def logstream(caplog):
    """ Prefixing is done at the final output. We have to intercept it. """

    logger = logging.getLogger()
    handlers = list(logger.handlers)

    # Setup all log levels of sub-libraries. A side-effect: the handlers are also added.
    configure(verbose=True)

    # Remove any stream handlers added in the step above. But keep the caplog's handlers.
    for handler in list(logger.handlers):
        if isinstance(handler, logging.StreamHandler) and handler.stream is sys.stderr:
            logger.removeHandler(handler)

    # Inject our stream-intercepting handler.
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    formatter = ObjectPrefixingTextFormatter('prefix %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    try:
        with caplog.at_level(logging.DEBUG):
            yield stream
    finally:
        logger.removeHandler(handler)
        logger.handlers[:] = handlers  # undo `configure()`


@pytest.fixture()
def assert_logs(caplog):
    """
    A function to assert the logs are present (by pattern).

    The listed message patterns MUST be present, in the order specified.
    Some other log messages can also be present, but they are ignored.
    """
    def assert_logs_fn(patterns, prohibited=[]):
        __traceback_hide__ = True
        remaining_patterns = list(patterns)
        for message in caplog.messages:
            if remaining_patterns and re.search(remaining_patterns[0], message):
                remaining_patterns[:1] = []

            # Check that the prohibited patterns do not appear in any message.
            for pattern in prohibited:
                if re.search(pattern, message):
                    raise AssertionError(f"Prohibited log pattern found: {message!r} ~ {pattern!r}")

        if remaining_patterns:
            raise AssertionError(f"Few patterns were missed: {remaining_patterns!r}")

    return assert_logs_fn
