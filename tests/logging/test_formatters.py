import json
import logging.handlers

import pytest

from kassoc._cogs.structs.references import ASSOCIATIONS, ObjectKey
from kassoc._core.actions.loggers import LogFormat, ObjectJsonFormatter, ObjectLogger, \
                                         ObjectPrefixingJsonFormatter, \
                                         ObjectPrefixingTextFormatter, ObjectTextFormatter, \
                                         make_formatter


@pytest.fixture()
def ns_record(caplog):
    caplog.set_level(logging.DEBUG)
    handler = logging.handlers.BufferingHandler(capacity=100)
    logger = ObjectLogger(resource=ASSOCIATIONS, key=ObjectKey('namespace1', 'name1'))
    logger.logger.addHandler(handler)
    try:
        logger.info("hello")
    finally:
        logger.logger.removeHandler(handler)
    return handler.buffer[0]


@pytest.fixture()
def plain_record():
    return logging.LogRecord('any', logging.INFO, __file__, 1, "hello", (), None)


def test_object_logger_carries_the_reference(ns_record):
    assert ns_record.k8s_ref == {
        'apiVersion': 'associations.k8s.elastic.co/v1alpha1',
        'kind': 'KibanaElasticsearchAssociation',
        'namespace': 'namespace1',
        'name': 'name1',
    }


def test_object_logger_keeps_the_message_extras(caplog):
    caplog.set_level(logging.DEBUG)
    handler = logging.handlers.BufferingHandler(capacity=100)
    logger = ObjectLogger(resource=ASSOCIATIONS, key=ObjectKey('namespace1', 'name1'))
    logger.logger.addHandler(handler)
    try:
        logger.info("hello", extra={'custom': 'value'})
    finally:
        logger.logger.removeHandler(handler)
    record = handler.buffer[0]
    assert record.custom == 'value'
    assert record.k8s_ref['name'] == 'name1'


def test_prefixing_text_formatter_adds_prefixes_when_namespaced(ns_record):
    formatter = ObjectPrefixingTextFormatter()
    formatted = formatter.format(ns_record)
    assert formatted == '[namespace1/name1] hello'


def test_prefixing_text_formatter_ignores_non_object_records(plain_record):
    formatter = ObjectPrefixingTextFormatter()
    formatted = formatter.format(plain_record)
    assert formatted == 'hello'


def test_prefixing_json_formatter_adds_prefixes(ns_record):
    formatter = ObjectPrefixingJsonFormatter()
    formatted = formatter.format(ns_record)
    decoded = json.loads(formatted)
    assert decoded['message'] == '[namespace1/name1] hello'


def test_regular_text_formatter_omits_prefixes(ns_record):
    formatter = ObjectTextFormatter()
    formatted = formatter.format(ns_record)
    assert formatted == 'hello'


def test_regular_json_formatter_omits_prefixes(ns_record):
    formatter = ObjectJsonFormatter()
    formatted = formatter.format(ns_record)
    decoded = json.loads(formatted)
    assert decoded['message'] == 'hello'


@pytest.mark.parametrize('cls', [ObjectJsonFormatter, ObjectPrefixingJsonFormatter])
@pytest.mark.parametrize('levelno, expected_severity', [
    (logging.DEBUG, 'debug'),
    (logging.DEBUG + 1, 'info'),
    (logging.INFO, 'info'),
    (logging.INFO + 1, 'warn'),
    (logging.WARNING, 'warn'),
    (logging.WARNING + 1, 'error'),
    (logging.ERROR, 'error'),
    (logging.ERROR + 1, 'fatal'),
    (logging.FATAL, 'fatal'),
])
def test_json_formatters_add_severity(ns_record, cls, levelno, expected_severity):
    ns_record.levelno = levelno
    ns_record.levelname = 'must-be-irrelevant'
    formatter = cls()
    formatted = formatter.format(ns_record)
    decoded = json.loads(formatted)
    assert decoded['severity'] == expected_severity


@pytest.mark.parametrize('cls', [ObjectJsonFormatter, ObjectPrefixingJsonFormatter])
def test_json_formatters_add_refkey_with_default_key(ns_record, cls):
    formatter = cls()
    formatted = formatter.format(ns_record)
    decoded = json.loads(formatted)
    assert decoded['object'] == {
        'apiVersion': 'associations.k8s.elastic.co/v1alpha1',
        'kind': 'KibanaElasticsearchAssociation',
        'namespace': 'namespace1',
        'name': 'name1',
    }
    assert 'k8s_ref' not in decoded


@pytest.mark.parametrize('cls', [ObjectJsonFormatter, ObjectPrefixingJsonFormatter])
def test_json_formatters_add_refkey_with_custom_key(ns_record, cls):
    formatter = cls(refkey='k8s-obj')
    formatted = formatter.format(ns_record)
    decoded = json.loads(formatted)
    assert decoded['k8s-obj']['name'] == 'name1'
    assert 'object' not in decoded


@pytest.mark.parametrize('log_format, log_prefix, expected_cls', [
    (LogFormat.FULL, False, ObjectTextFormatter),
    (LogFormat.FULL, True, ObjectPrefixingTextFormatter),
    (LogFormat.FULL, None, ObjectPrefixingTextFormatter),
    (LogFormat.PLAIN, True, ObjectPrefixingTextFormatter),
    (LogFormat.JSON, False, ObjectJsonFormatter),
    (LogFormat.JSON, True, ObjectPrefixingJsonFormatter),
    (LogFormat.JSON, None, ObjectJsonFormatter),
    ('%(message)s', True, ObjectPrefixingTextFormatter),
])
def test_formatter_selection(log_format, log_prefix, expected_cls):
    formatter = make_formatter(log_format=log_format, log_prefix=log_prefix)
    assert type(formatter) is expected_cls


def test_unsupported_format_is_rejected():
    with pytest.raises(ValueError, match=r"Unsupported log format"):
        make_formatter(log_format=123)  # type: ignore
