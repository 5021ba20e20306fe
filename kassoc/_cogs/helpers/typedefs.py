"""
Rudimentary type [re-]definitions for mypy and the runtime.

Some stdlib classes are generics for mypy, but not subscriptable at runtime
in all supported Python versions: e.g. :class:`logging.LoggerAdapter`.
"""
import logging
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    LoggerAdapter = logging.LoggerAdapter[Any]
else:
    LoggerAdapter = logging.LoggerAdapter

# We only promise that it is one of the built-in loggable classes.
Logger = Union[logging.Logger, LoggerAdapter]
