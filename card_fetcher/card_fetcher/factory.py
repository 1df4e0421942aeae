"""
Builds site handlers from ``module:attribute`` paths found in configuration.

The attribute is a factory (usually the handler class) called with the shared
HTTP session.
"""

import importlib
import logging
from typing import Iterable, List

import requests

from .handler import SourceHandler
from .logging import ConfigError

logger = logging.getLogger(__name__)


def load_handler(path: str, session: requests.Session) -> SourceHandler:
    module_name, sep, attribute = path.partition(":")
    if not sep or not module_name or not attribute:
        raise ConfigError(f"Handler path must look like 'module:attribute', got '{path}'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import handler module '{module_name}': {e}") from e

    factory = getattr(module, attribute, None)
    if factory is None or not callable(factory):
        raise ConfigError(f"'{attribute}' in '{module_name}' is not a handler factory")

    handler = factory(session)
    if not isinstance(handler, SourceHandler):
        raise ConfigError(f"'{path}' did not produce a source handler")

    logger.debug(f"Loaded handler {handler.source_id()} from {path}")
    return handler


def build_handlers(paths: Iterable[str], session: requests.Session) -> List[SourceHandler]:
    """Loads every handler in ``paths``, preserving order."""
    return [load_handler(path, session) for path in paths]
