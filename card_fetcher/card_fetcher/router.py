"""
Routes character URLs to site handlers and builds Tasks for them.

Handlers are consulted in registration order; the first one with a base URL
contained in the requested URL wins. The handler list sits behind a
readers/writer lock so registration can happen while other threads route.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

import requests

from .config import CardFetcherConfig, IntegrationConfig
from .consistency import sheets_equivalent
from .factory import build_handlers
from .handler import SourceHandler
from .snapshots import load_snapshot
from .task import Task
from .transport import create_retry_session

logger = logging.getLogger(__name__)


class IntegrationStatus(Enum):
    SOURCE_DOWN = "SOURCE DOWN"
    MISSING_REMOTE_RESOURCE = "MISSING REMOTE RESOURCE"
    MISMATCHED_REMOTE_RESOURCE = "MISMATCHED REMOTE RESOURCE"
    MISSING_LOCAL_RESOURCE = "MISSING LOCAL RESOURCE"
    INTEGRATION_FAILURE = "INTEGRATION FAILURE"
    INTEGRATION_SUCCESS = "INTEGRATION SUCCESS"

    def __str__(self) -> str:
        return self.value


@dataclass
class TaskBucket:
    """Tasks keyed by normalized URL; URLs resolving to the same character collapse."""
    tasks: Dict[str, Task] = field(default_factory=dict)
    valid_urls: List[str] = field(default_factory=list)
    invalid_urls: List[str] = field(default_factory=list)


@dataclass
class TaskSlice:
    """Tasks in input order, one per routable URL."""
    tasks: List[Task] = field(default_factory=list)
    valid_urls: List[str] = field(default_factory=list)
    invalid_urls: List[str] = field(default_factory=list)


class ReadWriteLock:
    """Many readers or one writer. Writers wait for active readers to leave."""

    def __init__(self):
        self._cond = threading.Condition()
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self):
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class Router:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        integration: Optional[IntegrationConfig] = None,
        add_source_tag: bool = False,
    ):
        self.session = session or create_retry_session()
        self.integration = integration or IntegrationConfig()
        self.add_source_tag = add_source_tag
        self._lock = ReadWriteLock()
        self._handlers: List[SourceHandler] = []

    @classmethod
    def from_config(cls, config: CardFetcherConfig) -> "Router":
        """Builds the shared session and every configured handler."""
        session = create_retry_session(config.http)
        router = cls(session=session, integration=config.integration, add_source_tag=config.add_source_tag)
        router.register_handlers(*build_handlers(config.handlers, session))
        return router

    def register_handler(self, handler: SourceHandler) -> None:
        with self._lock.write():
            self._handlers.append(handler)
        logger.debug(f"Registered handler {handler.source_id()}")

    def register_handlers(self, *handlers: SourceHandler) -> None:
        with self._lock.write():
            self._handlers.extend(handlers)
        logger.debug(f"Registered {len(handlers)} handlers")

    def sources(self) -> List[str]:
        with self._lock.read():
            return [h.source_id() for h in self._handlers]

    def handlers(self) -> List[SourceHandler]:
        with self._lock.read():
            return list(self._handlers)

    def task_of(self, url: str) -> Optional[Task]:
        """Returns a Task for ``url``, or None when no handler claims it."""
        with self._lock.read():
            for handler in self._handlers:
                task = self._try_handler(handler, url)
                if task is not None:
                    return task
        logger.debug(f"No handler for {url}")
        return None

    def task_map_of(self, urls: Iterable[str]) -> TaskBucket:
        bucket = TaskBucket()
        for url in urls:
            task = self.task_of(url)
            if task is None:
                bucket.invalid_urls.append(url)
                continue
            bucket.tasks[task.normalized_url] = task
            bucket.valid_urls.append(task.normalized_url)
        return bucket

    def task_slice_of(self, urls: Iterable[str]) -> TaskSlice:
        container = TaskSlice()
        for url in urls:
            task = self.task_of(url)
            if task is None:
                container.invalid_urls.append(url)
                continue
            container.tasks.append(task)
            container.valid_urls.append(task.normalized_url)
        return container

    def check_integrations(self) -> Dict[str, IntegrationStatus]:
        """
        Runs the integration check of every handler, one worker thread each,
        and waits for all of them.
        """
        with self._lock.read():
            handlers = list(self._handlers)
            if not handlers:
                return {}
            with ThreadPoolExecutor(max_workers=len(handlers)) as executor:
                statuses = list(executor.map(self._check_integration, handlers))

        return {h.source_id(): status for h, status in zip(handlers, statuses)}

    def _try_handler(self, handler: SourceHandler, url: str) -> Optional[Task]:
        for base_url in handler.base_urls():
            if base_url and base_url in url:
                return Task(handler, url, base_url, add_source_tag=self.add_source_tag)
        return None

    def _check_integration(self, handler: SourceHandler) -> IntegrationStatus:
        status = self._integration_status(handler)
        log = logger.info if status is IntegrationStatus.INTEGRATION_SUCCESS else logger.warning
        log(f"[{handler.source_id()}] {status}")
        return status

    def _integration_status(self, handler: SourceHandler) -> IntegrationStatus:
        source_id = handler.source_id()

        try:
            local_card = load_snapshot(source_id, self.integration)
        except Exception as e:
            logger.debug(f"[{source_id}] snapshot unavailable: {e}")
            return IntegrationStatus.MISSING_LOCAL_RESOURCE

        if not handler.is_source_up():
            return IntegrationStatus.SOURCE_DOWN

        resource_url = self.integration.resource_url(source_id)
        if not resource_url:
            return IntegrationStatus.MISMATCHED_REMOTE_RESOURCE
        task = self._try_handler(handler, resource_url)
        if task is None:
            return IntegrationStatus.MISMATCHED_REMOTE_RESOURCE

        try:
            metadata, card = task.fetch_all()
        except Exception as e:
            logger.debug(f"[{source_id}] fetch of {resource_url} failed: {e}")
            return IntegrationStatus.MISSING_REMOTE_RESOURCE

        if card.is_malformed():
            return IntegrationStatus.INTEGRATION_FAILURE
        if not metadata.is_consistent_with(card.sheet):
            return IntegrationStatus.INTEGRATION_FAILURE
        if not sheets_equivalent(local_card.sheet, card.sheet):
            return IntegrationStatus.INTEGRATION_FAILURE

        return IntegrationStatus.INTEGRATION_SUCCESS
