# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry

"""
Service disposal for injectry containers.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Iterable
from typing import Any

from injectry.logging import get_logger

logger = get_logger(__name__)


class _DisposalManager:
    """Runs ``dispose`` hooks of cached service values for one container."""

    def __init__(self, container_id: str) -> None:
        self.container_id = container_id
        self._pending_tasks: set[asyncio.Task[Any]] = set()

    def dispose_service_sync(self, service: Any) -> None:
        """Call a service's dispose hook from synchronous code.

        Awaitable results are scheduled on the running loop and awaited by the
        next ``wait_for_pending_tasks``; without a loop they run to completion.
        A scheduled hook that fails is logged as soon as it finishes and
        reported again by ``wait_for_pending_tasks``.
        """
        dispose = getattr(service, "dispose", None)
        if not callable(dispose):
            return
        result = dispose()
        if inspect.isawaitable(result):
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                asyncio.run(_await(result))
            else:
                self.add_pending_task(loop.create_task(_await(result)))

    def dispose_services_sync(self, services: Iterable[Any]) -> list[Exception]:
        """Run every dispose hook from synchronous code and collect the failures."""
        failures: list[Exception] = []
        for service in services:
            try:
                self.dispose_service_sync(service)
            except Exception as exc:
                logger.warning(
                    "Service failed to dispose",
                    extra={"container_id": self.container_id, "error": repr(exc)},
                )
                failures.append(exc)
        return failures

    async def dispose_service(self, service: Any) -> None:
        """Dispose a service if it exposes a sync or async ``dispose`` hook."""
        dispose = getattr(service, "dispose", None)
        if not callable(dispose):
            return
        result = dispose()
        if inspect.isawaitable(result):
            await result

    async def dispose_services(self, services: Iterable[Any]) -> list[BaseException]:
        """Run every dispose hook concurrently and collect the failures."""
        services = list(services)
        if not services:
            return []
        results = await asyncio.gather(
            *(self.dispose_service(service) for service in services),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        for failure in failures:
            logger.warning(
                "Service failed to dispose",
                extra={"container_id": self.container_id, "error": repr(failure)},
            )
        return failures

    async def wait_for_pending_tasks(self) -> list[BaseException]:
        """Wait for scheduled disposal tasks and return their failures."""
        if not self._pending_tasks:
            return []
        results = await asyncio.gather(*self._pending_tasks, return_exceptions=True)
        self._pending_tasks.clear()
        return [result for result in results if isinstance(result, BaseException)]

    def add_pending_task(self, task: asyncio.Task[Any]) -> None:
        # kept until awaited so failures are reported
        self._pending_tasks.add(task)
        task.add_done_callback(self._log_task_failure)

    def _log_task_failure(self, task: asyncio.Task[Any]) -> None:
        if task.cancelled() or task.exception() is None:
            return
        logger.warning(
            "Scheduled dispose hook failed",
            extra={"container_id": self.container_id, "error": repr(task.exception())},
        )


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable
