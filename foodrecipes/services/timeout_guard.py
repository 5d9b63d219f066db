from __future__ import annotations

import logging
import threading
from typing import Callable

from foodrecipes.core.cancellation import CancelToken
from foodrecipes.services.executors import AppExecutors
from foodrecipes.services.tasks import RecipeTask

logger = logging.getLogger(__name__)


class TimeoutGuard:
    """Arms a fixed wall-clock deadline for every submitted task.

    The deadline is never disarmed; expiring a task that already finished is a
    no-op.
    """

    def __init__(self, executors: AppExecutors, timeout_seconds: float) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self._executors = executors
        self.timeout_seconds = timeout_seconds

    def new_token(self) -> CancelToken:
        """Token whose deadline matches the one ``arm`` will enforce."""
        return CancelToken.with_timeout(self.timeout_seconds)

    def arm(
        self,
        task: RecipeTask,
        on_expire: Callable[[RecipeTask], object] | None = None,
    ) -> threading.Timer:
        callback = on_expire or (lambda t: t.expire())

        def _expire() -> None:
            logger.debug("Deadline reached for %s (state=%s)", task.label, task.state.value)
            callback(task)

        return self._executors.schedule(self.timeout_seconds, _expire)
