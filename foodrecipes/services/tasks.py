from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from enum import Enum
from typing import Callable

from foodrecipes.adapters.recipes.base import ApiResponse, RecipeService
from foodrecipes.core.cancellation import CancelToken
from foodrecipes.core.errors import (
    ApiFailure,
    RecipeApiError,
    RequestCanceled,
    RequestTimedOut,
    TransportFailure,
)
from foodrecipes.core.logging import clear_current_request, set_current_request
from foodrecipes.domain.models import LookupRequest, Recipe, SearchRequest
from foodrecipes.services.live_data import LiveData

logger = logging.getLogger(__name__)


class TaskState(str, Enum):
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"
    timed_out = "timed_out"
    canceled = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self not in (TaskState.pending, TaskState.running)


class RecipeTask:
    """One request bound to a slot.

    Completion, failure, timeout and cancel all resolve through ``_finish``,
    a compare-and-set out of pending/running. Only the winner publishes, so a
    deadline racing a response never produces both a result and a timeout.
    """

    def __init__(
        self,
        service: RecipeService,
        api_key: str,
        *,
        token: CancelToken,
        errors: LiveData[RecipeApiError | None],
        on_timed_out: Callable[[], None] | None = None,
    ) -> None:
        self._service = service
        self._api_key = api_key
        self.token = token
        self._errors = errors
        self._on_timed_out = on_timed_out
        self._state = TaskState.pending
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._future: Future | None = None

    @property
    def label(self) -> str:
        raise NotImplementedError

    @property
    def state(self) -> TaskState:
        with self._lock:
            return self._state

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the task reaches a terminal state."""
        return self._done.wait(timeout)

    def attach(self, future: Future) -> None:
        with self._lock:
            self._future = future
            terminal = self._state.is_terminal
        if terminal:
            # Expired or canceled before the executor handed it back
            future.cancel()

    def cancel(self) -> None:
        """Resolve the task as canceled and abort its call.

        A pending or running task becomes canceled right away, so a deadline that
        fires later is a no-op and nothing is published for it.
        """
        logger.debug("cancel: canceling %s", self.label)
        won = self._finish(TaskState.canceled)
        self.token.cancel()
        if not won:
            return
        with self._lock:
            future = self._future
        if future is not None:
            future.cancel()
        self._done.set()

    def expire(self) -> bool:
        """Deadline action. Returns False when the task had already finished."""
        if not self._finish(TaskState.timed_out):
            return False
        logger.warning("Request %s timed out", self.label)
        self._errors.post_value(RequestTimedOut("Request timed out", request=self.label))
        if self._on_timed_out is not None:
            self._on_timed_out()
        self.token.cancel()
        with self._lock:
            future = self._future
        if future is not None:
            future.cancel()
        self._done.set()
        return True

    def run(self) -> None:
        with self._lock:
            if self._state is not TaskState.pending:
                return
            self._state = TaskState.running
        set_current_request(self.label)
        try:
            self._run()
        except Exception as e:
            logger.exception("run: unexpected error")
            self._fail(TransportFailure(f"Unexpected error: {e}", request=self.label))
        finally:
            clear_current_request()
            self._done.set()

    def _run(self) -> None:
        try:
            response = self._call()
        except RequestTimedOut:
            self.expire()
            return
        except RequestCanceled:
            self._finish(TaskState.canceled)
            return
        except RecipeApiError as e:
            if self.token.canceled:
                self._finish(TaskState.canceled)
                return
            logger.error("run: %s", e)
            self._fail(e)
            return

        if self.token.canceled:
            logger.debug("run: dropping result of canceled request")
            self._finish(TaskState.canceled)
            return
        if response.is_successful:
            if self._finish(TaskState.completed):
                self._publish(response)
        else:
            logger.error("run: %s", response.error_body)
            self._fail(ApiFailure(response.status_code, response.error_body or "", request=self.label))

    def _finish(self, state: TaskState) -> bool:
        with self._lock:
            if self._state.is_terminal:
                return False
            self._state = state
        return True

    def _fail(self, error: RecipeApiError) -> None:
        if self._finish(TaskState.failed):
            self._errors.post_value(error)
            self._publish_failure()

    def _call(self) -> ApiResponse:
        raise NotImplementedError

    def _publish(self, response: ApiResponse) -> None:
        raise NotImplementedError

    def _publish_failure(self) -> None:
        raise NotImplementedError


class SearchRecipesTask(RecipeTask):
    def __init__(
        self,
        request: SearchRequest,
        service: RecipeService,
        api_key: str,
        *,
        token: CancelToken,
        recipes: LiveData[list[Recipe] | None],
        errors: LiveData[RecipeApiError | None],
    ) -> None:
        super().__init__(service, api_key, token=token, errors=errors)
        self.request = request
        self._recipes = recipes

    @property
    def label(self) -> str:
        return self.request.label

    def _call(self) -> ApiResponse:
        return self._service.search_recipe(
            self._api_key, self.request.query, self.request.page, token=self.token
        )

    def _publish(self, response: ApiResponse) -> None:
        page = list(response.body.recipes)
        if self.request.page == 1:
            self._recipes.post_value(page)
            return
        # Read and append under the holder's lock so overlapping pages cannot lose items
        self._recipes.update(lambda current: [*(current or []), *page])

    def _publish_failure(self) -> None:
        self._recipes.post_value(None)


class RetrieveRecipeTask(RecipeTask):
    def __init__(
        self,
        request: LookupRequest,
        service: RecipeService,
        api_key: str,
        *,
        token: CancelToken,
        recipe: LiveData[Recipe | None],
        errors: LiveData[RecipeApiError | None],
        on_timed_out: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(service, api_key, token=token, errors=errors, on_timed_out=on_timed_out)
        self.request = request
        self._recipe = recipe

    @property
    def label(self) -> str:
        return self.request.label

    def _call(self) -> ApiResponse:
        return self._service.get_recipe(self._api_key, self.request.recipe_id, token=self.token)

    def _publish(self, response: ApiResponse) -> None:
        self._recipe.post_value(response.body.recipe)

    def _publish_failure(self) -> None:
        self._recipe.post_value(None)
