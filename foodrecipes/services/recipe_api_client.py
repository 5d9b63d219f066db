from __future__ import annotations

import logging
import threading

from foodrecipes.adapters.recipes.base import RecipeService
from foodrecipes.core.errors import RecipeApiError
from foodrecipes.domain.models import LookupRequest, Recipe, SearchRequest
from foodrecipes.services.executors import AppExecutors
from foodrecipes.services.live_data import LiveData
from foodrecipes.services.tasks import RecipeTask, RetrieveRecipeTask, SearchRecipesTask
from foodrecipes.services.timeout_guard import TimeoutGuard

logger = logging.getLogger(__name__)


class RecipeApiClient:
    """Facade that runs recipe searches and lookups and publishes their results.

    Each query kind owns one slot holding the most recent task. Submitting to a
    slot replaces the reference; a superseded task keeps running and may still
    publish. Results arrive on the observable holders, never as return values:
    a ``None`` result means the request failed, and the matching error holder
    says how.
    """

    def __init__(
        self,
        service: RecipeService,
        executors: AppExecutors,
        *,
        api_key: str,
        timeout_seconds: float,
    ) -> None:
        self._service = service
        self._executors = executors
        self._api_key = api_key
        self._guard = TimeoutGuard(executors, timeout_seconds)

        self._recipes: LiveData[list[Recipe] | None] = LiveData(None)
        self._recipe: LiveData[Recipe | None] = LiveData(None)
        self._recipe_request_timed_out: LiveData[bool] = LiveData(False)
        self._search_error: LiveData[RecipeApiError | None] = LiveData(None)
        self._recipe_error: LiveData[RecipeApiError | None] = LiveData(None)

        self._lock = threading.Lock()
        self._retrieve_recipes_task: SearchRecipesTask | None = None
        self._retrieve_recipe_task: RetrieveRecipeTask | None = None
        # Pagination state lives here, not in the published list
        self._query: str | None = None
        self._page = 0

    # --- Observables ---

    @property
    def recipes(self) -> LiveData[list[Recipe] | None]:
        return self._recipes

    @property
    def recipe(self) -> LiveData[Recipe | None]:
        return self._recipe

    @property
    def recipe_request_timed_out(self) -> LiveData[bool]:
        return self._recipe_request_timed_out

    @property
    def search_error(self) -> LiveData[RecipeApiError | None]:
        return self._search_error

    @property
    def recipe_error(self) -> LiveData[RecipeApiError | None]:
        return self._recipe_error

    @property
    def current_search(self) -> SearchRecipesTask | None:
        with self._lock:
            return self._retrieve_recipes_task

    @property
    def current_lookup(self) -> RetrieveRecipeTask | None:
        with self._lock:
            return self._retrieve_recipe_task

    @property
    def page(self) -> int:
        with self._lock:
            return self._page

    # --- Operations ---

    def submit_search(self, query: str, page: int = 1) -> SearchRecipesTask:
        """Search ``query`` and publish page ``page`` (appended when page > 1)."""
        request = SearchRequest(query=query, page=page)
        task = SearchRecipesTask(
            request,
            self._service,
            self._api_key,
            token=self._guard.new_token(),
            recipes=self._recipes,
            errors=self._search_error,
        )
        with self._lock:
            self._retrieve_recipes_task = task
            self._query = request.query
            self._page = request.page
        self._search_error.post_value(None)
        logger.info("Submitting %s", request.label)
        self._dispatch(task)
        return task

    def search_next_page(self) -> SearchRecipesTask:
        with self._lock:
            query, page = self._query, self._page
        if query is None:
            raise ValueError("search_next_page called before any search")
        return self.submit_search(query, page + 1)

    def submit_lookup(self, recipe_id: str) -> RetrieveRecipeTask:
        """Fetch one recipe; raises the timed-out flag if the deadline passes first."""
        request = LookupRequest(recipe_id=recipe_id)
        task = RetrieveRecipeTask(
            request,
            self._service,
            self._api_key,
            token=self._guard.new_token(),
            recipe=self._recipe,
            errors=self._recipe_error,
            on_timed_out=lambda: self._recipe_request_timed_out.post_value(True),
        )
        with self._lock:
            self._retrieve_recipe_task = task
        self._recipe_request_timed_out.set_value(False)
        self._recipe_error.post_value(None)
        logger.info("Submitting %s", request.label)
        self._dispatch(task)
        return task

    def cancel_lookup(self) -> None:
        """Cancel the current lookup, if any. Its result will not be published."""
        task = self.current_lookup
        if task is not None:
            logger.debug("cancel_lookup: canceling the recipe request")
            task.cancel()

    def cancel_search(self) -> None:
        task = self.current_search
        if task is not None:
            logger.debug("cancel_search: canceling the search request")
            task.cancel()

    def close(self) -> None:
        self._executors.shutdown(wait=False)
        close = getattr(self._service, "close", None)
        if callable(close):
            close()

    def _dispatch(self, task: RecipeTask) -> None:
        future = self._executors.submit(task.run)
        task.attach(future)
        self._guard.arm(task)
