from __future__ import annotations

import logging

from foodrecipes.adapters.recipes.http_recipe_api import HttpRecipeApi
from foodrecipes.core.config import Settings
from foodrecipes.services.executors import AppExecutors
from foodrecipes.services.recipe_api_client import RecipeApiClient


logger = logging.getLogger("foodrecipes.container")


class Container:
    """Composition root. Build one at startup and hand ``recipe_api_client`` to consumers."""

    # Class-level annotations so static checkers understand intended types
    settings: Settings
    recipe_service: HttpRecipeApi
    executors: AppExecutors
    recipe_api_client: RecipeApiClient

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.recipe_service = HttpRecipeApi(
            base_url=settings.BASE_URL,
            timeout_seconds=settings.network_timeout_seconds,
            connect_timeout_seconds=settings.CONNECT_TIMEOUT_SECONDS,
            user_agent=settings.USER_AGENT,
        )
        self.executors = AppExecutors(max_workers=settings.EXECUTOR_MAX_WORKERS)
        self.recipe_api_client = RecipeApiClient(
            self.recipe_service,
            self.executors,
            api_key=settings.api_key_value,
            timeout_seconds=settings.network_timeout_seconds,
        )
        if not settings.API_KEY:
            logger.warning("FOODRECIPES_API_KEY is not set; requests will likely be rejected")
        logger.info(
            "Recipe client ready (base_url=%s, timeout_ms=%d)",
            settings.BASE_URL,
            settings.NETWORK_TIMEOUT_MS,
        )

    def close(self) -> None:
        self.recipe_api_client.close()
