from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from foodrecipes.core.cancellation import CancelToken
from foodrecipes.domain.models import RecipeResponse, RecipeSearchResponse

BodyT = TypeVar("BodyT")


@dataclass(frozen=True)
class ApiResponse(Generic[BodyT]):
    """Outcome of one executed call: parsed body on 200, raw error body otherwise."""

    status_code: int
    body: BodyT | None = None
    error_body: str | None = None

    @property
    def is_successful(self) -> bool:
        return self.status_code == 200


class RecipeService(Protocol):
    def search_recipe(
        self, api_key: str, query: str, page: int, *, token: CancelToken | None = None
    ) -> ApiResponse[RecipeSearchResponse]: ...

    def get_recipe(
        self, api_key: str, recipe_id: str, *, token: CancelToken | None = None
    ) -> ApiResponse[RecipeResponse]: ...
