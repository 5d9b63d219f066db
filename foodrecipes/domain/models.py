from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Recipe(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    recipe_id: str
    title: str = ""
    publisher: str | None = None
    ingredients: list[str] = Field(default_factory=list)
    image_url: str | None = None
    social_rank: float = 0.0


class RecipeSearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    count: int = 0
    recipes: list[Recipe] = Field(default_factory=list)


class RecipeResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    recipe: Recipe


class SearchRequest(BaseModel):
    """A keyword search for one page of results. Immutable once submitted."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    query: str
    page: int = Field(default=1, ge=1)

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query cannot be empty")
        return v

    @property
    def label(self) -> str:
        return f"search:{self.query}:{self.page}"


class LookupRequest(BaseModel):
    """A fetch of one recipe by id. Immutable once submitted."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    recipe_id: str

    @field_validator("recipe_id")
    @classmethod
    def _id_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("recipe_id cannot be empty")
        return v

    @property
    def label(self) -> str:
        return f"lookup:{self.recipe_id}"
