from __future__ import annotations

import pytest
from pydantic import ValidationError

from foodrecipes.domain.models import LookupRequest, Recipe, RecipeSearchResponse, SearchRequest


def test_recipe_ignores_unknown_fields_and_fills_defaults():
    recipe = Recipe.model_validate({"recipe_id": "1", "title": "Soup", "f2f_url": "http://x"})
    assert recipe.ingredients == []
    assert recipe.social_rank == 0.0
    assert not hasattr(recipe, "f2f_url")


def test_search_response_defaults_to_empty():
    assert RecipeSearchResponse.model_validate({}).recipes == []


def test_search_request_is_frozen():
    request = SearchRequest(query="pasta", page=2)
    with pytest.raises(ValidationError):
        request.page = 3  # type: ignore[misc]
    assert request.label == "search:pasta:2"


def test_search_request_defaults_to_first_page():
    assert SearchRequest(query="pasta").page == 1


def test_lookup_request_label():
    assert LookupRequest(recipe_id="42").label == "lookup:42"


def test_lookup_request_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        LookupRequest(recipe_id="42", page=1)  # type: ignore[call-arg]
