"""
Command line access to the recipe client.

Usage:
    foodrecipes search pasta --pages 2
    foodrecipes get 35382

Exit codes: 0 on success, 1 when the request failed, 2 when it timed out.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Iterable

from foodrecipes.container import Container
from foodrecipes.core.config import Settings, log_settings, settings as default_settings
from foodrecipes.core.logging import setup_logging
from foodrecipes.services.recipe_api_client import RecipeApiClient
from foodrecipes.services.tasks import RecipeTask, TaskState

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_TIMED_OUT = 2


def _parse_args(argv: Iterable[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="foodrecipes", description="Query the recipe search API")
    p.add_argument("--base-url", default=None, help="API base URL (default: from settings)")
    p.add_argument(
        "--timeout-ms", type=int, default=None, help="Request deadline (default: from settings)"
    )
    sub = p.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search recipes by keyword")
    search.add_argument("query")
    search.add_argument("--page", type=int, default=1, help="First page to fetch (default: 1)")
    search.add_argument(
        "--pages", type=int, default=1, help="Number of consecutive pages to fetch (default: 1)"
    )

    get = sub.add_parser("get", help="Fetch one recipe by id")
    get.add_argument("recipe_id")
    return p.parse_args(list(argv))


def _effective_settings(args: argparse.Namespace, base: Settings) -> Settings:
    overrides: dict[str, object] = {}
    if args.base_url:
        overrides["BASE_URL"] = args.base_url
    if args.timeout_ms is not None:
        if args.timeout_ms <= 0:
            raise SystemExit("--timeout-ms must be positive")
        overrides["NETWORK_TIMEOUT_MS"] = args.timeout_ms
    return base.model_copy(update=overrides) if overrides else base


def _await(task: RecipeTask, timeout_seconds: float) -> int:
    # The deadline always resolves the task; the slack only covers scheduling jitter
    task.wait(timeout_seconds + 1.0)
    state = task.state
    if state is TaskState.completed:
        return EXIT_OK
    if state is TaskState.timed_out:
        return EXIT_TIMED_OUT
    return EXIT_FAILED


def _report_error(error: object) -> None:
    print(f"error: {error}", file=sys.stderr)


def run_search(
    client: RecipeApiClient, query: str, page: int, pages: int, timeout_seconds: float
) -> int:
    if pages < 1:
        raise SystemExit("--pages must be at least 1")
    try:
        task = client.submit_search(query, page)
    except ValueError as e:
        _report_error(e)
        return EXIT_FAILED
    code = _await(task, timeout_seconds)
    for _ in range(pages - 1):
        if code != EXIT_OK:
            break
        code = _await(client.search_next_page(), timeout_seconds)
    if code != EXIT_OK:
        _report_error(client.search_error.value or "request did not complete")
        return code
    recipes = client.recipes.value or []
    print(json.dumps([r.model_dump() for r in recipes], indent=2))
    return EXIT_OK


def run_lookup(client: RecipeApiClient, recipe_id: str, timeout_seconds: float) -> int:
    try:
        task = client.submit_lookup(recipe_id)
    except ValueError as e:
        _report_error(e)
        return EXIT_FAILED
    code = _await(task, timeout_seconds)
    if client.recipe_request_timed_out.value:
        _report_error("request timed out")
        return EXIT_TIMED_OUT
    recipe = client.recipe.value
    if code != EXIT_OK or recipe is None:
        _report_error(client.recipe_error.value or "request did not complete")
        return code if code != EXIT_OK else EXIT_FAILED
    print(json.dumps(recipe.model_dump(), indent=2))
    return EXIT_OK


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    current = _effective_settings(args, default_settings)
    setup_logging(current.LOG_LEVEL)
    log_settings(current)

    container = Container(current)
    try:
        client = container.recipe_api_client
        timeout = current.network_timeout_seconds
        if args.command == "search":
            return run_search(client, args.query, args.page, args.pages, timeout)
        return run_lookup(client, args.recipe_id, timeout)
    finally:
        container.close()


if __name__ == "__main__":
    sys.exit(main())
