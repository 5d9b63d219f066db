from __future__ import annotations

import json
import threading

import httpx

from foodrecipes.adapters.recipes.base import ApiResponse
from foodrecipes.cli import (
    EXIT_FAILED,
    EXIT_OK,
    EXIT_TIMED_OUT,
    _parse_args,
    main,
    run_lookup,
    run_search,
)
from recipe_fakes import BASE_URL, blocking, lookup_ok, search_page


def test_parse_search_args():
    args = _parse_args(["--timeout-ms", "500", "search", "pasta", "--pages", "3"])
    assert args.command == "search"
    assert args.query == "pasta"
    assert args.page == 1
    assert args.pages == 3
    assert args.timeout_ms == 500


def test_run_search_prints_all_requested_pages(make_client, fake_service, capsys):
    client = make_client()
    fake_service.search_outcomes[("pasta", 1)] = search_page("A", "B")
    fake_service.search_outcomes[("pasta", 2)] = search_page("C")

    code = run_search(client, "pasta", 1, 2, timeout_seconds=2.0)

    assert code == EXIT_OK
    printed = json.loads(capsys.readouterr().out)
    assert [r["recipe_id"] for r in printed] == ["A", "B", "C"]


def test_run_search_reports_failure(make_client, fake_service, capsys):
    client = make_client()
    fake_service.search_outcomes[("pasta", 1)] = ApiResponse(status_code=401, error_body="bad key")

    code = run_search(client, "pasta", 1, 1, timeout_seconds=2.0)

    assert code == EXIT_FAILED
    assert "bad key" in capsys.readouterr().err


def test_run_lookup_prints_recipe(make_client, fake_service, capsys):
    client = make_client()
    fake_service.lookup_outcomes["42"] = lookup_ok("42")

    assert run_lookup(client, "42", timeout_seconds=2.0) == EXIT_OK
    assert json.loads(capsys.readouterr().out)["recipe_id"] == "42"


def test_run_lookup_reports_timeout(make_client, fake_service, capsys):
    client = make_client(timeout_seconds=0.1)
    fake_service.lookup_outcomes["42"] = blocking(lookup_ok("42"), interrupted=threading.Event())

    assert run_lookup(client, "42", timeout_seconds=0.1) == EXIT_TIMED_OUT
    assert "timed out" in capsys.readouterr().err


def test_main_fetches_recipe_over_http(respx_mock, capsys):
    respx_mock.get("/api/get").mock(
        return_value=httpx.Response(
            200, json={"recipe": {"recipe_id": "35382", "title": "Pasta Carbonara"}}
        )
    )

    code = main(["--base-url", BASE_URL, "get", "35382"])

    assert code == EXIT_OK
    assert json.loads(capsys.readouterr().out)["title"] == "Pasta Carbonara"


def test_invalid_page_is_reported_without_traceback(capsys):
    code = main(["--base-url", BASE_URL, "search", "pasta", "--page", "0"])

    assert code == EXIT_FAILED
    assert "error:" in capsys.readouterr().err


def test_blank_recipe_id_is_reported_without_traceback(make_client, fake_service, capsys):
    client = make_client()

    assert run_lookup(client, "   ", timeout_seconds=2.0) == EXIT_FAILED
    assert "error:" in capsys.readouterr().err
    assert fake_service.calls == []
