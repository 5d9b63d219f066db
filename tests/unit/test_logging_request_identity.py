import logging

from foodrecipes.adapters.recipes.base import ApiResponse
from foodrecipes.core.logging import clear_current_request, set_current_request, setup_logging


def test_log_records_carry_current_request(caplog):
    setup_logging("INFO")
    with caplog.at_level(logging.INFO):
        set_current_request("search:pasta:1")
        try:
            logging.getLogger("foodrecipes.test").info("inside")
        finally:
            clear_current_request()
        logging.getLogger("foodrecipes.test").info("outside")

    by_message = {r.getMessage(): r for r in caplog.records}
    assert by_message["inside"].request_id == "search:pasta:1"
    assert by_message["outside"].request_id == ""


def test_extra_fields_coexist_with_request_id(caplog):
    setup_logging("INFO")
    with caplog.at_level(logging.INFO):
        logging.getLogger("foodrecipes.test").info("with extra", extra={"slot": "lookup"})
    record = next(r for r in caplog.records if r.getMessage() == "with extra")
    assert record.slot == "lookup"
    assert record.request_id == ""


def test_worker_logs_are_labelled_with_request(caplog, make_client, fake_service):
    setup_logging("INFO")
    client = make_client()
    fake_service.lookup_outcomes["42"] = ApiResponse(status_code=404, error_body="missing")

    with caplog.at_level(logging.ERROR, logger="foodrecipes"):
        assert client.submit_lookup("42").wait(2)

    records = [r for r in caplog.records if r.getMessage() == "run: missing"]
    assert records
    assert records[0].request_id == "lookup:42"
