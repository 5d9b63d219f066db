import logging
import sys
from contextvars import ContextVar

# Context var storing the request a worker is currently serving (e.g. "lookup:42").
# Empty string outside of a task.
current_request_id: ContextVar[str] = ContextVar("current_request_id", default="")


def setup_logging(level: str = "INFO") -> None:
    # Request/response chatter from the HTTP stack is only useful when debugging it
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    # Ensure every LogRecord has a request_id attribute even for third-party loggers
    _install_log_record_factory()

    root = logging.getLogger()
    if root.handlers:
        return  # already configured
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s request=%(request_id)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(level.upper())


# --- Request identity helpers ---


def set_current_request(request_id: str | None) -> None:
    """Set the request label for log lines emitted by the current thread.

    Use empty string when None provided so formatter output is stable (request=).
    """
    current_request_id.set(request_id or "")


def clear_current_request() -> None:
    """Clear the request label after a task finishes."""
    current_request_id.set("")


_original_factory = logging.getLogRecordFactory()


def _install_log_record_factory() -> None:
    factory = logging.getLogRecordFactory()
    if getattr(factory, "__name__", "") == "_request_inject_factory":  # already installed
        return

    def _request_inject_factory(*args, **kwargs):  # type: ignore[no-untyped-def]
        record = _original_factory(*args, **kwargs)
        # Always (re)inject request_id from context to keep it authoritative.
        record.request_id = current_request_id.get()  # type: ignore[attr-defined]
        return record

    _request_inject_factory.__name__ = "_request_inject_factory"  # for idempotence check
    logging.setLogRecordFactory(_request_inject_factory)
