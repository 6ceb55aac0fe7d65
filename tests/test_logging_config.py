import logging

from app.core.logging_config import get_logger, setup_logging


def test_named_loggers_emit_through_stdlib(caplog) -> None:
    setup_logging()
    caplog.set_level(logging.INFO)

    get_logger("app.audit").error("audit_write_failed", resource_id="r1")
    get_logger("app.api.v1.invoices.service").info("invoice_created", invoice_number="INV-2026-0001")

    records = [r for r in caplog.records if r.name.startswith("app")]
    assert [(r.name, r.levelname) for r in records] == [
        ("app.audit", "ERROR"),
        ("app.api.v1.invoices.service", "INFO"),
    ]
    assert records[0].msg["event"] == "audit_write_failed"
    assert records[0].msg["resource_id"] == "r1"


def test_exception_logging_does_not_raise(caplog) -> None:
    setup_logging()
    try:
        raise RuntimeError("audit store unavailable")
    except RuntimeError:
        get_logger("app.audit").exception("audit_write_failed")

    record = next(r for r in caplog.records if r.name == "app.audit")
    assert record.levelname == "ERROR"
    assert record.msg["event"] == "audit_write_failed"


def test_setup_logging_installs_one_handler() -> None:
    setup_logging()
    setup_logging()
    ours = [h for h in logging.getLogger().handlers if h.get_name() == "centre-ledger"]
    assert len(ours) == 1
