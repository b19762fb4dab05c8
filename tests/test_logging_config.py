"""
Tests for nota_sdk.logging_config.
"""
from __future__ import annotations

import json
import logging

from nota_sdk.logging_config import (
    LogContext,
    NotaContextFilter,
    StructuredFormatter,
    chain_id_var,
    get_logger,
    nota_id_var,
    setup_logging,
)


def make_record(message="Cashing nota") -> logging.LogRecord:
    return logging.LogRecord("nota_sdk.dispatcher", logging.INFO, __file__, 10, message, None, None)


class TestLogContext:
    def test_sets_and_restores(self):
        assert chain_id_var.get() is None
        with LogContext(chain_id=80001, nota_id="12"):
            assert chain_id_var.get() == 80001
            assert nota_id_var.get() == "12"
            with LogContext(nota_id="13"):
                assert nota_id_var.get() == "13"
                assert chain_id_var.get() == 80001
            assert nota_id_var.get() == "12"
        assert chain_id_var.get() is None
        assert nota_id_var.get() is None

    def test_restores_on_error(self):
        try:
            with LogContext(chain_id=44787):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert chain_id_var.get() is None


class TestStructuredFormatter:
    def test_json_with_context(self):
        record = make_record()
        with LogContext(chain_id=80001, nota_id="12", operation="cash"):
            NotaContextFilter().filter(record)

        data = json.loads(StructuredFormatter().format(record))
        assert data["message"] == "Cashing nota"
        assert data["level"] == "INFO"
        assert data["logger"] == "nota_sdk.dispatcher"
        assert data["chain_id"] == 80001
        assert data["nota_id"] == "12"
        assert data["operation"] == "cash"

    def test_context_omitted_when_unset(self):
        record = make_record()
        NotaContextFilter().filter(record)
        data = json.loads(StructuredFormatter().format(record))
        assert "chain_id" not in data
        assert "nota_id" not in data

    def test_extra_fields(self):
        record = make_record()
        record.tx_hash = "0xabc"
        data = json.loads(StructuredFormatter().format(record))
        assert data["tx_hash"] == "0xabc"


class TestSetupLogging:
    def test_configures_root_logger(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(level="debug", json_format=False)
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].filters[0], NotaContextFilter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_get_logger_adds_filter_once(self):
        logger = get_logger("nota_sdk.tests")
        get_logger("nota_sdk.tests")
        assert sum(isinstance(f, NotaContextFilter) for f in logger.filters) == 1
