"""
Tests for the buffered REPLACE strategy
"""

import logging
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from bulkwriter.core.exceptions import EncodingError, StatementError
from bulkwriter.core.replace import BufferedReplaceWriter, REPLACE_BUFFER_HINT


class TestBuildStatement:
    """Test statement construction"""

    def test_multi_row_statement(self):
        rows = iter([
            {'id': '1', 'name': "'Alice'"},
            {'id': '2', 'name': None},
        ])
        statement, count = BufferedReplaceWriter().build_statement('users', ['id', 'name'], rows, 10)

        assert count == 2
        assert statement == "replace into users values (1,'Alice'),(2,NULL)"

    def test_values_are_not_escaped(self):
        # Text is pasted in verbatim: a comma inside a field splits it into two SQL values.
        rows = iter([{'id': '1', 'name': 'Smith, John'}])
        statement, _ = BufferedReplaceWriter().build_statement('users', ['id', 'name'], rows, 10)

        assert statement == "replace into users values (1,Smith, John)"

    def test_table_name_is_not_quoted(self):
        statement, _ = BufferedReplaceWriter().build_statement('my_db.users', ['id'], iter([{'id': '1'}]), 10)
        assert statement.startswith("replace into my_db.users values ")

    def test_blob_is_raw_text(self):
        statement, _ = BufferedReplaceWriter().build_statement('t', ['b'], iter([{'b': b"0x4142"}]), 10)
        assert statement == "replace into t values (0x4142)"

    def test_cap_limits_rows(self, row_factory):
        rows = iter(row_factory(5))
        statement, count = BufferedReplaceWriter().build_statement('t', ['id'], rows, 3)

        assert count == 3
        assert statement == "replace into t values (0),(1),(2)"
        assert next(rows)['id'] == '3'

    def test_no_rows(self):
        assert BufferedReplaceWriter().build_statement('t', ['id'], iter([]), 10) == (None, 0)

    def test_buffer_hint_is_soft(self, caplog):
        writer = BufferedReplaceWriter(buffer_hint=50)
        rows = iter([{'v': 'x' * 20} for _ in range(10)])

        with caplog.at_level(logging.WARNING, logger="bulkwriter.core.replace"):
            statement, count = writer.build_statement('t', ['v'], rows, 100)

        assert count == 10
        assert len(statement) > 50
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1

    def test_default_buffer_hint(self):
        assert REPLACE_BUFFER_HINT == 1024 * 1024 + 1024

    def test_unsupported_value(self):
        with pytest.raises(EncodingError):
            BufferedReplaceWriter().build_statement('t', ['id'], iter([{'id': 1}]), 10)


class TestReplaceWriteBatch:
    """Test batch execution"""

    def test_executes_preamble_then_statement(self, fake_mysql):
        rows = iter([{'id': '1'}, {'id': '2'}])
        written = BufferedReplaceWriter().write_batch(fake_mysql.conn, 't', ['id'], rows, 10)

        assert written == 2
        assert fake_mysql.statements == [
            "SET foreign_key_checks = 0;",
            "replace into t values (1),(2)",
        ]

    def test_empty_batch_executes_nothing(self, fake_mysql):
        written = BufferedReplaceWriter().write_batch(fake_mysql.conn, 't', ['id'], iter([]), 10)

        assert written == 0
        assert fake_mysql.statements == []

    def test_percent_signs_are_sent_verbatim(self, fake_mysql):
        BufferedReplaceWriter().write_batch(fake_mysql.conn, 't', ['v'], iter([{'v': "'100%'"}]), 10)

        call = fake_mysql.conn.exec_driver_sql.call_args_list[-1]
        assert call.args[0] == "replace into t values ('100%')"
        assert call.kwargs['execution_options'] == {"no_parameters": True}

    def test_statement_failure(self):
        conn = MagicMock()
        conn.exec_driver_sql.side_effect = [
            MagicMock(),
            OperationalError("replace", {}, Exception("You have an error in your SQL syntax")),
        ]

        with pytest.raises(StatementError, match="Failed to execute REPLACE for table 't'"):
            BufferedReplaceWriter().write_batch(conn, 't', ['id'], iter([{'id': 'x,'}]), 10)
