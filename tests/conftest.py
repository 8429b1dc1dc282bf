import csv
import re
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from bulkwriter.core.readers import RowReader


INFILE_PATTERN = re.compile(r"INFILE '([^']+)'")


class ListReader(RowReader):
    """Row reader over in-memory lists of dicts."""

    def __init__(self, tables):
        self.tables = tables

    def get_columns(self, table):
        return list(self.tables[table]['columns'])

    def rows(self, table):
        return iter(self.tables[table]['rows'])


class FakeMySQL:
    """Stands in for a MySQL server behind a SQLAlchemy engine.

    ``LOAD DATA`` statements read the pipe named in the statement, so the
    CSV stream produced by the writer is parsed for real. Rows only become
    visible in ``committed`` when the batch transaction commits.
    """

    def __init__(self, local_infile=1, fail_on_transaction=None, fail_commit_on=None):
        self.local_infile = local_infile
        self.fail_on_transaction = fail_on_transaction
        self.fail_commit_on = fail_commit_on
        self.statements = []
        self.streams = []
        self.committed = []
        self.pending = []
        self.transactions = 0
        self.commits = 0
        self.rollbacks = 0

        self.conn = MagicMock(name="connection")
        self.conn.begin.side_effect = self.begin
        self.conn.exec_driver_sql.side_effect = self.execute

        self.engine = MagicMock(name="engine")
        self.engine.connect.return_value.__enter__.return_value = self.conn
        self.engine.begin.return_value.__enter__.return_value = self.conn

    def begin(self):
        self.transactions += 1
        self.pending = []
        txn = MagicMock(name=f"transaction-{self.transactions}")
        txn.commit.side_effect = self._commit
        txn.rollback.side_effect = self._rollback
        return txn

    def _commit(self):
        if self.fail_commit_on == self.transactions:
            raise OperationalError("COMMIT", {}, Exception("lost connection"))
        self.commits += 1
        self.committed.extend(self.pending)
        self.pending = []

    def _rollback(self):
        self.rollbacks += 1
        self.pending = []

    def execute(self, statement, *args, **kwargs):
        self.statements.append(statement)
        result = MagicMock(name="result")

        if statement == "SELECT @@GLOBAL.local_infile":
            result.scalar.return_value = self.local_infile
        elif statement.startswith("SET GLOBAL local_infile="):
            self.local_infile = int(statement.rsplit("=", 1)[1])
        elif statement.startswith("LOAD DATA"):
            path = INFILE_PATTERN.search(statement).group(1)
            with open(path, "r", encoding="utf-8", errors="surrogateescape", newline="") as f:
                data = f.read()
            self.streams.append(data)
            if self.fail_on_transaction == self.transactions:
                raise OperationalError(statement, {}, Exception("Duplicate entry"))
            self.pending.extend(csv.reader(data.splitlines()))
        elif statement.startswith("replace into"):
            if self.fail_on_transaction == self.transactions:
                raise OperationalError(statement, {}, Exception("syntax error"))
            self.pending.extend(re.findall(r"\(([^)]*)\)", statement.split(" values ", 1)[1]))

        return result

    @property
    def batch_statements(self):
        return [s for s in self.statements if s.startswith(("LOAD DATA", "replace into"))]


def make_rows(count, columns=("id", "name")):
    """Build ``count`` rows with text values."""
    return [
        {col: f"{col}-{i}" if col != "id" else str(i) for col in columns}
        for i in range(count)
    ]


@pytest.fixture
def fake_mysql():
    return FakeMySQL()


@pytest.fixture
def people_reader():
    return ListReader({
        'people': {
            'columns': ['id', 'name', 'email'],
            'rows': [
                {'id': '1', 'name': 'Alice', 'email': 'alice@example.com'},
                {'id': '2', 'name': 'Bob', 'email': None},
                {'id': '3', 'name': 'Charlie "Chuck"', 'email': 'charlie@example.com'},
            ],
        }
    })


@pytest.fixture
def make_fake_mysql():
    """Factory for FakeMySQL servers with custom failure points."""
    return FakeMySQL


@pytest.fixture
def make_reader():
    """Factory building a ListReader for one table."""
    def _make(table, columns, rows):
        return ListReader({table: {'columns': list(columns), 'rows': list(rows)}})
    return _make


@pytest.fixture
def row_factory():
    return make_rows
