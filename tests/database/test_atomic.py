from __future__ import annotations

import pytest

from school_portal.database.connection import DBConfig, DatabaseConnection
from school_portal.database.mysql_base import db_cursor, in_clause


class FakeCursor:
    def __init__(self, log):
        self._log = log

    def execute(self, sql, params=None):
        self._log.append(("execute", sql))

    def close(self):
        self._log.append(("cursor.close",))


class FakeConnection:
    def __init__(self, log):
        self._log = log

    def start_transaction(self):
        self._log.append(("start_transaction",))

    def cursor(self, dictionary=True):
        return FakeCursor(self._log)

    def commit(self):
        self._log.append(("commit",))

    def rollback(self):
        self._log.append(("rollback",))

    def close(self):
        self._log.append(("close",))


class CountingDatabase(DatabaseConnection):
    def __init__(self):
        super().__init__(DBConfig(host="localhost", port=3306, user="u", password="p", database="d"))
        self.log = []
        self.opened = 0

    def connect(self):
        self.opened += 1
        return FakeConnection(self.log)


def test_cursor_outside_transaction_commits_per_operation():
    db = CountingDatabase()

    with db_cursor(db) as (_, cur):
        cur.execute("UPDATE a")
    with db_cursor(db) as (_, cur):
        cur.execute("UPDATE b")

    assert db.opened == 2
    assert db.log.count(("commit",)) == 2


def test_atomic_shares_one_connection_and_commits_once():
    db = CountingDatabase()

    with db.atomic():
        with db_cursor(db) as (_, cur):
            cur.execute("UPDATE a")
        with db.atomic():
            with db_cursor(db) as (_, cur):
                cur.execute("UPDATE b")

    assert db.opened == 1
    assert db.log[0] == ("start_transaction",)
    assert db.log.count(("commit",)) == 1
    assert db.log[-2:] == [("commit",), ("close",)]
    assert db.active_transaction is None


def test_atomic_rolls_back_on_error():
    db = CountingDatabase()

    with pytest.raises(RuntimeError):
        with db.atomic():
            with db_cursor(db) as (_, cur):
                cur.execute("INSERT a")
            raise RuntimeError("second insert failed")

    assert ("commit",) not in db.log
    assert db.log[-2:] == [("rollback",), ("close",)]
    assert db.active_transaction is None


def test_in_clause():
    assert in_clause([1, 2, 3]) == "%s,%s,%s"
