"""Stand-ins for psycopg2 pools, connections and cursors used across the store tests."""


class DummyCursor:
    def __init__(self, connection):
        self.connection = connection

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, sql, params=None):
        self.connection.executed.append((" ".join(sql.split()), params))
        if self.connection.fail_with is not None:
            raise self.connection.fail_with

    def fetchone(self):
        if self.connection.rows:
            return self.connection.rows.pop(0)
        return None

    def fetchall(self):
        rows = list(self.connection.rows)
        self.connection.rows.clear()
        return rows


class DummyConnection:
    def __init__(self, rows=None, fail_with=None):
        self.rows = list(rows or [])
        self.fail_with = fail_with
        self.executed = []
        self.commits = 0
        self.rollbacks = 0

    def cursor(self):
        return DummyCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def statements(self):
        return [sql for sql, _ in self.executed]


class DummyPool:
    def __init__(self, connection):
        self.connection = connection
        self.get_called = False
        self.put_called = False

    def getconn(self):
        self.get_called = True
        return self.connection

    def putconn(self, conn):
        assert conn is self.connection
        self.put_called = True
