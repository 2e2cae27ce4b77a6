import re

from sqlalchemy import event
from sqlalchemy.dialects import sqlite
from sqlalchemy.orm import Query


def stmt2sql(stmt, *, literal: bool = True) -> str:
    """ Render a statement as SQLite SQL """
    compiled = stmt.compile(dialect=sqlite.dialect(),
                            compile_kwargs={'literal_binds': literal})
    return str(compiled)


def q2sql(q: Query, *, literal: bool = True) -> str:
    return stmt2sql(q.statement, literal=literal)


def _as_sql(qs, literal: bool = True) -> str:
    return q2sql(qs, literal=literal) if isinstance(qs, Query) else qs


# SELECT <columns> FROM
_SELECT_CLAUSE = re.compile(r'^SELECT (.*?)\s+FROM', re.S)
# One column, with its label dropped
_SELECTED_COLUMN = re.compile(r'(\S+?)(?: AS \w+)?(?:,|$)')


class TestQueryStringsMixin:
    """ Assertions on SQL strings, for unittest.TestCase """

    def assertQuery(self, qs, *expected_lines, literal: bool = True) -> str:
        """ Every line of the expected pieces has to be somewhere in the SQL

            Lines are stripped, and so are trailing commas, so pieces can be copy-pasted from the SQL itself.
        """
        sql = _as_sql(qs, literal)
        for piece in '\n'.join(expected_lines).splitlines():
            self.assertIn(piece.strip().rstrip(','), sql)
        return sql

    def assertNotInQuery(self, qs, *unexpected, literal: bool = True) -> str:
        sql = _as_sql(qs, literal)
        for piece in unexpected:
            self.assertNotIn(piece, sql)
        return sql

    def assertSelectedColumns(self, qs, *expected) -> str:
        """ Compare the set of columns in the SELECT clause

            `SELECT u.id, u.name AS u_name FROM u` selects {'u.id', 'u.name'}
        """
        sql = _as_sql(qs)
        m = _SELECT_CLAUSE.match(sql)
        selected = set(_SELECTED_COLUMN.findall(m.group(1))) if m else set()
        self.assertEqual(selected, set(expected))
        return sql


class QueryCounter:
    """ Count the statements an engine executes within a `with` block

        with QueryCounter(engine) as qc:
            ...
        qc.n  # -> 1
    """

    def __init__(self, engine):
        self.engine = engine
        self.n = 0

    def _on_execute(self, *args, **kwargs):
        self.n += 1

    def __enter__(self):
        event.listen(self.engine, 'after_cursor_execute', self._on_execute)
        return self

    def __exit__(self, *exc_info):
        event.remove(self.engine, 'after_cursor_execute', self._on_execute)
        return False
