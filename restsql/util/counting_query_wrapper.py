from sqlalchemy import func
from sqlalchemy.orm import Query


class CountingQuery:
    """ Runs a Query, and tells how many rows it would give without LIMIT and OFFSET

        The total comes from a window function added to the very same SELECT:

            SELECT u.*, count(*) OVER () FROM u LIMIT 10

        so one round-trip gives both the page and the total.
        When OFFSET skips past the last row, there's no row to read the total from,
        and a separate COUNT query is made.

        Example:

            cq = CountingQuery(ssn.query(User).limit(10))
            users = list(cq)  # -> 10 users
            cq.count  # -> 127
    """

    def __init__(self, query: Query):
        self.query = query

        # Set on execution
        self._rows = None
        self._count = None

        # Query(Model) gives entities; anything else gives tuples
        descriptions = query.column_descriptions
        self._single_entity = len(descriptions) == 1 and descriptions[0]['expr'] is descriptions[0]['entity']

    @property
    def count(self) -> int:
        """ The total number of rows. Executes the query, if not yet """
        if self._count is None:
            self._execute()
        return self._count

    def __iter__(self):
        if self._rows is None:
            self._execute()
        return iter(self._rows)

    def _execute(self):
        rows = self.query.add_columns(func.count().over()).all()

        if rows:
            self._count = rows[0][-1]
        elif self.query._offset_clause is not None:
            self._count = self._count_separately()
        else:
            self._count = 0

        # Drop the window function column
        if self._single_entity:
            self._rows = [row[0] for row in rows]
        else:
            self._rows = [tuple(row[:-1]) for row in rows]

    def _count_separately(self) -> int:
        return self.query \
            .enable_eagerloads(False) \
            .limit(None).offset(None).order_by(None) \
            .count()
