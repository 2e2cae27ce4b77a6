"""
### Omni-search

Free-text search across the columns of a table:

```javascript
$.get('/api/user?q=john')
```

Every searchable column is matched with `LIKE '%john%'`, and a row matches when any column does.
Searchable columns are those given in the `search_in` setting, or every string column of the model.

Unless the request gives an explicit `orderBy`, results are sorted by relevance:

| Match                      | Priority |
|----------------------------|----------|
| exact: `col = 'john'`      | 0        |
| prefix: `col LIKE 'john%'` | 1        |
| suffix: `col LIKE '%john'` | 4        |
| anything else              | 3        |

Note that rows matching by suffix go after all others.
The search text only reaches the database as bound parameters.
"""

from sqlalchemy.sql.expression import or_, case

from .base import SearchQueryHandlerBase


class SearchOmni(SearchQueryHandlerBase):
    """ Free-text search

        * None: no search
        * 'text': search for 'text' in every searchable column
    """

    query_object_section_name = 'q'

    # Relevance priorities
    PRIORITY_EXACT = 0
    PRIORITY_PREFIX = 1
    PRIORITY_SUFFIX = 4
    PRIORITY_OTHER = 3

    def __init__(self, model, schema, search_in=None):
        """ Init omni-search

        :param search_in: Explicit list of column names to search in.
            `None` means every string column.
        """
        super(SearchOmni, self).__init__(model, schema)

        # Config
        self.search_in = tuple(search_in) if search_in is not None else None

        # On input
        self.q = None

    def input(self, q):
        super(SearchOmni, self).input(q)

        # Only strings are searched for
        self.q = q if isinstance(q, str) and q else None
        return self

    def is_input_empty(self):
        return self.q is None

    @property
    def searchable_column_names(self):
        if self.search_in is not None:
            return list(self.search_in)
        return self.schema.string_columns()

    def compile_columns(self):
        return [self.get_text_column(name) for name in self.searchable_column_names]

    def compile_criteria(self, columns):
        """ OR-ed predicates: any column contains the text """
        pattern = '%{}%'.format(self.q)
        if len(columns) == 1:
            return columns[0].like(pattern)
        return or_(*[column.like(pattern) for column in columns]).self_group()

    def compile_relevance_order(self, columns):
        """ CASE expression for sorting by relevance """
        whens = []
        for column in columns:
            whens.extend((
                (column == self.q, self.PRIORITY_EXACT),
                (column.like('{}%'.format(self.q)), self.PRIORITY_PREFIX),
                (column.like('%{}'.format(self.q)), self.PRIORITY_SUFFIX),
            ))
        return case(*whens, else_=self.PRIORITY_OTHER)

    def alter_query(self, query):
        if self.q is None:
            return query  # short-circuit

        columns = self.compile_columns()
        if not columns:
            return query  # nothing to search in

        query = query.filter(self.compile_criteria(columns))

        # Relevance ordering only applies when the request gives no ordering of its own
        if self.search_query is None or self.search_query.handler_orderBy.is_input_empty():
            query = query.order_by(self.compile_relevance_order(columns))
        return query
