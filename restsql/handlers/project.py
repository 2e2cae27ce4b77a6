"""
### Fields

Projection corresponds to the `SELECT` part of an SQL query:
the API user may ask for a subset of columns.

```javascript
$.get('/api/user?fields=name,email')
$.get('/api/user', {fields: ['name', 'email']})
```

The primary key is always selected, whether asked for or not.
When `fields` is empty, the whole row is selected.
"""

from .base import SearchQueryHandlerBase
from ..exc import InvalidQueryError, InvalidColumnError


class SearchProject(SearchQueryHandlerBase):
    """ Column projection

        * None, '', []: select everything
        * 'a, b': comma-separated column names
        * ['a', 'b']: list of column names
    """

    query_object_section_name = 'fields'

    def __init__(self, model, schema):
        super(SearchProject, self).__init__(model, schema)

        # On input
        #: The list of column names to select. Empty means "everything"
        self.fields = []

    def input(self, fields):
        super(SearchProject, self).input(fields)

        if not fields:
            fields = []
        if isinstance(fields, str):
            fields = fields.split(',')
        if not isinstance(fields, (list, tuple)):
            raise InvalidQueryError('fields must be either a list, or a comma-separated string; {} provided.'
                                    .format(type(fields)))

        # Normalize: trim, drop empty ones, drop duplicates
        names = []
        for name in fields:
            if not isinstance(name, str):
                raise InvalidQueryError('fields must be strings; {!r} provided.'.format(name))
            name = name.strip()
            if name and name not in names:
                names.append(name)

        # The primary key is always there
        if names and self.schema.primary_key not in names:
            names.append(self.schema.primary_key)

        # Own columns must exist. Dotted names are expected to come from joined tables
        for name in names:
            if '.' not in name and name not in self.schema:
                raise InvalidColumnError(self.schema.model_name, name, self.query_object_section_name)

        self.fields = names
        return self

    def is_input_empty(self):
        return not self.fields

    def compile_columns(self):
        """ Compile a list of columns for Query.with_entities() """
        return [self.get_column(name).label(name) if '.' in name else self.get_column(name)
                for name in self.fields]

    def alter_query(self, query):
        if not self.fields:
            return query  # short-circuit
        return query.with_entities(*self.compile_columns())

    def get_final_input_value(self):
        return list(self.fields)
