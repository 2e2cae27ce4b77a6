"""
### Ordering

Ordering corresponds to the `ORDER BY` part of an SQL query.

```javascript
$.get('/api/user', {orderBy: {age: 'desc', name: 'asc'}})  // ORDER BY u.age DESC, u.name ASC
$.get('/api/user?orderBy.age=desc')
```

Every pair applies, in the order given.
Direction is `desc` when the value says so (in any case), and `asc` otherwise.
Dotted names (`table.column`) refer to joined tables.

A malformed rule is skipped with a warning; the rest of the rules still apply.
"""

from collections.abc import Mapping
from logging import getLogger

from .base import SearchQueryHandlerBase
from ..exc import InvalidColumnError

logger = getLogger(__name__)


class SearchSort(SearchQueryHandlerBase):
    """ Multi-column ordering

        * None, {}: no ordering
        * {a: 'desc', b: 'asc'}: ordered mapping of column -> direction
        * [['a', 'desc'], ['b', 'asc']]: list of pairs
    """

    query_object_section_name = 'orderBy'

    def __init__(self, model, schema):
        super(SearchSort, self).__init__(model, schema)

        # On input
        #: List of (column name, 'asc'|'desc')
        self.sort_spec = []

    def input(self, order_by):
        super(SearchSort, self).input(order_by)
        self.sort_spec = self._input(order_by)
        return self

    def _input(self, spec):
        if not spec:
            return []

        if isinstance(spec, Mapping):
            pairs = list(spec.items())
        elif isinstance(spec, (list, tuple)):
            pairs = spec
        else:
            logger.warning('orderBy must be an object; %r given; skipping', spec)
            return []

        ret = []
        for pair in pairs:
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                logger.warning('Malformed orderBy rule %r; skipping', pair)
                continue
            column_name, direction = pair
            ret.append((column_name, self.normalize_direction(direction)))
        return ret

    @staticmethod
    def normalize_direction(direction) -> str:
        if isinstance(direction, str) and direction.strip().lower() == 'desc':
            return 'desc'
        return 'asc'

    def is_input_empty(self):
        return not self.sort_spec

    def compile_columns(self):
        """ ORDER BY expressions; malformed rules are skipped """
        ret = []
        for column_name, direction in self.sort_spec:
            try:
                column = self.get_column(column_name)
            except InvalidColumnError as e:
                logger.warning('Malformed orderBy rule %r: %s; skipping', column_name, e)
                continue
            ret.append(column.desc() if direction == 'desc' else column.asc())
        return ret

    def alter_query(self, query):
        if not self.sort_spec:
            return query  # short-circuit

        columns = self.compile_columns()
        if not columns:
            return query
        return query.order_by(*columns)

    def get_final_input_value(self):
        return dict(self.sort_spec)
