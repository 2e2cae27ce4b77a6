"""
### Filters

Filtering corresponds to the `WHERE` part of an SQL query.

```javascript
$.get('/api/user', {filters: {
    name: 'jo',                        // string column: name LIKE '%jo%'
    age: '18',                         // number column: age = 18
    id: [1, 2, 3],                     // more than 2 values: id IN (1, 2, 3)
    score: [10, 20],                   // 2 values, not a string column: score BETWEEN 10 AND 20
    created: {$gte: '2020-01-01'},     // operators
}})
```

Supported operators:

* `{ a: { $gt: 1 } }`, `$gte`, `$lt`, `$lte`: comparison
* `{ a: { $ne: 1 } }`: inequality
* `{ a: { $in: [...] } }`, `$nin`: any of / none of. Also accept a single value
* `{ a: { $between: [1, 2] } }`, `$nbetween`: range; skipped unless given exactly 2 values
* `{ a: { $like: 'j%' } }`: pattern match
* `{ a: { $ilike: 'J%' } }`: case-insensitive pattern match, through `lower()` on both sides
* anything else: equality

Number columns get their operands converted to numbers.

Columns that are not in the model (or dotted ones, from joined tables) are matched with `LIKE '%value%'`.
All filters are AND-ed together, as a single group.
"""

from collections.abc import Mapping

from sqlalchemy.sql.expression import and_, not_
from sqlalchemy.sql.functions import func

from .base import SearchQueryHandlerBase, _to_number, _to_boolean
from ..exc import InvalidQueryError


def _is_array(value):
    return isinstance(value, (list, tuple, set, frozenset))


class SearchFilter(SearchQueryHandlerBase):
    """ Column filters

        * None, {}: no filtering
        * {column: value}: see module docs
    """

    query_object_section_name = 'filters'

    # Operators.
    # operator => lambda column, value
    _operators = {
        '$gte': lambda col, val: col >= val,
        '$gt': lambda col, val: col > val,
        '$lte': lambda col, val: col <= val,
        '$lt': lambda col, val: col < val,
        '$ne': lambda col, val: col != val,
        '$in': lambda col, val: col.in_(val),
        '$nin': lambda col, val: col.not_in(val),
        '$between': lambda col, val: col.between(*val),
        '$nbetween': lambda col, val: not_(col.between(*val)),
        '$like': lambda col, val: col.like(val),
        '$ilike': lambda col, val: func.lower(col).like(func.lower(val)),
    }

    # Operators that take a list of values
    _operators_list_value = frozenset(('$in', '$nin'))
    # Operators that take exactly 2 values
    _operators_range_value = frozenset(('$between', '$nbetween'))
    # Operators that take a pattern, not a value of the column's type
    _operators_pattern_value = frozenset(('$like', '$ilike'))

    def __init__(self, model, schema):
        super(SearchFilter, self).__init__(model, schema)

        # On input
        #: List of compiled SQL expressions
        self.expressions = []

    def input(self, filters):
        super(SearchFilter, self).input(filters)

        if not filters:
            filters = {}
        if not isinstance(filters, Mapping):
            raise InvalidQueryError('filters must be an object; {} provided.'.format(type(filters)))

        self.expressions = [expression
                            for column_name, value in filters.items()
                            if value is not None
                            for expression in self._compile_column_filter(column_name, value)]
        return self

    def is_input_empty(self):
        return not self.expressions

    def _compile_column_filter(self, column_name, value):
        """ Compile filtering conditions for one column

            :return: list of SQL expressions
        """
        column = self.get_column(column_name)
        own_name = self._own_column_name(column_name)
        column_schema = self.schema.get(own_name) if own_name is not None else None

        # Dates and the like are compared as text
        if column_schema is not None and column_schema.type == 'string':
            column = self.get_text_column(column_name)

        # Operators
        if isinstance(value, Mapping):
            return [expression
                    for operator, operand in value.items()
                    for expression in self._compile_operator(column, column_schema, operator, operand)]

        # Array: IN, or BETWEEN
        if _is_array(value):
            value = [self._coerce(column_schema, v) for v in value]
            is_string = column_schema is not None and column_schema.type == 'string'
            if is_string or len(value) != 2:
                return [column.in_(value)]
            return [column.between(*value)]

        # Scalar on an unknown column
        if column_schema is None:
            return [column.like('%{}%'.format(value))]

        # Scalar on a known column
        if column_schema.type == 'string':
            return [column.like('%{}%'.format(value))]
        return [column == self._coerce(column_schema, value)]

    def _compile_operator(self, column, column_schema, operator, operand):
        """ Compile a single `{$operator: operand}` condition

            :return: list of SQL expressions; empty when the condition is skipped
        """
        # Operand
        if operator in self._operators_list_value:
            operand = [self._coerce(column_schema, v) for v in (operand if _is_array(operand) else [operand])]
        elif operator in self._operators_range_value:
            if not _is_array(operand) or len(operand) != 2:
                return []  # skipped
            operand = [self._coerce(column_schema, v) for v in operand]
        elif operator not in self._operators_pattern_value:
            operand = self._coerce(column_schema, operand)

        # Unknown operators are equality checks
        operator_lambda = self._operators.get(operator, None)
        if operator_lambda is None:
            return [column == operand]
        return [operator_lambda(column, operand)]

    def _coerce(self, column_schema, value):
        """ Convert a value to suit the column """
        if column_schema is None or value is None:
            return value
        if column_schema.is_numeric:
            return _to_number(value, '{}.{}'.format(self.query_object_section_name, column_schema.name))
        if column_schema.type == 'boolean':
            return _to_boolean(value)
        return value

    def compile_statement(self):
        """ All conditions, AND-ed together as a single group """
        cc = and_(*self.expressions)
        return cc.self_group() if len(self.expressions) > 1 else cc

    def alter_query(self, query):
        if not self.expressions:
            return query  # short-circuit
        return query.filter(self.compile_statement())
