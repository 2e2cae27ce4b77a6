"""
### Data formatting

`format_data()` shapes a record according to a set of rules: one rule per key.
It is a whitelist: keys without a rule are dropped.

```python
format_data(
    {'id': 1, 'name': 'John', 'tags': ['a', 'b'], 'password': '...'},
    {
        'id': 'string',                  # -> '1'
        'name': True,                    # as it is
        'tags': ['array', ':join'],      # -> 'a,b'
        'password': False,               # dropped
    }
)
```

A rule is one of:

* `True`: keep the value as it is
* `False`, `':remove'`: drop the key
* `':replace'`, or `[':replace', None, func]`: `func(key, value, record)` gives the new value.
    Return `ABSENT` to drop the key.
* a type name: `'string'`, `'boolean'`, `'number'`, `'array'`, `'object'`,
    or a list: `[type, action, replace_func]`, where `action` is either:
    * an action verb, like `':datetime'` or `':join'`: converts the value
    * `':remove'`: drop the key when the value is not of this type
    * for `array` and `object`: a nested set of rules to format the contents with

`None` values stay `None` under every type rule.
Without an action verb, values are coerced to the type:
`string` with `str()` (booleans give `'true'` / `'false'`), `boolean` to `0` / `1`, `number` to a number (`0` when it's not one).
`array` wraps single values into a list.

Action verbs:

| Verb          | Result                                   |
|---------------|------------------------------------------|
| `:jsonStr`    | JSON string                              |
| `:jsonObj`    | value parsed from a JSON string          |
| `:datetime`   | `'YYYY-MM-DD HH:mm:ss'`                  |
| `:date`       | `'YYYY-MM-DD'`                           |
| `:time`       | `'HH:mm:ss'`                             |
| `:booleanStr` | `'TRUE'` or `'FALSE'`                    |
| `:boolean`    | `True` or `False`                        |
| `:join`       | list joined with `,`                     |
| `:join:tab`   | list joined with a tab                   |
| `:join:nl`    | list joined with a newline               |
| `:join:\\|`    | list joined with `\\|`                    |
| `:sortAsc`    | sorted list                              |
| `:sortDesc`   | list sorted in reverse                   |

More verbs can be registered with `add_rule_actions()`.
"""

import datetime
import json
from collections.abc import Mapping
from typing import Callable

from .exc import ConfigurationError
from .util import ABSENT


DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'
DATE_FORMAT = '%Y-%m-%d'
TIME_FORMAT = '%H:%M:%S'


#: Custom actions: ':verb' -> callable(value)
_extra_rule_actions = {}


def add_rule_actions(actions: Mapping):
    """ Register custom action verbs

        Example:

            add_rule_actions({':upper': lambda v: v.upper()})
            format_data({'name': 'john'}, {'name': ['string', ':upper']})  # -> {'name': 'JOHN'}
    """
    _extra_rule_actions.update(actions)


def _to_datetime(value) -> datetime.datetime:
    """ Get a datetime from whatever represents one: datetime, date, time, ISO string, epoch milliseconds """
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, datetime.time):
        return datetime.datetime.combine(datetime.date.today(), value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.datetime.fromtimestamp(value / 1000)
    if isinstance(value, str):
        try:
            return datetime.datetime.fromisoformat(value)
        except ValueError:
            return datetime.datetime.combine(datetime.date.today(), datetime.time.fromisoformat(value))
    raise ValueError('Not a date: {!r}'.format(value))


def _join(separator):
    return lambda value: separator.join(str(v) for v in value)


_rule_actions = {
    ':jsonStr': json.dumps,
    ':jsonObj': json.loads,
    ':datetime': lambda value: _to_datetime(value).strftime(DATETIME_FORMAT),
    ':date': lambda value: _to_datetime(value).strftime(DATE_FORMAT),
    ':time': lambda value: _to_datetime(value).strftime(TIME_FORMAT),
    ':booleanStr': lambda value: 'TRUE' if value else 'FALSE',
    ':boolean': bool,
    ':join': _join(','),
    ':join:tab': _join('\t'),
    ':join:nl': _join('\n'),
    ':join:|': _join('|'),
    ':sortAsc': sorted,
    ':sortDesc': lambda value: sorted(value, reverse=True),
}


def _apply_action(action, value, default: Callable = lambda v: v):
    """ Apply an action verb to a value; `default` when there's no such verb """
    if action in _rule_actions:
        return _rule_actions[action](value)
    if action in _extra_rule_actions:
        return _extra_rule_actions[action](value)
    return default(value)


def _to_string(value) -> str:
    # Booleans read the way JSON writes them
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _to_number(value):
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value if value == value else 0  # NaN
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return number if number == number else 0


def _flatten(value):
    """ Wrap a single value into a list; flatten a list of lists one level """
    if not isinstance(value, (list, tuple)):
        return [value]
    ret = []
    for v in value:
        if isinstance(v, (list, tuple)):
            ret.extend(v)
        else:
            ret.append(v)
    return ret


# Type name -> (type check, default coercion)
_value_types = {
    'string': (lambda v: isinstance(v, str),
               _to_string),
    'boolean': (lambda v: isinstance(v, bool),
                lambda v: 1 if v else 0),
    'number': (lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
               _to_number),
    'array': (lambda v: isinstance(v, (list, tuple)),
              lambda v: v),
    'object': (lambda v: isinstance(v, Mapping),
               lambda v: v),
}


def _parse_rule(rule):
    """ Get (rule type, action, nested rules, replace func) from a rule """
    if isinstance(rule, (list, tuple)):
        rule = list(rule) + [None] * (3 - len(rule))
        rule_type, arg2, replace_func = rule[:3]
    else:
        rule_type, arg2, replace_func = rule, None, None

    action = arg2 if isinstance(arg2, str) else None
    subrules = arg2 if isinstance(arg2, Mapping) else None
    return rule_type, action, subrules, replace_func


def format_data(data: Mapping, rules: Mapping) -> dict:
    """ Format a record according to the rules

        :param data: The record
        :param rules: {key: rule}
        :return: The formatted record: only has keys that have rules
        :raises ConfigurationError: a ':replace' rule without a function
    """
    ret = {}
    for key, value in data.items():
        if key not in rules:
            continue

        rule_type, action, subrules, replace_func = _parse_rule(rules[key])

        # Literal rules
        if rule_type == ':replace':
            if not callable(replace_func):
                raise ConfigurationError('Missing replace function for "{}"'.format(key))
            value = replace_func(key, value, data)
            if value is not ABSENT:
                ret[key] = value
            continue
        if rule_type is False or rule_type == ':remove':
            continue
        if rule_type is True:
            ret[key] = value
            continue

        # Type rules
        if not isinstance(rule_type, str) or rule_type not in _value_types:
            continue  # unknown rule: the key is dropped
        type_check, coerce = _value_types[rule_type]

        if value is None:
            ret[key] = None
            continue
        if action == ':remove' and not type_check(value):
            continue

        if rule_type == 'array':
            value = _apply_action(action, _flatten(value))
            if subrules is not None and isinstance(value, list):
                value = [format_data(v, subrules) if isinstance(v, Mapping) else v
                         for v in value]
        elif rule_type == 'object':
            value = _apply_action(action, value)
            if subrules is not None and isinstance(value, Mapping):
                value = format_data(value, subrules)
        else:
            value = _apply_action(action, value, coerce)

        ret[key] = value
    return ret
