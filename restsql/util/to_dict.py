import base64
import datetime
import decimal
from typing import Iterable

from sqlalchemy import inspect


def jsonable(value):
    """ Convert a value loaded from the database into something JSON can handle """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode('ascii')
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        return float(value)
    return value


def instance_to_dict(instance, _seen: frozenset = frozenset()) -> dict:
    """ Convert an entity into a dict

        Includes all loaded columns, and those relationships that are already loaded:
        nothing is lazy-loaded here.
    """
    insp = inspect(instance)
    loaded = insp.dict
    mapper = insp.mapper
    _seen = _seen | {id(instance)}

    ret = {}
    for prop in mapper.column_attrs:
        if prop.key in loaded:
            ret[prop.key] = jsonable(loaded[prop.key])

    for rel in mapper.relationships:
        if rel.key not in loaded:
            continue
        value = loaded[rel.key]
        if value is None:
            ret[rel.key] = None
        elif rel.uselist:
            ret[rel.key] = [instance_to_dict(v, _seen) for v in value if id(v) not in _seen]
        elif id(value) not in _seen:
            ret[rel.key] = instance_to_dict(value, _seen)
    return ret


def row_to_dict(names: Iterable[str], row) -> dict:
    """ Convert a tuple row into a dict """
    return {name: jsonable(value) for name, value in zip(names, row)}


