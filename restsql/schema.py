"""
RestSQL needs to know the columns of every model it serves:
their semantic types, formats, and whether they're required.

This information is derived from a SqlAlchemy model once, and cached per model.
Every other piece of the library consumes it, and never modifies it.
"""

from collections import OrderedDict
from typing import Mapping, NamedTuple, Optional, List

from sqlalchemy import inspect, TypeDecorator
from sqlalchemy import Boolean, Integer, Float, Numeric, LargeBinary, DateTime, Date, Time, String
from sqlalchemy.orm import DeclarativeMeta
from sqlalchemy.sql.schema import Column
from sqlalchemy.sql.type_api import TypeEngine


class ColumnSchema(NamedTuple):
    """ Semantic description of a single column """
    name: str
    #: One of: string, integer, number, boolean, buffer
    type: str
    #: One of: date, datetime, time; or None
    format: Optional[str] = None
    required: bool = False
    max_length: Optional[int] = None
    label: Optional[str] = None

    @property
    def is_numeric(self) -> bool:
        return self.type in NUMERIC_TYPES

    def as_json_schema(self) -> dict:
        """ Render as a JSON Schema property """
        ret = {'type': self.type}
        if self.format:
            ret['format'] = self.format
        if self.max_length:
            ret['maxLength'] = self.max_length
        return ret


NUMERIC_TYPES = frozenset(('integer', 'number'))


# SqlAlchemy type -> (semantic type, format)
# The order matters: more specific types go first
_SA_TYPE_MAP = (
    (Boolean, 'boolean', None),
    (Integer, 'integer', None),
    (Float, 'number', None),  # not a Numeric subclass in every SqlAlchemy version
    (Numeric, 'number', None),
    (LargeBinary, 'buffer', None),
    (DateTime, 'string', 'datetime'),
    (Date, 'string', 'date'),
    (Time, 'string', 'time'),
)


def sa_type_to_semantic(sa_type: TypeEngine) -> tuple:
    """ Map a SqlAlchemy column type to (semantic type, format) """
    if isinstance(sa_type, TypeDecorator):
        sa_type = sa_type.impl_instance

    for type_cls, semantic_type, fmt in _SA_TYPE_MAP:
        if isinstance(sa_type, type_cls):
            return semantic_type, fmt

    # String, Text, Enum, JSON, and whatever else there is
    return 'string', None


def _is_column_required(column: Column) -> bool:
    """ Does the column require a value when a row is inserted? """
    if column.nullable:
        return False
    if column.default is not None or column.server_default is not None:
        return False
    # Autoincrement primary keys are generated by the database
    if column.primary_key and isinstance(column.type, Integer) and column.autoincrement in (True, 'auto'):
        return False
    return True


class ModelSchema:
    """ Immutable description of a model: its table name, its primary key, and its columns

        Please use `ModelSchema.for_model()`: it only analyzes every model once.
    """
    __schema_per_model_cache = {}

    @classmethod
    def for_model(cls, model: DeclarativeMeta) -> 'ModelSchema':
        """ Get the schema for a model (cached) """
        try:
            return cls.__schema_per_model_cache[model]
        except KeyError:
            cls.__schema_per_model_cache[model] = schema = cls(model)
            return schema

    def __init__(self, model: DeclarativeMeta):
        insp = inspect(model)

        #: The model
        self.model = model
        #: Model name, for error messages
        self.model_name = model.__name__
        #: Table name
        self.table_name = insp.local_table.name

        # Columns, in declaration order
        properties = OrderedDict()
        for prop in insp.column_attrs:
            column = prop.columns[0]
            semantic_type, fmt = sa_type_to_semantic(column.type)
            properties[prop.key] = ColumnSchema(
                name=prop.key,
                type=semantic_type,
                format=fmt,
                required=isinstance(column, Column) and _is_column_required(column),
                max_length=getattr(column.type, 'length', None) if isinstance(column.type, String) else None,
                label=column.info.get('label', prop.key) if isinstance(column, Column) else prop.key,
            )

        #: Column name -> ColumnSchema
        self.properties = properties  # type: Mapping[str, ColumnSchema]

        #: Names of required columns
        self.required = [name for name, col in properties.items() if col.required]

        #: Name of the primary id column
        pk_column = insp.primary_key[0]
        self.primary_key = insp.get_property_by_column(pk_column).key

    def __contains__(self, column_name: str):
        return column_name in self.properties

    def __repr__(self):
        return '<{}: {}>'.format(self.__class__.__name__, self.table_name)

    def get(self, column_name: str) -> Optional[ColumnSchema]:
        """ Get a column by name; `None` if it does not exist """
        return self.properties.get(column_name)

    def string_columns(self) -> List[str]:
        """ Names of all string-typed columns, in declaration order """
        return [name for name, col in self.properties.items() if col.type == 'string']

    @property
    def json_schema(self) -> dict:
        """ The JSON Schema that describes a row of this table """
        return {
            'type': 'object',
            'properties': {name: col.as_json_schema() for name, col in self.properties.items()},
            'required': list(self.required),
        }

    def columns(self) -> dict:
        """ Per-column metadata, for UIs to build their forms and tables with """
        return {
            name: {
                'name': name,
                'type': col.type,
                'format': col.format,
                'required': col.required,
                'maxLength': col.max_length,
                'label': col.label,
            }
            for name, col in self.properties.items()
        }
