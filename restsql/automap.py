"""
### Automap

Models for an existing database, without declaring them:

```python
from sqlalchemy import create_engine
from restsql import automap_models, derive_routes

engine = create_engine('sqlite:///app.db')
models = automap_models(engine)   # {'UsersTableModel': <class>, ...}
routes = derive_routes(models)
```

Tables without a primary key can't be mapped, and are skipped.

`map_sql_type()` and `map_sql_format()` translate raw SQL type names (SQLite, MySQL, PostgreSQL, MSSQL)
into the same semantic types `ModelSchema` uses.
"""

import re
from logging import getLogger
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.ext.automap import automap_base

from .routes import class_name

logger = getLogger(__name__)


def model_class_name(table_name: str) -> str:
    """ 'user_profiles' -> 'UserProfilesTableModel' """
    return class_name(table_name) + 'TableModel'


def automap_models(engine: Engine, schema: Optional[str] = None) -> dict:
    """ Reflect the database and map every table to a model

        :param engine: The engine to reflect
        :param schema: Database schema to reflect; the default one if not given
        :return: {model class name: model}
    """
    Base = automap_base()
    Base.prepare(autoload_with=engine,
                 schema=schema,
                 classname_for_table=lambda base, table_name, table: model_class_name(table_name))

    models = {model.__name__: model for model in Base.classes}
    logger.debug('Reflected %d models: %s', len(models), ', '.join(models))
    return models


#: Raw SQL type name -> semantic type
SQL_TYPES = {
    # boolean
    'BOOLEAN': 'boolean',
    'BOOL': 'boolean',
    'BIT': 'boolean',
    # buffer
    'BINARY': 'buffer',
    'VARBINARY': 'buffer',
    'BLOB': 'buffer',
    'BYTEA': 'buffer',
    # integer
    'BIGINT': 'integer',
    'INT': 'integer',
    'INT2': 'integer',
    'INT4': 'integer',
    'INT8': 'integer',
    'INTEGER': 'integer',
    'MEDIUMINT': 'integer',
    'SMALLINT': 'integer',
    'TINYINT': 'integer',
    # number
    'DECIMAL': 'number',
    'DOUBLE': 'number',
    'DOUBLE PRECISION': 'number',
    'FLOAT': 'number',
    'NUMERIC': 'number',
    'REAL': 'number',
}

#: Raw SQL type name -> format
SQL_FORMATS = {
    'DATE': 'date',
    'DATETIME': 'datetime',
    'DATETIME2': 'datetime',
    'SMALLDATETIME': 'datetime',
    'TIMESTAMP': 'datetime',
    'TIMESTAMPTZ': 'datetime',
    'TIME': 'time',
}


def _base_type(type_name: str) -> str:
    """ 'varchar(255)' -> 'VARCHAR'; 'decimal(10, 2) unsigned' -> 'DECIMAL UNSIGNED' """
    return ' '.join(re.sub(r'\([^)]*\)', ' ', type_name).upper().split())


def map_sql_type(type_name: str) -> str:
    """ Semantic type for a raw SQL type name; 'string' for anything unknown """
    base = _base_type(type_name)
    return SQL_TYPES.get(base) or SQL_TYPES.get(base.replace(' UNSIGNED', '')) or 'string'


def map_sql_format(type_name: str) -> Optional[str]:
    """ Format for a raw SQL type name: 'date', 'datetime', 'time', or None """
    return SQL_FORMATS.get(_base_type(type_name))
