import unittest

from sqlalchemy import Column, Integer, String, Numeric, Float, Double, Enum, Text, Time, SmallInteger, BigInteger, TypeDecorator

from restsql import ModelSchema, ColumnSchema
from restsql.schema import sa_type_to_semantic
from restsql.automap import automap_models, map_sql_type, map_sql_format, model_class_name

from . import models


class Money(TypeDecorator):
    impl = Numeric
    cache_ok = True


class ModelSchemaTest(unittest.TestCase):
    """ Test ModelSchema """

    def test_user(self):
        schema = ModelSchema.for_model(models.User)

        # Cached
        self.assertIs(schema, ModelSchema.for_model(models.User))

        self.assertEqual(schema.table_name, 'u')
        self.assertEqual(schema.model_name, 'User')
        self.assertEqual(schema.primary_key, 'id')
        self.assertEqual(list(schema.properties),
                         ['id', 'name', 'email', 'age', 'score', 'active', 'created', 'birthday', 'avatar'])
        self.assertIn('name', schema)
        self.assertNotIn('articles', schema)
        self.assertIsNone(schema.get('nope'))

        # Types
        self.assertEqual(schema.get('id'), ColumnSchema('id', 'integer', None, False, None, 'id'))
        self.assertEqual(schema.get('name'), ColumnSchema('name', 'string', None, True, 50, 'Name'))
        self.assertEqual(schema.get('score').type, 'number')
        self.assertEqual(schema.get('active').type, 'boolean')
        self.assertEqual((schema.get('created').type, schema.get('created').format), ('string', 'datetime'))
        self.assertEqual((schema.get('birthday').type, schema.get('birthday').format), ('string', 'date'))
        self.assertEqual(schema.get('avatar').type, 'buffer')

        # Required: not null, no default, not an autoincrement pk
        self.assertEqual(schema.required, ['name'])

        # String columns, in declaration order
        self.assertEqual(schema.string_columns(), ['name', 'email', 'created', 'birthday'])

    def test_json_schema(self):
        schema = ModelSchema.for_model(models.User)
        json_schema = schema.json_schema

        self.assertEqual(json_schema['type'], 'object')
        self.assertEqual(json_schema['required'], ['name'])
        self.assertEqual(json_schema['properties']['name'], {'type': 'string', 'maxLength': 50})
        self.assertEqual(json_schema['properties']['created'], {'type': 'string', 'format': 'datetime'})
        self.assertEqual(json_schema['properties']['age'], {'type': 'integer'})

    def test_columns(self):
        columns = ModelSchema.for_model(models.Article).columns()

        self.assertEqual(list(columns), ['id', 'uid', 'title', 'published', 'data'])
        self.assertEqual(columns['title'], {
            'name': 'title',
            'type': 'string',
            'format': None,
            'required': True,
            'maxLength': 100,
            'label': 'title',
        })
        # JSON is a string, as far as we're concerned
        self.assertEqual(columns['data']['type'], 'string')
        # Has a default
        self.assertFalse(columns['published']['required'])

    def test_sa_type_to_semantic(self):
        self.assertEqual(sa_type_to_semantic(SmallInteger()), ('integer', None))
        self.assertEqual(sa_type_to_semantic(BigInteger()), ('integer', None))
        self.assertEqual(sa_type_to_semantic(Numeric(10, 2)), ('number', None))
        self.assertEqual(sa_type_to_semantic(Float()), ('number', None))
        self.assertEqual(sa_type_to_semantic(Double()), ('number', None))
        self.assertEqual(sa_type_to_semantic(Money()), ('number', None))
        self.assertEqual(sa_type_to_semantic(Time()), ('string', 'time'))
        self.assertEqual(sa_type_to_semantic(Text()), ('string', None))
        self.assertEqual(sa_type_to_semantic(Enum('a', 'b')), ('string', None))


class AutomapTest(unittest.TestCase):
    """ Test automap_models() and the raw SQL type mapping """

    def test_automap_models(self):
        engine, Session = models.get_working_db_for_tests()

        reflected = automap_models(engine)
        self.assertEqual(set(reflected), {'UTableModel', 'ATableModel', 'UserProfilesTableModel'})

        UserProfiles = reflected['UserProfilesTableModel']
        schema = ModelSchema.for_model(UserProfiles)
        self.assertEqual(schema.table_name, 'user_profiles')
        self.assertEqual(schema.primary_key, 'id')
        self.assertEqual(schema.string_columns(), ['bio', 'website'])

        # Reflected models can be queried
        ssn = Session()
        self.assertEqual(ssn.query(UserProfiles).count(), 1)
        ssn.close()

    def test_model_class_name(self):
        self.assertEqual(model_class_name('user_profiles'), 'UserProfilesTableModel')
        self.assertEqual(model_class_name('order-items'), 'OrderItemsTableModel')

    def test_map_sql_type(self):
        # SQLite
        self.assertEqual(map_sql_type('INTEGER'), 'integer')
        self.assertEqual(map_sql_type('varchar(255)'), 'string')
        self.assertEqual(map_sql_type('DECIMAL(10,2)'), 'number')
        self.assertEqual(map_sql_type('BLOB'), 'buffer')
        # MySQL
        self.assertEqual(map_sql_type('VARCHAR'), 'string')
        self.assertEqual(map_sql_type('int unsigned'), 'integer')
        # PostgreSQL
        self.assertEqual(map_sql_type('BYTEA'), 'buffer')
        self.assertEqual(map_sql_type('double precision'), 'number')
        # MSSQL
        self.assertEqual(map_sql_type('INT'), 'integer')
        self.assertEqual(map_sql_type('BIT'), 'boolean')
        # Anything else
        self.assertEqual(map_sql_type('GEOMETRY'), 'string')

    def test_map_sql_format(self):
        self.assertEqual(map_sql_format('DATETIME'), 'datetime')
        self.assertEqual(map_sql_format('DATE'), 'date')
        self.assertEqual(map_sql_format('TIME'), 'time')
        self.assertEqual(map_sql_format('timestamptz'), 'datetime')
        self.assertEqual(map_sql_format('DATETIME2(7)'), 'datetime')
        self.assertIsNone(map_sql_format('VARCHAR'))
