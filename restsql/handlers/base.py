import re

from sqlalchemy import String, cast
from sqlalchemy.sql import literal_column

from ..schema import ModelSchema
from ..exc import InvalidQueryError, InvalidColumnError


# Identifiers that may be embedded into SQL as they are: `column`, or `table.column`
_SAFE_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*)?$')


class SearchQueryHandlerBase:
    """ An implementation of a handler for SearchQuery

        Every subclass handles a single key of the Search Request
    """

    #: Name of the Search Request key that this object is capable of handling
    query_object_section_name = None

    def __init__(self, model, schema):
        """ Set the handler up for a model

        Only settings come here; the request comes later, through input().
        In subclasses, every argument with a default value is a setting:
        SearchQuerySettingsHandler finds them by inspecting the signature.

        :param model: The sqlalchemy model
        :param schema: The model's schema
        :type schema: ModelSchema
        """
        self.model = model
        self.schema = schema

        self.input_value = None
        self._input_done = False

        #: SearchQuery bound to this object
        self.search_query = None

    def with_search_query(self, search_query):
        """ Bind this object with a SearchQuery

            :type search_query: restsql.query.SearchQuery
        """
        self.search_query = search_query
        return self

    def __copy__(self):
        result = object.__new__(type(self))
        result.__dict__.update(self.__dict__)
        return result

    def input_prepare_query_object(self, query_object):
        """ Modify the Search Request before it is processed.

        This method is called before any input(), or validation, or anything.

        :param query_object: dict
        """
        return query_object

    def input(self, qo_value):
        """ Get a section of the Search Request.

        :raises InvalidColumnError
        :raises InvalidQueryError
        """
        if self._input_done:
            raise RuntimeError('{}.input() was already called: copy() the handler, '
                               'or wrap the SearchQuery with Reusable()'
                               .format(type(self).__name__))

        self.input_value = qo_value
        self._input_done = True
        return self

    def is_input_empty(self):
        return not self.input_value

    def alter_query(self, query):
        """ Apply the section this handler is handling to the query

        :type query: sqlalchemy.orm.Query
        :rtype: sqlalchemy.orm.Query
        """
        raise NotImplementedError()

    # region Columns

    def get_column(self, column_name: str, where: str = None):
        """ Get a column expression qualified with its table name

            * `name`: a column of the model
            * `table.name`: a column of the model, if `table` is the model's table;
                otherwise, a column of some other table the query is joined with.

            Names that are not the model's columns are embedded as they are, so they have to be valid identifiers.

            :raises InvalidColumnError: the name is not a valid identifier
        """
        if not isinstance(column_name, str) or not _SAFE_IDENTIFIER.match(column_name):
            raise InvalidColumnError(self.schema.model_name, str(column_name), where or self.query_object_section_name)

        # Own column
        own_name = self._own_column_name(column_name)
        if own_name is not None:
            return getattr(self.model, own_name)

        # Foreign, or unknown
        if '.' not in column_name:
            column_name = '{}.{}'.format(self.schema.table_name, column_name)
        return literal_column(column_name)

    def get_text_column(self, column_name: str, where: str = None):
        """ Get a column to compare with text: LIKE, or equality with a string

            Own columns that are not strings in the database (dates, JSON) are cast to one.
        """
        column = self.get_column(column_name, where)
        if self._own_column_name(column_name) is not None and not isinstance(column.type, String):
            return cast(column, String)
        return column

    def _own_column_name(self, column_name: str):
        """ If the name refers to a column of this model, give its bare name """
        if '.' in column_name:
            table_name, column_name = column_name.split('.', 1)
            if table_name != self.schema.table_name:
                return None
        return column_name if column_name in self.schema else None

    # endregion

    def get_final_input_value(self):
        """ Get the final input of the handler """
        return self.input_value


def _to_number(value, where: str):
    """ Coerce a value to a number, the way a number column would want it

        :raises InvalidQueryError: not a number
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidQueryError('{}: {!r} is not a number'.format(where, value))


def _to_boolean(value):
    """ Coerce a query string value to a boolean """
    if isinstance(value, str):
        return value.strip().lower() not in ('', '0', 'false', 'no', 'off')
    return bool(value)
