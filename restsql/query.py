from copy import copy
from logging import getLogger

from sqlalchemy import inspect
from sqlalchemy.orm import Query

from .schema import ModelSchema
from . import handlers
from .util import SearchQuerySettingsHandler, CountingQuery, instance_to_dict, row_to_dict

logger = getLogger(__name__)


class SearchQuery(object):
    """ Translates a Search Request into an SqlAlchemy Query

        A Search Request is a dict with the following keys:

        * `fields`: projection: list of column names, or a comma-separated string
        * `q`: free-text search
        * `orderBy`: ordered {column: 'asc'|'desc'} mapping
        * `filters`: {column: value} mapping
        * `limit`, `offset`, `page`: pagination; `limit=False` disables it

        Unknown keys are ignored: the HTTP layer puts everything it has into one dict.

        Example:

            results = SearchQuery(User).with_session(ssn).query(q='john', limit=10).fetch()
            # -> {total: 12, data: [...], limit: 10, offset: 0, page: 0}

        SearchQuery can be reused:

            users_search = Reusable(SearchQuery(User, dict(search_in=('name', 'email'))))
    """

    # The class to use for getting structural data from a model
    _MODEL_SCHEMA_CLS = ModelSchema

    def __init__(self, model, handler_settings=None):
        """ Prepare a search over a model

        :param model: SqlAlchemy model to query
        :param handler_settings: Settings for the handlers; see SearchQuerySettingsDict
        :type handler_settings: dict | SearchQuerySettingsDict | None
        :raises KeyError: unknown settings
        """
        if inspect(model).is_aliased_class:
            raise AssertionError('SearchQuery works with models, not aliases')

        self._model = model
        self._schema = self._MODEL_SCHEMA_CLS.for_model(model)
        self._handler_settings = SearchQuerySettingsHandler(dict(handler_settings or {}))

        #: The query to build on; see from_query()
        self._query = None  # type: Query | None

        self._init_handlers()

    def __copy__(self):
        """ A copy with handlers of its own. Reusable() relies on it """
        result = object.__new__(type(self))
        result.__dict__.update(self.__dict__)
        for name, handler in self._handlers():
            setattr(result, 'handler_' + name, copy(handler))
        return result

    @property
    def model(self):
        return self._model

    @property
    def schema(self) -> ModelSchema:
        return self._schema

    def from_query(self, query):
        """ Specify a custom sqlalchemy query to build on.

        It can have, say, initial filtering or joins already applied to it.
        Queries are generative: the given one is never modified, and can be used again.

        :type query: sqlalchemy.orm.Query | None
        """
        self._query = query
        return self

    def with_session(self, ssn):
        """ Query with the given sqlalchemy Session """
        self._query = self._from_query().with_session(ssn)
        return self

    def query(self, **search_request):
        """ Receive a Search Request

        :raises InvalidQueryError: syntax error in the input
        :raises InvalidColumnError: invalid column name in the input
        :rtype: SearchQuery
        """
        all_handlers = self._handlers()

        # Handlers may rewrite the request first: e.g. 'limit' takes `offset` and `page` along
        for _, handler in all_handlers:
            search_request = handler.input_prepare_query_object(search_request)
            handler.with_search_query(self)

        for name, handler in all_handlers:
            value = search_request.get(name)
            if value is not None:
                self._handler_settings.raise_if_not_handler_enabled(self._schema.model_name, name)
            handler.input(value)

        return self

    def end(self):
        """ Build the Query

        :rtype: sqlalchemy.orm.Query
        """
        q = self._from_query()
        for _, handler in self._handlers():
            q = handler.alter_query(q)
        return q

    def fetch(self, ssn=None) -> dict:
        """ Execute the query and get a page of results

        :param ssn: Session to use; defaults to the session of the query
        :return: {total, data, limit, offset, page}
        """
        q = self.end()
        if ssn is not None:
            q = q.with_session(ssn)

        names = [d['name'] for d in q.column_descriptions]
        limit = self.handler_limit

        if limit.paged:
            cq = CountingQuery(q)
            data = [self._row_to_dict(names, row) for row in cq]
            total = cq.count
        else:
            data = [self._row_to_dict(names, row) for row in q]
            total = len(data)

        logger.debug('%s: fetched %d of %d rows', self._schema.model_name, len(data), total)
        return dict(
            total=total,
            data=data,
            limit=limit.limit,
            offset=limit.offset,
            page=limit.page,
        )

    def _row_to_dict(self, names, row):
        if self.handler_fields.is_input_empty():
            return instance_to_dict(row)
        return row_to_dict(names, row)

    def __repr__(self):
        return 'SearchQuery({})'.format(str(self._model))

    # region Handlers

    _HANDLER_FIELDS = handlers.SearchProject
    _HANDLER_Q = handlers.SearchOmni
    _HANDLER_ORDERBY = handlers.SearchSort
    _HANDLER_FILTERS = handlers.SearchFilter
    _HANDLER_LIMIT = handlers.SearchLimit

    HANDLER_NAMES = ('fields', 'q', 'orderBy', 'filters', 'limit')
    HANDLER_ATTR_NAMES = frozenset('handler_' + name
                                   for name in HANDLER_NAMES)

    def _handlers(self):
        """ Get the list of all (handler_name, handler) """
        # The order matters:
        # 'q' needs to know whether 'orderBy' has any input before it adds its own ordering,
        # and its relevance ordering goes before the explicit one.
        return (
            ('fields', self.handler_fields),
            ('q', self.handler_q),
            ('orderBy', self.handler_orderBy),
            ('filters', self.handler_filters),
            ('limit', self.handler_limit),
        )

    # for IDE completion
    handler_fields = None  # type: handlers.SearchProject
    handler_q = None  # type: handlers.SearchOmni
    handler_orderBy = None  # type: handlers.SearchSort
    handler_filters = None  # type: handlers.SearchFilter
    handler_limit = None  # type: handlers.SearchLimit

    def _init_handlers(self):
        """ Initialize every handler """
        for name in self.HANDLER_NAMES:
            handler_cls = getattr(self, '_HANDLER_' + name.upper())
            handler_settings = self._handler_settings.get_settings(name, handler_cls)
            setattr(self, 'handler_' + name,
                    handler_cls(self._model, self._schema, **handler_settings))

        self._handler_settings.raise_if_invalid_handler_settings()

    # endregion

    def _from_query(self):
        """ Get the query to work with, or initialize one """
        return self._query if self._query is not None else Query([self._model])
