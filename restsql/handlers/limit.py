"""
### Pagination

Pagination corresponds to the `LIMIT .. OFFSET ..` part of an SQL query.

* `limit`: page size. Missing, `0` or `true` mean "the default page size" (20).
  `false` disables pagination altogether: all rows are returned.
* `offset`: number of rows to skip. When missing, computed as `page * limit`.
* `page`: page number, starting with 0. When missing, computed as `offset / limit`, rounded down.

```javascript
$.get('/api/user', {limit: 10, page: 2})  // rows 20..29
```
"""

from .base import SearchQueryHandlerBase
from ..exc import InvalidQueryError


class SearchLimit(SearchQueryHandlerBase):
    """ Pagination

        Handles three keys: 'limit', 'offset', 'page'
    """

    query_object_section_name = 'limit'

    def __init__(self, model, schema, default_limit=20, max_items=None):
        """ Init pagination

        :param default_limit: Page size to use when none is given
        :param max_items: The largest page size one can ask for
        """
        super(SearchLimit, self).__init__(model, schema)

        # Config
        self.default_limit = default_limit
        self.max_items = max_items
        assert self.default_limit > 0
        assert self.max_items is None or self.max_items > 0

        # On input
        #: Is pagination enabled?
        self.paged = True
        self.limit = None
        self.offset = 0
        self.page = 0

    def input_prepare_query_object(self, query_object):
        """ Alter the Search Request

        This handler receives 3 values: 'limit', 'offset', and 'page'.
        SearchQuery only supports one key per handler: pack them as a tuple.
        """
        if {'limit', 'offset', 'page'} & set(query_object):
            query_object['limit'] = (query_object.pop('limit', None),
                                     query_object.pop('offset', None),
                                     query_object.pop('page', None))
        return query_object

    def input(self, limit=None, offset=None, page=None):
        # SearchQuery actually gives us a tuple
        if isinstance(limit, tuple):
            limit, offset, page = limit

        super(SearchLimit, self).input((limit, offset, page))

        limit = self._parse_limit(limit)
        offset = self._parse_int(offset, 'offset')
        page = self._parse_int(page, 'page')

        # No pagination
        if limit is False:
            self.paged = False
            self.limit = False
            self.offset = 0
            self.page = page or 0
            return self

        # Page size
        if not limit or limit is True:
            limit = self.default_limit
        if self.max_items:
            limit = min(self.max_items, limit)

        self.paged = True
        self.limit = limit
        self.offset = offset or page * limit or 0
        self.page = page or self.offset // limit or 0
        return self

    @staticmethod
    def _parse_limit(limit):
        """ Parse `limit`: it may come from a query string """
        if isinstance(limit, str):
            lowered = limit.strip().lower()
            if lowered == 'false':
                return False
            if lowered in ('true', ''):
                return True
        if isinstance(limit, bool) or limit is None:
            return limit
        return SearchLimit._parse_int(limit, 'limit')

    @staticmethod
    def _parse_int(value, name) -> int:
        if value is None or value == '':
            return 0
        try:
            value = int(value)
        except (TypeError, ValueError):
            raise InvalidQueryError('{} must be an integer; {!r} provided.'.format(name, value))
        return max(value, 0)

    def is_input_empty(self):
        return False  # pagination has defaults even when nothing was given

    def alter_query(self, query):
        """ Apply offset() and limit() to the query """
        if not self.paged:
            return query
        if self.offset:
            query = query.offset(self.offset)
        return query.limit(self.limit)

    def get_final_input_value(self):
        return dict(limit=self.limit, offset=self.offset, page=self.page)
