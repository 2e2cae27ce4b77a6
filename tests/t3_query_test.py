import unittest
import warnings

from sqlalchemy.exc import SADeprecationWarning

from restsql import SearchQuery
from restsql.util import CountingQuery

from . import models
from .util import QueryCounter, q2sql


class QueryTest(unittest.TestCase):
    """ Test SearchQuery against a real database """

    @classmethod
    def setUpClass(cls):
        cls.engine, cls.Session = models.get_working_db_for_tests()

    def setUp(self):
        self.ssn = self.Session()

    def tearDown(self):
        self.ssn.close()

    def _fetch(self, settings=None, **search_request):
        return SearchQuery(models.User, settings) \
            .with_session(self.ssn) \
            .query(**search_request) \
            .fetch()

    def _ids(self, settings=None, **search_request):
        return [row['id'] for row in self._fetch(settings, **search_request)['data']]

    def test_fetch(self):
        """ Test fetch(): the page envelope """
        page = self._fetch(orderBy={'id': 'asc'})
        self.assertEqual(page['total'], 5)
        self.assertEqual((page['limit'], page['offset'], page['page']), (20, 0, 0))
        self.assertEqual([row['id'] for row in page['data']], [1, 2, 3, 4, 5])

        # Rows are JSON-friendly dicts
        john = page['data'][0]
        self.assertEqual(john['name'], 'john')
        self.assertEqual(john['created'], '2020-01-01T10:00:00')
        self.assertEqual(john['birthday'], '1990-05-01')
        self.assertNotIn('articles', john)  # not loaded

        # Projection
        page = self._fetch(fields='name', orderBy={'id': 'asc'}, limit=1)
        self.assertEqual(page['data'], [{'name': 'john', 'id': 1}])
        self.assertEqual(page['total'], 5)

    def test_pagination(self):
        """ Test pagination: the total is counted in the same query """
        with QueryCounter(self.engine) as qc:
            page = self._fetch(orderBy={'id': 'asc'}, limit=2, page=1)
        self.assertEqual(qc.n, 1)
        self.assertEqual([row['id'] for row in page['data']], [3, 4])
        self.assertEqual((page['total'], page['limit'], page['offset'], page['page']), (5, 2, 2, 1))

        # Last page
        page = self._fetch(orderBy={'id': 'asc'}, limit=2, offset=4)
        self.assertEqual([row['id'] for row in page['data']], [5])
        self.assertEqual((page['total'], page['page']), (5, 2))

        # Past the end: another query counts the rows
        with QueryCounter(self.engine) as qc:
            page = self._fetch(limit=2, offset=10)
        self.assertEqual(qc.n, 2)
        self.assertEqual((page['data'], page['total']), ([], 5))

        # Nothing found
        page = self._fetch(filters={'name': 'nobody'})
        self.assertEqual((page['data'], page['total']), ([], 0))

        # No pagination
        page = self._fetch(limit=False)
        self.assertEqual(len(page['data']), 5)
        self.assertEqual((page['total'], page['limit'], page['offset']), (5, False, 0))

    def test_omni_search(self):
        """ Test the relevance ordering """
        # exact (0), prefix (1), anything else (3), suffix (4)
        page = self._fetch(dict(search_in=('name',)), q='john')
        self.assertEqual([row['name'] for row in page['data']], ['john', 'johnny', 'ajohnb', 'bigjohn'])
        self.assertEqual(page['total'], 4)

        # All string columns
        self.assertEqual(sorted(self._ids(q='example.com')), [1, 2, 3, 4, 5])

        # Explicit ordering
        self.assertEqual(self._ids(dict(search_in=('name',)), q='john', orderBy={'id': 'desc'}), [4, 3, 2, 1])

    def test_search_dates_as_text(self):
        """ Dates are searched and filtered as text, without operators their types don't have """
        with warnings.catch_warnings():
            warnings.simplefilter('error', SADeprecationWarning)

            self.assertEqual(self._ids(q='2020'), [1])
            self.assertEqual(self._ids(filters={'birthday': '1990-05'}), [1])
            self.assertEqual(self._ids(filters={'created': {'$like': '2020-01-01%'}}), [1])

    def test_filters(self):
        """ Test filters against real data """
        self.assertEqual(self._ids(filters={'age': 30}, orderBy={'id': 'asc'}), [1, 5])
        self.assertEqual(self._ids(filters={'age': [18, 25]}, orderBy={'id': 'asc'}), [2, 4])
        self.assertEqual(self._ids(filters={'id': [1, 3, 5]}, orderBy={'id': 'asc'}), [1, 3, 5])
        self.assertEqual(self._ids(filters={'name': 'john'}, orderBy={'id': 'asc'}), [1, 2, 3, 4])
        self.assertEqual(self._ids(filters={'active': 'false'}), [3])
        self.assertEqual(self._ids(filters={'active': True, 'age': {'$gte': 30}}, orderBy={'id': 'asc'}), [1, 5])
        self.assertEqual(self._ids(filters={'score': {'$between': [3, 5]}}, orderBy={'id': 'asc'}), [1, 2, 3])
        self.assertEqual(self._ids(filters={'name': {'$ilike': 'JOHN%'}}, orderBy={'id': 'asc'}), [1, 2])
        self.assertEqual(self._ids(filters={'age': {'$nin': [30, 40]}}, orderBy={'id': 'asc'}), [2, 4])

    def test_from_query(self):
        """ Build on a custom query """
        base = self.ssn.query(models.User).filter(models.User.active == True)
        page = SearchQuery(models.User).from_query(base).query(filters={'age': 30}, orderBy={'id': 'asc'}).fetch()
        self.assertEqual([row['id'] for row in page['data']], [1, 5])

        # The base query is untouched
        self.assertEqual(base.count(), 4)

        # Joins
        base = self.ssn.query(models.User).join(models.User.articles)
        page = SearchQuery(models.User).from_query(base) \
            .query(filters={'a.title': 'fourth'}) \
            .fetch()
        self.assertEqual([row['name'] for row in page['data']], ['mary'])

    def test_ordering_is_deterministic(self):
        """ The same request gives the same SQL """
        request = dict(q='john', filters={'age': {'$gte': 18}, 'name': 'j'}, fields=['name', 'age'], limit=3)
        sql = [q2sql(SearchQuery(models.User).query(**request).end())
               for _ in range(3)]
        self.assertEqual(len(set(sql)), 1)

    def test_counting_query(self):
        """ Test CountingQuery """
        # Entities
        cq = CountingQuery(self.ssn.query(models.User).order_by(models.User.id).limit(2))
        self.assertEqual(cq.count, 5)
        self.assertEqual([u.id for u in cq], [1, 2])

        # Tuples
        cq = CountingQuery(self.ssn.query(models.User.id, models.User.name).order_by(models.User.id).limit(1))
        self.assertEqual(list(cq), [(1, 'john')])
        self.assertEqual(cq.count, 5)
