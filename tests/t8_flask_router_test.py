import unittest

from flask import Flask

from restsql import derive_routes, flask_router, list_routes, unflatten
from restsql.flask_router import flask_path
from restsql.routes import RoutingContext

from . import models


class FlaskRouterTest(unittest.TestCase):
    """ Test the Flask binding """

    def setUp(self):
        self.engine, self.Session = models.get_working_db_for_tests()
        self.ssn = self.Session()

        self.routes = derive_routes(
            {'User': models.User, 'Article': models.Article},
            {'UserController': models.UserController},
            {'custom_endpoints': {'auth': {'POST /login': 'UserController.login'}}},
            context=RoutingContext(),
        )
        self.processed = []

    def tearDown(self):
        self.ssn.close()

    def client(self, **kwargs):
        app = Flask(__name__)
        app.testing = True
        app.register_blueprint(flask_router(self.routes, get_session=lambda: self.ssn, **kwargs),
                               url_prefix='/api')
        return app.test_client()

    def test_list(self):
        c = self.client()

        res = c.get('/api/u/')
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json['total'], 5)
        self.assertEqual(res.json['description'], 'ok')
        self.assertTrue(res.json['requestId'])

        # Query string, in dot notation
        res = c.get('/api/u/?limit=2&orderBy.id=desc')
        self.assertEqual([row['id'] for row in res.json['data']], [5, 4])
        self.assertEqual(res.json['limit'], 2)

        res = c.get('/api/u/?filters.age=30&orderBy.id=asc&fields=name')
        self.assertEqual(res.json['data'], [{'name': 'john', 'id': 1}, {'name': 'mary', 'id': 5}])

        # JSON body
        res = c.post('/api/u/', json={'filters': {'age': {'$gte': 30}}, 'orderBy': {'id': 'asc'}})
        self.assertEqual([row['id'] for row in res.json['data']], [1, 3, 5])

        # Bad request
        res = c.post('/api/u/', json={'filters': {'bad column!': 1}})
        self.assertEqual(res.status_code, 400)
        self.assertTrue(res.json['error'])

    def test_select(self):
        c = self.client()

        res = c.get('/api/u/1')
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json['data']['name'], 'john')

        res = c.get('/api/u/mary')
        self.assertEqual(res.json['data']['id'], 5)

        res = c.get('/api/u/999')
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.json['data'], 999)

        res = c.get('/api/u/meta')
        self.assertEqual(res.json['data']['tableName'], 'u')

    def test_modify(self):
        c = self.client()

        res = c.put('/api/u/', json={'name': 'new'})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json['data']['id'], 6)

        res = c.put('/api/a/', json=[{'title': 'x', 'uid': 6}, {'title': 'y', 'uid': 6}])
        self.assertEqual([a['title'] for a in res.json['data']], ['x', 'y'])

        res = c.patch('/api/u/1', json={'age': 31})
        self.assertEqual(res.json['data']['age'], 31)

        res = c.patch('/api/u/999', json={'age': 31})
        self.assertEqual(res.status_code, 404)

        res = c.delete('/api/u/5')
        self.assertEqual(res.json['data'], 1)

        res = c.delete('/api/u/', json={'ids': [2, 3]})
        self.assertEqual(res.json['data'], 2)

        self.assertEqual(sorted(u.id for u in self.ssn.query(models.User)), [1, 4, 6])

    def test_custom_endpoint(self):
        c = self.client()
        res = c.post('/api/auth/login', json={'name': 'mary'})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json['data']['id'], 5)

    def test_index(self):
        c = self.client()
        res = c.get('/api/')
        self.assertEqual(res.status_code, 200)
        self.assertIn('GET /u/:id', res.json['data']['endpoints'])
        self.assertIn('POST /auth/login', res.json['data']['endpoints'])
        self.assertEqual(res.json['data']['tables'], {'u': 'GET /u', 'a': 'GET /a'})

    def test_hooks(self):
        def before_process(table_name, action, data, request_id):
            self.processed.append((table_name, action, request_id))
            return dict(data, filters={'active': False})

        def after_process(table_name, action, payload, request_id):
            payload['hooked'] = True
            return payload

        c = self.client(before_process=before_process, after_process=after_process)
        res = c.get('/api/u/')
        self.assertEqual([row['id'] for row in res.json['data']], [3])
        self.assertTrue(res.json['hooked'])
        self.assertEqual(self.processed, [('u', 'list', res.json['requestId'])])

        # Custom endpoints have no table
        c.post('/api/auth/login', json={'name': 'mary'})
        self.assertEqual(self.processed[-1][:2], (None, 'login'))

    def test_failures(self):
        # No payload
        c = self.client(after_process=lambda *args: None)
        res = c.get('/api/u/')
        self.assertEqual(res.status_code, 503)
        self.assertEqual(res.json['description'], 'service-unavailable')
        self.assertTrue(res.json['requestId'])

        # Uncaught exceptions
        def before_process(table_name, action, data, request_id):
            raise RuntimeError('hook failed')

        c = self.client(before_process=before_process)
        with self.assertLogs('restsql.flask_router', 'ERROR'):
            res = c.get('/api/u/')
        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.json['data'], 'hook failed')
        self.assertTrue(res.json['error'])

    def test_list_routes(self):
        blueprint = flask_router(self.routes)
        self.assertEqual(list_routes(blueprint), list(self.routes))


class FlaskRouterHelpersTest(unittest.TestCase):
    def test_flask_path(self):
        self.assertEqual(flask_path('/u/:id'), '/u/<int:id>')
        self.assertEqual(flask_path('/u/:name'), '/u/<name>')
        self.assertEqual(flask_path('/u/:uid/articles/:slug'), '/u/<uid>/articles/<slug>')
        self.assertEqual(flask_path('/u/'), '/u/')

    def test_unflatten(self):
        self.assertEqual(unflatten({'a.b': 1, 'a.c': 2, 'd': 3}), {'a': {'b': 1, 'c': 2}, 'd': 3})
        self.assertEqual(unflatten({'filters.age.$gte': '18'}), {'filters': {'age': {'$gte': '18'}}})
        self.assertEqual(unflatten({}), {})
