"""
### Flask router

Binds a Route Table onto a Flask Blueprint:

```python
from flask import Flask, g
from restsql import derive_routes, flask_router

app = Flask(__name__)
routes = derive_routes({'User': User, 'Article': Article})
app.register_blueprint(flask_router(routes, get_session=lambda: g.db), url_prefix='/api')
```

Every request runs one controller action.
The action input is one dict: the JSON body, the query string (dot notation: `?filters.name=john`),
and the path parameters, merged in this order.
A JSON body that is a list is given to the action as is.

The response is the action's envelope, as JSON, with its `status` as the HTTP status,
and a `requestId` that is also in the log.

Hooks can alter what goes in and out:

* `before_process(table_name, action, data, request_id)` -> data
* `after_process(table_name, action, envelope, request_id)` -> envelope

`GET /` on the blueprint lists the endpoints.
"""

import re
from collections.abc import Mapping
from logging import getLogger
from time import monotonic
from typing import Callable, Optional
from uuid import uuid4

from flask import Blueprint, jsonify, request

from .routes import generate_services_summary
from .schema import ModelSchema
from .status_codes import get_status_code

logger = getLogger(__name__)


def flask_router(routes: Mapping,
                 get_session: Optional[Callable] = None,
                 blueprint: Optional[Blueprint] = None,
                 before_process: Optional[Callable] = None,
                 after_process: Optional[Callable] = None,
                 debug_log: bool = False) -> Blueprint:
    """ Register every route of a Route Table on a Blueprint

        :param routes: Route Table, from `derive_routes()`
        :param get_session: Callable that gives the sqlalchemy Session for the current request
        :param blueprint: The Blueprint to use; a new one when not given
        :param before_process: Hook: `(table_name, action, data, request_id) -> data`
        :param after_process: Hook: `(table_name, action, envelope, request_id) -> envelope`
        :param debug_log: Log request details at the DEBUG level
    """
    if blueprint is None:
        blueprint = Blueprint('restsql', __name__)

    blueprint.restsql_routes = getattr(blueprint, 'restsql_routes', [])
    for route in routes.values():
        blueprint.restsql_routes.append(route.key)
        view = _RouteView(route, get_session, before_process, after_process, debug_log)
        blueprint.add_url_rule(flask_path(route.path),
                               endpoint=_endpoint_name(route),
                               view_func=view,
                               methods=[route.method],
                               strict_slashes=False)

    def index():
        return jsonify(dict(error=False, success=True, **get_status_code(200), data={
            'endpoints': list_routes(blueprint),
            'tables': generate_services_summary(routes),
        }))

    blueprint.add_url_rule('/', endpoint='index', view_func=index, methods=['GET'])
    return blueprint


class _RouteView:
    """ The view function for one route """

    def __init__(self, route, get_session, before_process, after_process, debug_log):
        self.route = route
        self.get_session = get_session
        self.before_process = before_process
        self.after_process = after_process
        self.debug_log = debug_log
        self.table_name = ModelSchema.for_model(route.model).table_name if route.model is not None else None

        # Flask needs that
        self.__name__ = _endpoint_name(route)

    def __call__(self, **path_params):
        route = self.route
        request_id = str(uuid4())
        started = monotonic()
        logger.info('%s > %s %s %s.%s', request_id, route.method, request.url,
                    route.controller.__name__, route.action)
        if self.debug_log:
            logger.debug('%s HEADERS %r', request_id, dict(request.headers))
            logger.debug('%s PARAMS %r', request_id, path_params)
            logger.debug('%s QUERY %r', request_id, request.args)
            logger.debug('%s BODY %r', request_id, request.get_data(as_text=True))
            logger.debug('%s COOKIES %r', request_id, request.cookies)

        try:
            payload = self._process(request_id, path_params)
            if payload is None:
                status = get_status_code(503)
                payload = dict(error=True, success=False, **status)
            payload['requestId'] = request_id
            if self.debug_log:
                logger.debug('%s RESPONSE %r', request_id, payload)
            response = jsonify(payload)
            response.status_code = payload['status']
        except Exception as e:
            logger.exception('%s %s %s failed', request_id, route.method, route.path)
            code = getattr(e, 'code', 0)
            payload = dict(error=True, success=False,
                           **get_status_code(500, code if isinstance(code, int) else 0),
                           data=str(e), requestId=request_id)
            response = jsonify(payload)
            response.status_code = 500

        logger.info('%s < %s in %.3fs', request_id, response.status_code, monotonic() - started)
        return response

    def _process(self, request_id: str, path_params: dict):
        route = self.route
        data = request_input(path_params)

        session = self.get_session() if self.get_session is not None else None
        controller = route.controller(model=route.model, session=session)

        if self.before_process is not None:
            data = self.before_process(self.table_name, route.action, data, request_id)
        payload = controller.call_action(route.action, data)
        if self.after_process is not None:
            payload = self.after_process(self.table_name, route.action, payload, request_id)
        return payload


def request_input(path_params: dict):
    """ Merge the JSON body, the query string and the path params of the current request """
    body = request.get_json(silent=True)
    if isinstance(body, list):
        return body

    query_string = {key: values[0] if len(values) == 1 else values
                    for key, values in request.args.to_dict(flat=False).items()}
    return {
        **(body if isinstance(body, Mapping) else {}),
        **unflatten(query_string),
        **path_params,
    }


def unflatten(mapping: Mapping, separator: str = '.') -> dict:
    """ {'a.b': 1, 'a.c': 2} -> {'a': {'b': 1, 'c': 2}} """
    ret = {}
    for key, value in mapping.items():
        *parents, last = key.split(separator)
        target = ret
        for name in parents:
            child = target.get(name)
            if not isinstance(child, dict):
                child = target[name] = {}
            target = child
        target[last] = value
    return ret


_PATH_PARAM = re.compile(r':([A-Za-z_][A-Za-z0-9_]*)')


def flask_path(path: str) -> str:
    """ '/users/:id' -> '/users/<int:id>'; '/users/:name' -> '/users/<name>' """
    def convert(m):
        name = m.group(1)
        return '<int:id>' if name == 'id' else '<{}>'.format(name)
    return _PATH_PARAM.sub(convert, path)


def list_routes(blueprint: Blueprint) -> list:
    """ 'METHOD /path' for every route registered on the Blueprint

        Only routes registered with `flask_router()` are known.
    """
    return list(getattr(blueprint, 'restsql_routes', []))


def _endpoint_name(route) -> str:
    return re.sub(r'[^A-Za-z0-9_]', '_', route.key)
