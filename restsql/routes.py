"""
### Routes

`derive_routes()` turns a set of models into a Route Table:
a dict of `'METHOD /path'` -> `Route(method, path, action, controller, model)`.

Every table gets the base REST routes:

| Route             | Action       |
|-------------------|--------------|
| `GET /`           | list         |
| `POST /`          | list         |
| `PUT /`           | insert       |
| `PATCH /`         | update       |
| `DELETE /`        | delete       |
| `GET /meta`       | meta         |
| `GET /:name`      | selectByName |
| `GET /:id`        | selectById   |
| `PATCH /:id`      | update       |
| `DELETE /:id`     | delete       |

mounted under the table's slug: `/<kebab-case table name>/`, or its alias.

The configuration says which tables and which routes are there:

```python
derive_routes(models, controllers, {
    'filters': {
        'default_action': 'includes',        # all tables, unless set to False
        'secrets': False,                    # no routes for this table
        'users': {
            'DELETE /': False,               # all base routes but this one
            'GET /:name': 'selectOneActive', # a different action
            'POST /login': 'login',          # a new route
        },
        'logs': {
            'default_action': 'excludes',    # only the routes listed
            'GET /': True,
        },
        '*': True,                           # for tables not mentioned
    },
    'custom_endpoints': {
        'auth': {'POST /login': 'authController.login'},
    },
})
```

With `'default_action': 'excludes'` at the top level, only the tables listed are routed,
and every one of them has to have a model.

The base rule set, the table aliases, and the generic controller live in a `RoutingContext`.
The module-level functions modify the default one.
It's meant to be set up once, at startup: nothing here is thread-safe.
"""

import re
from collections import OrderedDict
from collections.abc import Mapping
from logging import getLogger
from typing import NamedTuple, Iterable, Optional, Union

from .crud import Controller
from .exc import ConfigurationError
from .schema import ModelSchema

logger = getLogger(__name__)


#: The base REST rule set
DEFAULT_REST_RULES = OrderedDict((
    ('GET /', 'list'),
    ('POST /', 'list'),
    ('PUT /', 'insert'),
    ('PATCH /', 'update'),
    ('DELETE /', 'delete'),
    ('GET /meta', 'meta'),
    ('GET /:name', 'selectByName'),
    ('GET /:id', 'selectById'),
    ('PATCH /:id', 'update'),
    ('DELETE /:id', 'delete'),
))


class Route(NamedTuple):
    """ A route: what to do on `METHOD path` """
    method: str
    path: str
    action: str
    controller: type
    #: The model; `None` for custom endpoints
    model: Optional[type]

    @property
    def key(self) -> str:
        return '{} {}'.format(self.method, self.path)


class RoutingContext:
    """ Everything route derivation depends on, besides its arguments

        * `rest_rules`: the base REST rule set every table gets
        * `aliases`: table name -> URL slug
        * `generic_controller`: the controller for tables that have no controller of their own

        Configure it once, at startup, and leave it be.
    """

    def __init__(self, rest_rules: Mapping = None, aliases: Mapping = None, generic_controller: type = Controller):
        self.rest_rules = OrderedDict(DEFAULT_REST_RULES if rest_rules is None else rest_rules)
        self.aliases = dict(aliases or {})
        self.generic_controller = generic_controller

    def modify_defined_routes(self, defs: Union[Mapping, Iterable[str]], remove: bool = False):
        """ Add (or override) base routes; or remove them

            :param defs: {'METHOD /path': 'action'} to add; or a list of 'METHOD /path' keys to remove
            :param remove: Remove the given keys
        """
        if remove and not isinstance(defs, Mapping):
            for key in defs:
                self.rest_rules.pop(key, None)
        else:
            self.rest_rules.update(defs)

    def add_table_alias(self, aliases: Mapping):
        """ Use custom URL slugs for tables: {table name: slug} """
        self.aliases.update(aliases)

    def replace_generic_controller(self, controller: type):
        """ Use another controller for tables that have no controller of their own """
        if not (isinstance(controller, type) and issubclass(controller, Controller)):
            raise ConfigurationError('Generic controller must be a subclass of Controller; {!r} given'
                                     .format(controller))
        self.generic_controller = controller
        return True

    def slug(self, table_name: str) -> str:
        """ URL segment for a table """
        return self.aliases.get(table_name) or kebab_case(table_name)


#: The default context
default_context = RoutingContext()


def modify_defined_routes(defs: Union[Mapping, Iterable[str]], remove: bool = False):
    """ Modify the base REST rule set of the default context """
    default_context.modify_defined_routes(defs, remove)


def add_table_alias(aliases: Mapping):
    """ Add table aliases to the default context """
    default_context.add_table_alias(aliases)


def replace_generic_controller(controller: type):
    """ Replace the generic controller of the default context """
    return default_context.replace_generic_controller(controller)


class _RouteTableBuilder:
    """ Builds one Route Table """

    def __init__(self, models, controllers: Mapping, context: RoutingContext):
        self.models = list(models.values()) if isinstance(models, Mapping) else list(models)
        self.controllers = dict(controllers or {})
        self.context = context
        self.rest_rules = OrderedDict(context.rest_rules)  # current state, as of now
        self.routes = OrderedDict()

    def build(self, config: Mapping) -> OrderedDict:
        filters = config.get('filters')
        if filters:
            self._add_filtered_tables(filters)
        else:
            for model in self.models:
                self._add_table(model, True)

        for base_path, endpoints in (config.get('custom_endpoints') or {}).items():
            self._add_custom_endpoints(base_path, endpoints)

        return self.routes

    def _add_filtered_tables(self, filters: Mapping):
        filters = dict(filters)
        default_action = filters.pop('default_action', 'includes')

        if default_action == 'excludes':
            # Only the tables listed. Look them all up first: a missing table fails the whole thing
            tables = [(self._get_model(table_name), include_table)
                      for table_name, include_table in filters.items()
                      if include_table]
            for model, include_table in tables:
                self._add_table(model, include_table)
        else:
            # All tables, unless excluded
            for model in self.models:
                table_name = ModelSchema.for_model(model).table_name
                include_table = filters.get(table_name, filters.get('*', True))
                self._add_table(model, include_table)

    def _get_model(self, table_name: str):
        model = get_model_by_table_name(table_name, self.models)
        if model is None:
            raise ConfigurationError('Model for table "{}" not found'.format(table_name))
        return model

    def _add_table(self, model, include_table):
        """ Add the routes for one table

            :param include_table: True, False, or a per-table configuration
        """
        if include_table is False or include_table is None:
            return

        table_name = ModelSchema.for_model(model).table_name
        controller = self._controller_for(table_name)

        if include_table is True:
            for service, action in self.rest_rules.items():
                self._add_route(table_name, service, action, controller, model)
            return

        overrides = dict(include_table)
        default_action = overrides.pop('default_action', 'includes')

        if default_action == 'excludes':
            # Only the routes listed
            for service, action in overrides.items():
                if not action:
                    continue
                if action is True:
                    action = self._base_action(service, table_name)
                self._add_route(table_name, service, action, controller, model)
        else:
            # All base routes, unless disabled or overridden
            for service, action in self.rest_rules.items():
                override = overrides.pop(service, None)
                if override is False:
                    continue
                if isinstance(override, str):
                    action = override
                self._add_route(table_name, service, action, controller, model)

            # New routes
            for service, action in overrides.items():
                if not action:
                    continue
                if action is True:
                    action = self._base_action(service, table_name)
                self._add_route(table_name, service, action, controller, model)

    def _base_action(self, service: str, table_name: str) -> str:
        try:
            return self.rest_rules[service]
        except KeyError:
            raise ConfigurationError('"{}" for table "{}" is not a base route: give it an action name'
                                     .format(service, table_name))

    def _controller_for(self, table_name: str) -> type:
        """ Find the controller bound to the table; or use the generic one """
        for controller in self.controllers.values():
            model = controller().model
            if model is not None and ModelSchema.for_model(model).table_name == table_name:
                return controller
        return self.context.generic_controller

    def _add_route(self, table_name: str, service: str, action: str, controller: type, model):
        method, path = _split_service(service)
        self._put(Route(method, '/' + self.context.slug(table_name) + path, action, controller, model))

    def _add_custom_endpoints(self, base_path: str, endpoints: Mapping):
        base = base_path.strip('/')
        for service, handler in endpoints.items():
            controller_name, _, action = handler.partition('.')
            controller = self.controllers.get(controller_name)
            if controller is None:
                logger.debug('Custom endpoint %s: no controller "%s"; skipping', service, controller_name)
                continue
            method, path = _split_service(service)
            self._put(Route(method, '/' + base + path, action, controller, None))

    def _put(self, route: Route):
        # Actions are resolved now, so that a typo fails at startup rather than on a request
        route.controller.resolve_action(route.action)
        self.routes[route.key] = route


def derive_routes(models, controllers: Mapping = None, config: Mapping = None,
                  context: RoutingContext = None) -> OrderedDict:
    """ Build a Route Table

        :param models: {name: model}, or a list of models
        :param controllers: {name: Controller subclass}.
            A controller whose `model` has the same table is used for that table.
            Names are used by custom endpoints.
        :param config: Route configuration: `filters`, `custom_endpoints`
        :param context: Routing context; the default one is used when not given
        :return: {'METHOD /path': Route}
        :raises ConfigurationError: a table listed under 'excludes' has no model
        :raises UnknownActionError: a route refers to an action its controller does not have
    """
    builder = _RouteTableBuilder(models, controllers or {}, context or default_context)
    return builder.build(config or {})


def generate_services_summary(routes: Mapping, exclude: Iterable[str] = None) -> dict:
    """ One route per service: {first path segment: 'METHOD /segment'}

        Only table routes are listed: custom endpoints are not.
        GET is preferred when a service has it.

        :param routes: Route Table
        :param exclude: Segments to leave out
    """
    exclude = set(exclude or ())
    summary = {}
    for route in routes.values():
        if route.model is None:
            continue
        segments = [s for s in route.path.split('/') if s]
        if not segments or segments[0] in exclude:
            continue
        service = segments[0]
        if service not in summary or route.method == 'GET':
            summary[service] = '{} /{}'.format(route.method, service)
    return summary


def get_model_by_table_name(table_name: str, models):
    """ Find a model by its table name; `None` if not found """
    models = models.values() if isinstance(models, Mapping) else models
    for model in models:
        if ModelSchema.for_model(model).table_name == table_name:
            return model
    return None


_WORD_BOUNDARIES = (
    (re.compile(r'([a-z0-9])([A-Z])'), r'\1 \2'),
    (re.compile(r'([A-Z])([A-Z][a-z])'), r'\1 \2'),
)


def _words(s: str) -> list:
    for rex, repl in _WORD_BOUNDARIES:
        s = rex.sub(repl, s)
    return [w for w in re.split(r'[^A-Za-z0-9]+', s) if w]


def kebab_case(s: str) -> str:
    """ 'user_profiles', 'UserProfiles' -> 'user-profiles' """
    return '-'.join(w.lower() for w in _words(s))


def class_name(s: str) -> str:
    """ 'user_profiles' -> 'UserProfiles' """
    return ''.join(w[:1].upper() + w[1:].lower() for w in _words(s))


def _split_service(service: str):
    """ 'get /path' -> ('GET', '/path') """
    method, _, path = service.strip().partition(' ')
    return method.upper(), path.strip()
