"""
RestSQL turns your [SqlAlchemy](http://www.sqlalchemy.org/) models into a REST API.

Every table gets a set of routes: list, search, select one, insert, update, delete, meta.
The list route takes a Search Request that controls the way the result set is generated:

```javascript
$.post('/api/users/', {
    fields: ['id', 'name'],                  // only these columns
    q: 'john',                               // omni-search across string columns
    filters: { age: { $gte: 18 } },          // age >= 18
    orderBy: { name: 'asc' },                // sort
    limit: 10, page: 2,                      // paginate
})
```

The response is always an envelope:

```javascript
{ error: false, success: true, status: 200, code: 0, description: 'ok', data: [...], total: 123 }
```

Routes are derived from models, and bound to Flask:

```python
from restsql import derive_routes, flask_router

app.register_blueprint(flask_router(derive_routes(models), get_session=lambda: g.db), url_prefix='/api')
```
"""

# Exceptions that are used here and there
from .exc import *

# RestSQL needs to know the columns of your models, and their types.
# All this is handled by the following class:
from .schema import ModelSchema, ColumnSchema

# SearchQuery parses the Search Request, and uses handlers to convert it into a Query.
from . import handlers
from .query import SearchQuery

# Controllers implement actions. Routes refer to them by name.
from .crud import Controller, CrudHelper, action

# Routes: which table gets which actions at which paths
from .routes import Route, RoutingContext, DEFAULT_REST_RULES
from .routes import derive_routes, generate_services_summary
from .routes import modify_defined_routes, add_table_alias, replace_generic_controller

# Response envelope
from .status_codes import get_status_code, add_status_codes

# Output formatting
from .format_data import format_data, add_rule_actions

# Helpers
from .util import Reusable, ABSENT, SearchQuerySettingsDict

# Flask binding
from .flask_router import flask_router, list_routes, unflatten

# Models for an existing database
from .automap import automap_models, map_sql_type, map_sql_format
