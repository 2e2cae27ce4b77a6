"""
A Controller implements the CRUD actions for one model.

Every action takes one dict (the merged request input) and gives back a response envelope:

```python
{
    'error': False,
    'success': True,
    'status': 200,
    'code': 0,
    'description': 'ok',
    'data': ...,
}
```

Actions never raise on bad input or database failures: they report them in the envelope.

Actions are marked with `@action('name')`: this is the name routes refer to.
Subclasses add their own actions the same way:

```python
from restsql import Controller, action

class UserController(Controller):
    model = User

    @action('activate')
    def activate(self, data):
        ...
        return self.success(...)
```
"""

from collections.abc import Mapping
from functools import partial
from logging import getLogger
from typing import Optional, List

from .. import exc
from ..query import SearchQuery
from ..schema import ModelSchema
from ..status_codes import get_status_code
from ..util import method_decorator, instance_to_dict
from .crudhelper import CrudHelper

logger = getLogger(__name__)


class action(method_decorator):
    """ Mark a controller method as an action that routes can refer to by name

        The marked method runs within the controller's error handling:
        see `Controller.run_action()`.
    """

    def __init__(self, name: str):
        super(action, self).__init__()
        self.name = name

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return partial(instance.run_action, self.method)

    @classmethod
    def actions_of(cls, Controller: type) -> dict:
        """ Get {action name: method name} for a controller class and its bases """
        return {decorator.name: decorator.method_name
                for decorator in cls.all_decorators_from(Controller)}


class Controller:
    """ CRUD actions for a model

        Attributes:
            model: The model to work with. Subclasses may bind it at the class level.
            search_in: Columns the omni-search looks into; `None` for all string columns
            search_settings: More settings for SearchQuery (see SearchQuerySettingsDict)
    """

    model = None
    search_in = None
    search_settings = None

    # The class to use for search queries
    _SEARCH_QUERY_CLS = SearchQuery
    # The class to use for creating and updating instances
    _CRUD_HELPER_CLS = CrudHelper

    def __init__(self, model=None, session=None, search_in=None):
        """ Init the controller for a request

        :param model: The model; overrides the class-level one
        :param session: The sqlalchemy Session to work with
        :param search_in: Columns for the omni-search; overrides the class-level setting
        """
        if model is not None:
            self.model = model
        if search_in is not None:
            self.search_in = search_in
        self.session = session

    # region Actions

    @classmethod
    def get_actions(cls) -> dict:
        """ {action name: method name} for every action of this controller """
        return action.actions_of(cls)

    @classmethod
    def resolve_action(cls, name: str) -> str:
        """ Get the method name that implements an action

            :raises UnknownActionError: no such action
        """
        try:
            return cls.get_actions()[name]
        except KeyError:
            raise exc.UnknownActionError(cls.__name__, name)

    def call_action(self, name: str, data=None) -> dict:
        """ Invoke an action by its name """
        return getattr(self, self.resolve_action(name))(data)

    def run_action(self, method, *args, **kwargs) -> dict:
        """ Run an action method: commit on success, roll back and report on failure """
        try:
            ret = method(self, *args, **kwargs)
        except exc.NotFoundError as e:
            self._rollback()
            return self.error(e.criteria, 404)
        except (exc.InvalidQueryError, exc.InvalidColumnError) as e:
            self._rollback()
            return self.error(str(e), 400)
        except Exception as e:
            self._rollback()
            return self.error(e)
        else:
            return ret

    @action('list')
    def list(self, search: Optional[Mapping] = None, query=None):
        """ Search: filter, sort, paginate

            :param search: Search Request
            :param query: An optional Query to build on
        """
        if not isinstance(search, (Mapping, type(None))):
            raise exc.InvalidQueryError('Search Request must be either an object, or null')

        if query is None:
            query = self.session.query(self.model)

        page = self._SEARCH_QUERY_CLS(self.model, self._search_settings()) \
            .from_query(query) \
            .query(**(search or {})) \
            .fetch()
        return self.success_merge(page)

    @action('selectById')
    def select_by_id(self, data: Mapping):
        """ Get one row by its primary key: `{id: ...}` """
        id = data['id']
        instance = self.session.get(self.model, id)
        if instance is None:
            raise exc.NotFoundError(id)
        return self.success(instance_to_dict(instance))

    @action('selectByName')
    def select_by_name(self, data: Mapping):
        """ Get one row by its name: `{name: ...}` """
        return self.select_one({'name': data['name']})

    @action('selectOne')
    def select_one(self, find: Mapping):
        """ Get the first row that matches the criteria """
        criteria = self._crud_helper().criteria(find, 'selectOne')
        instance = self.session.query(self.model).filter(*criteria).first()
        if instance is None:
            raise exc.NotFoundError(find)
        return self.success(instance_to_dict(instance))

    @action('selectOneActive')
    def select_one_active(self, find: Mapping):
        """ Get the first active row that matches the criteria """
        return self.select_one({**find, 'active': True})

    @action('insert')
    def insert(self, data):
        """ Insert one entity, or a list of them, with related entities """
        instances = self._crud_helper().create_models(data)
        return self.success(self._save_instances(data, instances))

    @action('update')
    def update(self, data):
        """ Update one entity, or a list of them, with related entities

            Entities without a primary key are inserted.
        """
        instances = self._crud_helper().upsert_models(self.session, data)
        return self.success(self._save_instances(data, instances))

    @action('delete')
    def delete(self, data: Mapping):
        """ Delete rows by primary key: `{id: 1}`, `{ids: [1, 2]}` """
        data = data or {}
        ids = [id for id in _flatten([data.get('id'), data.get('ids')]) if id]

        pk = getattr(self.model, ModelSchema.for_model(self.model).primary_key)
        count = self.session.query(self.model) \
            .filter(pk.in_(ids)) \
            .delete(synchronize_session=False)
        self.session.commit()
        return self.success(count)

    @action('deleteWhere')
    def delete_where(self, where: Mapping):
        """ Delete rows that match the criteria """
        criteria = self._crud_helper().criteria(where, 'deleteWhere')
        if not criteria:
            raise exc.InvalidQueryError('deleteWhere: refusing to delete without criteria')

        count = self.session.query(self.model) \
            .filter(*criteria) \
            .delete(synchronize_session=False)
        self.session.commit()
        return self.success(count)

    @action('meta')
    def meta(self, data=None):
        """ Describe the table """
        schema = ModelSchema.for_model(self.model)
        return self.success({
            'tableName': schema.table_name,
            'jsonSchema': schema.json_schema,
            'columns': schema.columns(),
        })

    # endregion

    def find_type_string(self) -> List[str]:
        """ Names of string columns """
        return ModelSchema.for_model(self.model).string_columns()

    # region Response envelope

    def success(self, data=None, status: int = 200, code: int = 0) -> dict:
        return dict(error=False, success=True, **get_status_code(status, code), data=data)

    def success_merge(self, data: Mapping, status: int = 200, code: int = 0) -> dict:
        """ A success envelope with `data` merged into it """
        return dict(error=False, success=True, **get_status_code(status, code), **data)

    def error(self, error_obj=None, status: int = 500, code: int = 0) -> dict:
        """ A failure envelope

            Exceptions are logged, and always give a 500 with the error message as data.
        """
        if isinstance(error_obj, Exception):
            logger.error('%s failed: %s', self.__class__.__name__, error_obj, exc_info=error_obj)
            return dict(error=True, success=False, **get_status_code(500, 0), data=str(error_obj))
        return dict(error=True, success=False, **get_status_code(status, code), data=error_obj)

    # endregion

    def _search_settings(self) -> dict:
        settings = dict(self.search_settings or {})
        if self.search_in is not None:
            settings['search_in'] = self.search_in
        return settings

    def _crud_helper(self) -> CrudHelper:
        return self._CRUD_HELPER_CLS(self.model)

    def _save_instances(self, data, instances):
        """ Save instances, and give them back the way they were given: one entity, or a list """
        self.session.add_all(instances)
        self.session.flush()

        # Committing expires the instances: convert them before that
        dicts = [instance_to_dict(instance) for instance in instances]
        self.session.commit()
        return dicts[0] if isinstance(data, Mapping) else dicts

    def _rollback(self):
        if self.session is not None:
            self.session.rollback()

    def __repr__(self):
        return '{}({})'.format(self.__class__.__name__, self.model.__name__ if self.model else None)


def _flatten(values):
    ret = []
    for v in values:
        if isinstance(v, (list, tuple)):
            ret.extend(v)
        else:
            ret.append(v)
    return ret
