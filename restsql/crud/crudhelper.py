"""
CrudHelper turns incoming JSON dicts into SqlAlchemy instances, and applies them to existing ones.

It works with graphs: a dict may carry related entities under relationship names,
and those are created (or updated) as well.
"""

from collections.abc import Mapping
from typing import Union, Iterable, List

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from .. import exc
from ..schema import ModelSchema


class CrudHelper:
    """ Crud helper: creates and updates instances of a model from entity dicts

        * Create: construct SqlAlchemy instances from a submitted entity dict (with related entities)
        * Update: find instances by their primary key, and update them from a dict;
            a dict without a primary key becomes a new instance
        * Criteria: validate equality criteria for lookups and deletes

        This object is cheap to create; the model analysis is cached.
    """

    # The class to use for getting structural data from a model
    _MODEL_SCHEMA_CLS = ModelSchema

    def __init__(self, model):
        self.model = model
        self.schema = self._MODEL_SCHEMA_CLS.for_model(model)
        self.mapper = inspect(model)

    def _helper_for(self, model) -> 'CrudHelper':
        return self.__class__(model)

    def validate_incoming_entity_dict_fields(self, entity_dict: Mapping, action: str) -> Mapping:
        """ Validate the incoming JSON data

            :raises InvalidQueryError: not a dict
            :raises InvalidColumnError: unknown field
        """
        if not isinstance(entity_dict, Mapping):
            raise exc.InvalidQueryError(f'{self.schema.model_name} "{action}": the value has to be an object, '
                                        f'not {type(entity_dict)}')

        relations = self.mapper.relationships
        for name in entity_dict:
            if name not in self.schema and name not in relations:
                raise exc.InvalidColumnError(self.schema.model_name, name, action)
        return entity_dict

    def criteria(self, find: Mapping, where: str) -> list:
        """ Equality criteria from a {column: value} dict

            :raises InvalidQueryError: not a dict
            :raises InvalidColumnError: unknown column
        """
        if not isinstance(find, Mapping):
            raise exc.InvalidQueryError(f'{where}: criteria have to be an object, not {type(find)}')

        for name in find:
            if name not in self.schema:
                raise exc.InvalidColumnError(self.schema.model_name, name, where)
        return [getattr(self.model, name) == value
                for name, value in find.items()]

    # region Create

    def create_models(self, data: Union[Mapping, Iterable[Mapping]]) -> List[object]:
        """ Create instances from one entity dict, or a list of them """
        if isinstance(data, Mapping):
            data = [data]
        return [self.create_model(entity_dict) for entity_dict in data]

    def create_model(self, entity_dict: Mapping) -> object:
        """ Create an instance (and its related instances) from an entity dict

            :raises InvalidQueryError: validation errors
            :raises InvalidColumnError: invalid column
        """
        entity_dict = self.validate_incoming_entity_dict_fields(entity_dict, 'create')

        relations = self.mapper.relationships
        instance = self.model()
        for name, value in entity_dict.items():
            if name in relations:
                related = self._helper_for(relations[name].mapper.class_)
                if value is None:
                    setattr(instance, name, [] if relations[name].uselist else None)
                elif relations[name].uselist:
                    setattr(instance, name, [related.create_model(v) for v in _as_list(value)])
                else:
                    setattr(instance, name, related.create_model(value))
            else:
                setattr(instance, name, value)
        return instance

    # endregion

    # region Update

    def upsert_models(self, ssn: Session, data: Union[Mapping, Iterable[Mapping]]) -> List[object]:
        """ Update (or create) instances from one entity dict, or a list of them """
        if isinstance(data, Mapping):
            data = [data]
        return [self.upsert_model(ssn, entity_dict) for entity_dict in data]

    def upsert_model(self, ssn: Session, entity_dict: Mapping) -> object:
        """ Update an instance from an entity dict; create one if the dict has no primary key

            This is a partial update: only the given fields are updated.
            JSON dicts are shallowly merged.

            :raises NotFoundError: the primary key is given, but there's no such instance
            :raises InvalidQueryError: validation errors
            :raises InvalidColumnError: invalid column
        """
        entity_dict = self.validate_incoming_entity_dict_fields(entity_dict, 'update')

        pk = entity_dict.get(self.schema.primary_key)
        if pk is None:
            return self.create_model(entity_dict)

        instance = ssn.get(self.model, pk)
        if instance is None:
            raise exc.NotFoundError({self.schema.primary_key: pk})

        relations = self.mapper.relationships
        for name, value in entity_dict.items():
            if name in relations:
                related = self._helper_for(relations[name].mapper.class_)
                if value is None:
                    setattr(instance, name, [] if relations[name].uselist else None)
                elif relations[name].uselist:
                    setattr(instance, name, [related.upsert_model(ssn, v) for v in _as_list(value)])
                else:
                    setattr(instance, name, related.upsert_model(ssn, value))
            else:
                current = getattr(instance, name)
                if isinstance(value, Mapping) and isinstance(current, Mapping):
                    # JSON column with a dict: do a shallow merge
                    value = {**current, **value}
                setattr(instance, name, value)
        return instance

    # endregion


def _as_list(value):
    return value if isinstance(value, (list, tuple)) else [value]
