from functools import lru_cache
from inspect import signature, Parameter
from typing import Callable, Mapping


@lru_cache(100)
def get_function_defaults(for_func: Callable) -> dict:
    """ {argument name: default value} for the arguments that have defaults """
    return {name: param.default
            for name, param in signature(for_func).parameters.items()
            if param.default is not Parameter.empty}


def pluck_kwargs_from(dct: Mapping, for_func: Callable) -> dict:
    """ Values for the function's keyword arguments: from the dict, or their defaults """
    return {name: dct.get(name, default)
            for name, default in get_function_defaults(for_func).items()}
