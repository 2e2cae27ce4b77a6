from functools import lru_cache, partial, update_wrapper
from typing import Tuple


class method_decorator:
    """ Base for decorators that mark methods and carry some data about them

        The decorator object itself is what ends up in the class' __dict__,
        so it can be found later with `all_decorators_from()`.
        Accessed through an instance, it gives the bound method.

        Subclasses receive their data through __init__():

            class route(method_decorator):
                def __init__(self, path):
                    super().__init__()
                    self.path = path
    """

    def __init__(self):
        self.method = None
        self.method_name = None

    def __call__(self, method):
        if self.method is not None:
            raise RuntimeError('@{} has already decorated {}()'.format(type(self).__name__, self.method_name))

        self.method = method
        self.method_name = method.__name__
        update_wrapper(self, method)
        return self

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return partial(self.method, instance)

    def __repr__(self):
        return '@{}({})'.format(type(self).__name__, self.method_name)

    @classmethod
    @lru_cache(256)
    def all_decorators_from(cls, Klass: type) -> Tuple['method_decorator', ...]:
        """ Collect decorators of this kind from a class and its bases (cached)

            Subclasses win: a method overridden without the decorator is not reported.
        """
        if not isinstance(Klass, type):
            raise ValueError('Decorators can only be collected from a class; {!r} given'.format(Klass))

        found = {}
        for base in reversed(Klass.__mro__):
            for name, attr in vars(base).items():
                if isinstance(attr, cls):
                    found[name] = attr
                else:
                    found.pop(name, None)
        return tuple(found.values())
