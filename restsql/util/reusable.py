from copy import copy


class Reusable:
    """ A configured SearchQuery (or handler) to use for many requests

        Settings are parsed once, when the object is created.
        Every attribute lookup goes to a fresh copy of the template,
        so state from one request never leaks into another:

            users_search = Reusable(SearchQuery(User, dict(search_in=('name', 'email'))))
            users_search.query(q='john').end()
            users_search.query(q='mary').end()  # no trace of 'john'
    """
    __slots__ = ('_template',)

    def __init__(self, template):
        self._template = template

    def __getattr__(self, name):
        fresh = copy(self._template)
        return getattr(fresh, name)

    def __repr__(self):
        return 'Reusable({!r})'.format(self._template)
