from .inspect import pluck_kwargs_from
from ..exc import InvalidQueryError


class SearchQuerySettingsHandler:
    """ Shares one flat settings dict among the SearchQuery handlers

        Every handler takes its settings as keyword arguments of its __init__(),
        and the names are unique across handlers, so a single dict serves them all.
        Besides those, `<handler name>_enabled` switches a handler off.
    """

    def __init__(self, settings: dict):
        assert isinstance(settings, dict)
        self._settings = settings

        #: Every setting name some handler knows about
        self._known_names = set()
        #: Handlers switched off
        self._disabled = set()

    def get_settings(self, handler_name: str, handler_cls: type) -> dict:
        """ Kwargs for the handler's __init__(): the given settings, or its defaults """
        enabled_key = '{}_enabled'.format(handler_name)
        self._known_names.add(enabled_key)
        if not self._settings.get(enabled_key, True):
            self._disabled.add(handler_name)

        kwargs = pluck_kwargs_from(self._settings, for_func=handler_cls.__init__)
        self._known_names.update(kwargs)
        return kwargs

    def is_handler_enabled(self, handler_name: str) -> bool:
        return handler_name not in self._disabled

    def raise_if_not_handler_enabled(self, model_name: str, handler_name: str):
        """ :raises InvalidQueryError: the handler is switched off """
        if not self.is_handler_enabled(handler_name):
            raise InvalidQueryError('Search parameter "{}" is disabled for "{}"'
                                    .format(handler_name, model_name))

    def raise_if_invalid_handler_settings(self):
        """ Settings that no handler knows about are typos

            :raises KeyError: unknown settings
        """
        unknown = set(self._settings) - self._known_names
        if unknown:
            raise KeyError('Invalid settings were provided for SearchQuery: {}'
                           .format(','.join(sorted(unknown))))

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self._settings)
