from typing import Iterable, Optional


class SearchQuerySettingsDict(dict):
    """ SearchQuery settings container.

        Is mostly used for autocompletion and documentation.

        The keyword settings in this object are plain kwargs names
        for every handler object's __init__ method,
        which are fed to subclasses of SearchQueryHandlerBase by SearchQuerySettingsHandler.

        In addition to that, there are '<handler-name>_enabled' settings
        that can switch a handler off.
    """

    def __init__(self,
                 # --- q
                 search_in: Optional[Iterable[str]] = None,
                 # --- limit
                 default_limit: int = 20,
                 max_items: Optional[int] = None,
                 # --- enabled handlers?
                 fields_enabled: bool = True,
                 q_enabled: bool = True,
                 orderBy_enabled: bool = True,
                 filters_enabled: bool = True,
                 limit_enabled: bool = True,
                 ):
        """ `SearchQuery` settings.

        Example:
            ```python
            from restsql import SearchQuery, SearchQuerySettingsDict

            sq = SearchQuery(models.User, SearchQuerySettingsDict(
                search_in=('name', 'email'),
                max_items=100,
            ))
            ```

        Args:
            search_in (list[str] | None): (for: q)
                Explicit list of columns that the omni-search looks into.
                When `None`, every string column of the model is searched.
                Dotted names (`table.column`) are used as they are.
            default_limit (int): (for: limit)
                The page size to use when the request gives no `limit`, or gives `limit=true`.
            max_items (int | None): (for: limit)
                The largest page size a request can ask for.
                Does not apply to unpaged requests (`limit=false`).

            fields_enabled (bool): Enable/disable the `fields` handler
            q_enabled (bool): Enable/disable the `q` handler
            orderBy_enabled (bool): Enable/disable the `orderBy` handler
            filters_enabled (bool): Enable/disable the `filters` handler
            limit_enabled (bool): Enable/disable the `limit` handler
        """
        super(SearchQuerySettingsDict, self).__init__()
        self.update({k: v
                     for k, v in locals().items()
                     if k not in {'__class__', 'self'}})

    def and_more(self, **settings):
        """ Copy the object and add more settings to it """
        return self.__class__(**{**self, **settings})
