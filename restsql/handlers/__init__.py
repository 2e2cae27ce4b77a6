from .base import SearchQueryHandlerBase
from .project import SearchProject
from .search import SearchOmni
from .sort import SearchSort
from .filter import SearchFilter
from .limit import SearchLimit
