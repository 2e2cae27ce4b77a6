from .reusable import Reusable
from .marker import ABSENT
from .method_decorator import method_decorator
from .counting_query_wrapper import CountingQuery
from .settings_dict import SearchQuerySettingsDict
from .settings_handler import SearchQuerySettingsHandler
from .to_dict import instance_to_dict, row_to_dict, jsonable
