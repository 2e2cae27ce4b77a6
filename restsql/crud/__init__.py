from .crudhelper import CrudHelper
from .controller import Controller, action
