class BaseRestSqlException(Exception):
    pass


class InvalidQueryError(BaseRestSqlException):
    """ Invalid input provided by the User """

    def __init__(self, err: str):
        super(InvalidQueryError, self).__init__('Search request error: {err}'.format(err=err))


class InvalidColumnError(BaseRestSqlException):
    """ Request mentioned an invalid column name """

    def __init__(self, model: str, column_name: str, where: str):
        self.model = model
        self.column_name = column_name
        self.where = where

        super(InvalidColumnError, self).__init__(
            'Invalid column "{column_name}" for "{model}" specified in {where}'.format(
                column_name=column_name,
                model=model,
                where=where)
        )


class ConfigurationError(BaseRestSqlException):
    """ Programming or configuration mistake: raised at setup time, never caught by the library """


class UnknownActionError(ConfigurationError):
    """ A route refers to an action that the controller does not implement """

    def __init__(self, controller: str, action: str):
        self.controller = controller
        self.action = action

        super(UnknownActionError, self).__init__(
            'Controller "{controller}" has no action "{action}"'.format(
                controller=controller,
                action=action)
        )


class NotFoundError(BaseRestSqlException):
    """ Nothing matched the criteria """

    def __init__(self, criteria):
        self.criteria = criteria
        super(NotFoundError, self).__init__('Not found: {!r}'.format(criteria))
