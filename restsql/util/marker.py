class _ABSENT_TYPE:
    """ A falsy marker for values that were not provided """
    def __repr__(self):
        return '-'

    def __bool__(self):
        return False


ABSENT = _ABSENT_TYPE()
