"""
Status codes carried by every response envelope.

A status code is identified by the HTTP status and an application-specific `code` (0 by default):

```python
get_status_code(404)  # -> {'status': 404, 'code': 0, 'description': 'not-found'}
```

Applications register their own codes with `add_status_codes()`.
"""

from typing import Iterable, Mapping

from .exc import ConfigurationError


_HTTP_STATUSES = (
    (200, 'ok'),
    (201, 'created'),
    (202, 'accepted'),
    (203, 'non-authoritative-information'),
    (204, 'no-content'),
    (205, 'reset-content'),
    (206, 'partial-content'),

    (300, 'multiple-choices'),
    (301, 'moved-permanently'),
    (302, 'found'),
    (303, 'see-other'),
    (304, 'not-modified'),
    (307, 'temporary-redirect'),
    (308, 'permanent-redirect'),

    (400, 'bad-request'),
    (401, 'unauthorized'),
    (402, 'payment-required'),
    (403, 'forbidden'),
    (404, 'not-found'),
    (405, 'method-not-allowed'),
    (406, 'not-acceptable'),
    (407, 'proxy-authentication-required'),
    (408, 'request-timeout'),
    (409, 'conflict'),
    (410, 'gone'),
    (411, 'length-required'),
    (412, 'precondition-failed'),
    (413, 'payload-too-large'),
    (414, 'uri-too-long'),
    (415, 'unsupported-media-type'),
    (416, 'range-not-satisfiable'),
    (417, 'expectation-failed'),
    (418, 'im-a-teapot'),
    (421, 'misdirected-request'),
    (422, 'unprocessable-entity'),
    (423, 'locked'),
    (424, 'failed-dependency'),
    (425, 'too-early'),
    (426, 'upgrade-required'),
    (428, 'precondition-required'),
    (429, 'too-many-requests'),
    (431, 'request-header-fields-too-large'),
    (451, 'unavailable-for-legal-reasons'),

    (500, 'internal-server-error'),
    (501, 'not-implemented'),
    (502, 'bad-gateway'),
    (503, 'service-unavailable'),
    (504, 'gateway-timeout'),
    (505, 'http-version-not-supported'),
    (506, 'variant-also-negotiates'),
    (507, 'insufficient-storage'),
    (508, 'loop-detected'),
    (510, 'not-extended'),
    (511, 'network-authentication-required'),
)

#: (status, code) -> {status, code, description}
_status_codes = {
    (status, 0): dict(status=status, code=0, description=description)
    for status, description in _HTTP_STATUSES
}


def add_status_codes(extra_status_codes: Iterable[Mapping]):
    """ Register application-specific status codes

        :param extra_status_codes: dicts with `status`, `code`, `description`
        :raises ConfigurationError: a status code without `status`
    """
    for status_code in extra_status_codes:
        if not status_code.get('status'):
            raise ConfigurationError('missing status')
        status_code = dict(status_code, code=status_code.get('code') or 0)
        _status_codes[status_code['status'], status_code['code']] = status_code


def get_status_code(status: int, code: int = 0) -> dict:
    """ Find the status code that describes the given status

        Tries in turn: the exact (status, code); (status, 0); the status group (X00, 0).
        When nothing is found, an 'unknown-error' is made up.

        :raises ConfigurationError: no status given
    """
    if not status:
        raise ConfigurationError('Missing status')

    for key in ((status, code),
                (status, 0),
                (status // 100 * 100, 0)):
        found = _status_codes.get(key)
        if found is not None:
            return dict(found)

    return dict(status=status, code=0, description='unknown-error')
