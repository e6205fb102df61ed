"""
Indodax private API package.

Request signing, HTTP dispatch and the error taxonomy shared by the operations.
"""
from .errors import IndodaxError, TransportError, APIError, MalformedResponseError
from .indodax import IndodaxCredentials, sign, canonical_payload, call_private_api

__all__ = [
    'IndodaxError',
    'TransportError',
    'APIError',
    'MalformedResponseError',
    'IndodaxCredentials',
    'sign',
    'canonical_payload',
    'call_private_api',
]
