"""HTTP primitives: immutable Request, chainable Response, parsed inputs."""

from roost.http.headers import Headers
from roost.http.params import FormData, QueryParams
from roost.http.request import Request
from roost.http.response import Cookie, Redirect, Response

__all__ = [
    "Cookie",
    "FormData",
    "Headers",
    "QueryParams",
    "Redirect",
    "Request",
    "Response",
]
