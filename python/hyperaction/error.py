"""
Conversion of exceptions into API error descriptions.

When an action fails, the hosting layer asks :py:func:`convert` for the :py:class:`APIError` that
describes the failure to the client.  The conversion is done by the :py:class:`ExceptionConverter`
registered for the closest class in the exception's class hierarchy; exceptions without one are
described as a general server error (500).  Applications can add converters for their own
exceptions with :py:func:`register_converter`.
"""
import json
from collections import OrderedDict
from typing import Mapping

from .exceptions import (Forbidden, NotFound, BadRequest, InvalidBody, ParameterNotProvided,
                         Unauthenticated)

__all__ = [ "APIError", "ExceptionConverter", "ForbiddenConverter", "NotFoundConverter",
            "BadRequestConverter", "InvalidBodyConverter", "UnauthenticatedConverter",
            "ParameterNotProvidedConverter", "register_converter", "convert" ]

class APIError(object):
    """
    a description of a failure that can be reported to a client
    """

    def __init__(self, status: int, title: str, type: str, description: str=None,
                 exception: Exception=None, extra: Mapping=None):
        """
        :param int      status:  the HTTP status code to respond with
        :param str       title:  a brief summary of the failure; this is sent as the HTTP reason
        :param str        type:  a short machine-readable label for the kind of failure
        :param str description:  a longer explanation of what went wrong (optional)
        :param Exception exception:  the exception that was converted (optional)
        :param dict      extra:  additional properties to include in the error message
        """
        self.status = status
        self.title = title
        self.type = type
        self.description = description or title
        self.exception = exception
        self.extra = OrderedDict(extra) if extra else OrderedDict()

    @property
    def is_server_error(self) -> bool:
        return self.status >= 500

    def to_dict(self) -> Mapping:
        out = OrderedDict([
            ("http:status", self.status),
            ("http:reason", self.title),
            ("api:type", self.type),
            ("api:message", self.description)
        ])
        out.update(self.extra)
        return out

    def to_json(self, indent=None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self):
        return "APIError(%d, %s)" % (self.status, self.type)

class ExceptionConverter(object):
    """
    a base class for converting a particular class of exception into an APIError.  Subclasses
    set the ``exception_class``, ``status``, ``title`` and ``type`` class attributes and may
    override :py:meth:`describe` and :py:meth:`extra`.
    """
    exception_class = Exception
    status = 500
    title = "General server error"
    type = "server-error"

    def describe(self, exception: Exception) -> str:
        """
        return the explanation to send to the client.  Server errors are not explained, so that
        internal details are not revealed.
        """
        if self.status >= 500:
            return None
        return str(exception) or None

    def extra(self, exception: Exception) -> Mapping:
        return None

    def convert(self, exception: Exception) -> APIError:
        return APIError(self.status, self.title, self.type, self.describe(exception), exception,
                        self.extra(exception))

class ForbiddenConverter(ExceptionConverter):
    exception_class = Forbidden
    status = 403
    title = "Not permitted to access"
    type = "forbidden"

class NotFoundConverter(ExceptionConverter):
    exception_class = NotFound
    status = 404
    title = "Resource not found"
    type = "not-found"

class BadRequestConverter(ExceptionConverter):
    exception_class = BadRequest
    status = 400
    title = "Bad request"
    type = "bad-request"

class InvalidBodyConverter(BadRequestConverter):
    exception_class = InvalidBody
    title = "Invalid request body"
    type = "invalid-body"

    def extra(self, exception):
        if exception.errors:
            return {"api:errors": list(exception.errors)}
        return None

class UnauthenticatedConverter(ExceptionConverter):
    exception_class = Unauthenticated
    status = 401
    title = "Authentication failure"
    type = "unauthenticated"

class ParameterNotProvidedConverter(ExceptionConverter):
    exception_class = ParameterNotProvided
    title = "Action parameter could not be provided"
    type = "parameter-not-provided"

_converters = OrderedDict()
_default_converter = ExceptionConverter()

def register_converter(converter: ExceptionConverter):
    """
    register a converter for its ``exception_class``, replacing any registered before
    """
    _converters[converter.exception_class] = converter

for _conv in (ForbiddenConverter, NotFoundConverter, BadRequestConverter, InvalidBodyConverter,
              UnauthenticatedConverter, ParameterNotProvidedConverter):
    register_converter(_conv())

def convert(exception: Exception) -> APIError:
    """
    return the APIError describing the given exception
    """
    for cls in type(exception).__mro__:
        if cls in _converters:
            return _converters[cls].convert(exception)
    return _default_converter.convert(exception)
