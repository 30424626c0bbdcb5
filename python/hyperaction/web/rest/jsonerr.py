"""
Support for JSON-formatted error content for HTTP responses.

Clients should use the HTTP status for determining whether a request resulted in an error;
however, the status and reason alone say little about what went wrong.  This module provides a
consistent model for returning error data as a JSON object that can carry a longer explanation
and custom properties.  An error message object contains at least the following properties:

``http:status``
     the HTTP status number (e.g. 400, 503, etc.); this matches the value given in the response
     header.
``http:reason``
     the text briefly describing the error; this matches the value given in the response header.
``api:type``
     a short machine-readable label for the kind of error (e.g. "forbidden")
``api:message``
     a longer message explaining what went wrong.

Error messages are usually created from a :py:class:`~hyperaction.error.APIError`, itself
converted from an exception via :py:func:`hyperaction.error.convert`.
"""
from logging import Logger
from typing import Mapping, Callable

from ...error import APIError
from .base import Handler

__all__ = [ "ErrorHandling", "HandlerWithJSON" ]

class ErrorHandling:
    """
    a Handler mixin class that provides methods for returning error message objects to web clients
    """

    def send_error_obj(self, code: int, reason: str, explain: str=None, type: str="error",
                       extra: Mapping=None, ashead=None, contenttype="application/json"):
        """
        send a JSON-formatted error message back to the web client
        :param int    code:  the HTTP code to respond with
        :param str  reason:  the reason to return as the HTTP status message
        :param str explain:  a more extensive explanation for the error; this is returned only in
                             the body of the message
        :param str    type:  a machine-readable label for the kind of error
        :param dict  extra:  additional properties to include in the output message object.
        """
        return self.send_api_error(APIError(code, reason, type, explain, extra=extra), ashead,
                                   contenttype)

    def send_api_error(self, err: APIError, ashead=None, contenttype="application/json"):
        """
        report an APIError as a JSON-formatted error message back to the web client
        :param APIError  err:  the description of the error
        :param bool   ashead:  True if the HTTP request was a HEAD request
        :param str contenttype:  the content type to give the message (default: "application/json")
        """
        return self.send_error(err.status, err.title, err.to_json(indent=2), contenttype, ashead)

class HandlerWithJSON(Handler, ErrorHandling):
    """
    a Handler that provides extra methods for returning error responses formatted in JSON
    """

    def __init__(self, path: str, wsgienv: dict, start_resp: Callable, who=None,
                 config: dict=None, log: Logger=None, app=None):
        Handler.__init__(self, path, wsgienv, start_resp, who, config, log, app)
