"""
Framework classes for serving declared actions as a RESTful web API via WSGI

The framework builds on a resource-based model for handling requests: a
:py:class:`~hyperaction.web.rest.base.Handler` handles a request for a single resource (given by a
path), and a :py:class:`~hyperaction.web.rest.base.ServiceApp` creates the handler appropriate for
each requested path.  The :py:class:`~hyperaction.web.rest.actions.ActionServiceApp` is the
ServiceApp that serves registered :py:class:`~hyperaction.action.semantics.ActionSemantics`:

  *  requests are routed to actions by resource path (``p/{name}``, ``p/{name}/{id}``,
     ``p/{name}/{id}/{nested}``) and HTTP method
  *  each action's parameters are supplied by a
     :py:class:`~hyperaction.web.rest.actions.ParameterProvider`
  *  results are represented in HAL JSON via a :py:class:`~hyperaction.message.HALMessageMapper`
  *  exceptions are turned into JSON error messages via :py:mod:`hyperaction.error`

A ServiceApp is a compliant WSGI application by itself; wrapping it in a
:py:class:`~hyperaction.web.rest.base.WSGIServiceApp` adds a base URL path and user
authentication.
"""

from .base import *
from .jsonerr import ErrorHandling, HandlerWithJSON
from .actions import ActionRequest, ParameterProvider, ActionServiceApp, ActionHandler
