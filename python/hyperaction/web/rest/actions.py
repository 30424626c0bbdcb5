"""
The web service app that serves registered actions.

An :py:class:`ActionServiceApp` holds a registry of
:py:class:`~hyperaction.action.semantics.ActionSemantics`, each compiled (via
:py:meth:`~hyperaction.action.semantics.ActionSemantics.to_action`) against the app's
:py:class:`ParameterProvider`.  Requests are routed to actions by resource path and HTTP method:

``p/{name}``
    the actions on the :py:class:`~hyperaction.resource.Paged` collection, ``name``
``p/{name}/{id}``
    the actions on the :py:class:`~hyperaction.resource.Item`, ``name``, with the item's identifier
    available to the action via the :py:class:`~hyperaction.action.annotations.Id` parameter
``p/{name}/{id}/{sub}``
    the actions on the :py:class:`~hyperaction.resource.Nested` collection, ``sub``, under items
    of ``name`` (the item's identifier is available via the
    :py:class:`~hyperaction.action.annotations.ParentId` parameter), or, if there are none, the
    item action named ``sub``.

When a path addresses a resource rather than a named action, only the action with the standard name
for the method (see :py:data:`STANDARD_ACTION_NAMES`) handles it; custom actions on items are reached
only through their own ``p/{name}/{id}/{action}`` path.  A GET on the root of the service
returns links to the collections whose actions are annotated as
:py:class:`~hyperaction.action.annotations.EntryPoint`\\ s.
"""
import json
from collections import OrderedDict
from collections.abc import Mapping
from logging import Logger
from urllib.parse import parse_qs
from typing import Callable, Iterable, List

from ...action import ActionSemantics, Action, Void, Id, ParentId, EntryPoint
from ...resource import Resource, Paged, Item, Nested, ResourceId
from ...form import Body
from ...pagination import Pagination, DEF_ITEMS_PER_PAGE
from ...agent import Agent
from ...exceptions import ConfigurationException, ParameterNotProvided, BadRequest
from ... import error
from ...message import HALMessageMapper
from ..formats import HALSupport, Unacceptable, UnsupportedFormat
from .base import ServiceApp
from .jsonerr import HandlerWithJSON

__all__ = [ "ActionRequest", "ParameterProvider", "Route", "ActionServiceApp", "ActionHandler",
            "STANDARD_ACTION_NAMES" ]

STANDARD_ACTION_NAMES = {
    "GET":    "retrieve",
    "POST":   "create",
    "PUT":    "replace",
    "PATCH":  "update",
    "DELETE": "remove"
}

_body_methods = ("POST", "PUT", "PATCH")

class ActionRequest(object):
    """
    the facts about a web request that actions can draw their parameters from
    """

    def __init__(self, method: str, path: str, resource: Resource=None, id: ResourceId=None,
                 parent_id: ResourceId=None, query: Mapping=None, body: Body=None,
                 agent: Agent=None, env: Mapping=None):
        """
        :param str      method:  the HTTP method requested
        :param str        path:  the requested path (relative to the service's base)
        :param Resource resource:  the resource addressed by the path
        :param ResourceId   id:  the identity of the item addressed by the path, if any
        :param ResourceId parent_id:  the identity of the item owning the nested collection
                                 addressed by the path, if any
        :param dict      query:  the query parameters, each mapped to a list of values
        :param Body       body:  the parsed request body
        :param Agent     agent:  the user making the request
        :param dict        env:  the WSGI environment
        """
        self.method = method
        self.path = path
        self.resource = resource
        self.id = id
        self.parent_id = parent_id
        self.query = query if query is not None else {}
        self.body = body if body is not None else Body()
        self.agent = agent
        self.env = env if env is not None else {}

    def query_value(self, name: str, defval=None):
        """
        return the (first) value of a query parameter or `defval` if it was not given
        """
        vals = self.query.get(name)
        return vals[0] if vals else defval

    def __repr__(self):
        return "ActionRequest(%s %s)" % (self.method, self.path)

class ParameterProvider(object):
    """
    the default parameter provider for actions served by an :py:class:`ActionServiceApp`.

    Calling an instance with an ActionSemantics and an :py:class:`ActionRequest` returns a function
    that resolves a declared parameter type into a value:

    * :py:class:`~hyperaction.action.semantics.Void` resolves to None
    * types registered via :py:meth:`register` resolve to the value returned by the registered
      function when called with the request
    * :py:class:`~hyperaction.action.annotations.Id` resolves to the identity of the item in the
      request path
    * :py:class:`~hyperaction.action.annotations.ParentId` resolves to the identity of the item
      owning the nested collection in the request path
    * :py:class:`~hyperaction.form.Body` resolves to the action's transformation of the request
      body (see :py:meth:`~hyperaction.action.semantics.FinalStep.form`)
    * :py:class:`~hyperaction.agent.Agent` resolves to the requesting user
    * :py:class:`ActionRequest` resolves to the request itself
    * :py:class:`~hyperaction.pagination.Pagination` resolves to the page requested via the
      ``page`` and ``per_page`` query parameters

    Any other type raises :py:class:`~hyperaction.exceptions.ParameterNotProvided`.
    """

    def __init__(self, providers: Mapping=None, default_items_per_page: int=DEF_ITEMS_PER_PAGE):
        """
        :param dict providers:  a mapping of parameter types to functions that take an
                                ActionRequest and return the value for the type
        :param int default_items_per_page:  the page size to use when the client does not give one
        """
        self._providers = OrderedDict()
        self.default_items_per_page = default_items_per_page
        for paramtype, func in (providers or {}).items():
            self.register(paramtype, func)

    def register(self, paramtype: type, func: Callable[[ActionRequest], object]):
        """
        register a function that supplies values for a parameter type.  The function is also used
        for subclasses of the type that have no registration of their own.
        """
        if not callable(func):
            raise TypeError("register(): provider function for %s is not callable" %
                            getattr(paramtype, '__name__', str(paramtype)))
        self._providers[paramtype] = func

    def __call__(self, semantics: ActionSemantics, request: ActionRequest) -> Callable[[type], object]:
        def resolve(paramtype):
            return self.resolve(paramtype, semantics, request)
        return resolve

    def _registered(self, paramtype):
        if paramtype in self._providers:
            return self._providers[paramtype]
        if isinstance(paramtype, type):
            for cls in paramtype.__mro__[1:]:
                if cls in self._providers:
                    return self._providers[cls]
        return None

    def resolve(self, paramtype, semantics: ActionSemantics, request: ActionRequest):
        """
        return the value for a parameter type
        :raises ParameterNotProvided:  if no value can be provided for the type
        :raises BadRequest:  if the request holds an unusable value for the parameter
        """
        if isinstance(paramtype, type) and issubclass(paramtype, Void):
            return None

        func = self._registered(paramtype)
        if func:
            return func(request)

        if paramtype is Id:
            if request.id is None:
                raise ParameterNotProvided(paramtype, semantics.action_name,
                                           "No item identifier in request path")
            return request.id
        if paramtype is ParentId:
            if request.parent_id is None:
                raise ParameterNotProvided(paramtype, semantics.action_name,
                                           "No parent item identifier in request path")
            return request.parent_id
        if paramtype is Body:
            return semantics.get_body_value(request.body)
        if paramtype is Agent:
            return request.agent
        if paramtype is ActionRequest:
            return request
        if paramtype is Pagination:
            return self.get_pagination(request)

        raise ParameterNotProvided(paramtype, semantics.action_name)

    def get_pagination(self, request: ActionRequest) -> Pagination:
        """
        return the page requested via the ``page`` and ``per_page`` query parameters
        """
        try:
            page = int(request.query_value("page", 1))
            perpage = int(request.query_value("per_page", self.default_items_per_page))
            return Pagination(page, perpage)
        except ValueError:
            raise BadRequest("page and per_page must be positive integers")

class Route(object):
    """
    the target of a request path: a resource and the identifiers and action name that the path
    carries.  A Route with no resource represents the root of the service.
    """
    __slots__ = ('resource', 'id', 'parent_id', 'action_name')

    def __init__(self, resource: Resource=None, id: ResourceId=None, parent_id: ResourceId=None,
                 action_name: str=None):
        self.resource = resource
        self.id = id
        self.parent_id = parent_id
        self.action_name = action_name

    @property
    def is_root(self) -> bool:
        return self.resource is None

    def __repr__(self):
        return "Route(%r, %r, %r, %s)" % (self.resource, self.id, self.parent_id, self.action_name)

class ActionServiceApp(ServiceApp):
    """
    a ServiceApp that serves registered actions.

    In addition to the parameters used by :py:class:`~hyperaction.web.rest.base.ServiceApp`, this
    class reads the following from its configuration:

    ``baseurl``
        the URL that links in representations are relative to (e.g. "https://example.com/api")
    ``pagination``
        an object whose ``default_items_per_page`` sets the page size used when the client does
        not request one
    """

    def __init__(self, log: Logger, config: Mapping=None, actions: Iterable[ActionSemantics]=None,
                 mapper: HALMessageMapper=None, provider: ParameterProvider=None, name: str=None):
        """
        :param Logger    log:  the Logger to use
        :param dict   config:  the app's configuration
        :param list  actions:  the actions to serve; more can be added via :py:meth:`register`
        :param HALMessageMapper mapper:  the mapper to use to represent action results; if not
                               given, one without representors is created
        :param ParameterProvider provider:  the parameter provider to compile actions against; if
                               not given, a default one is created
        :param str      name:  the name of the service (default: the ``name`` configuration
                               parameter or "actions")
        """
        if config is None:
            config = {}
        if not name:
            name = config.get('name') or "actions"
        super(ActionServiceApp, self).__init__(name, log, config)

        if mapper is None:
            mapper = HALMessageMapper(baseurl=config.get('baseurl', ''))
        self.mapper = mapper
        if provider is None:
            try:
                perpage = int(config.get('pagination', {}).get('default_items_per_page',
                                                               DEF_ITEMS_PER_PAGE))
            except (TypeError, ValueError):
                raise ConfigurationException("pagination.default_items_per_page: must be an integer")
            if perpage < 1:
                raise ConfigurationException("pagination.default_items_per_page: must be positive")
            provider = ParameterProvider(default_items_per_page=perpage)
        self.provider = provider

        # resource -> method -> action name -> Action
        self._registry = OrderedDict()
        for sem in (actions or []):
            self.register(sem)

    def register(self, semantics: ActionSemantics) -> Action:
        """
        compile an action against this app's parameter provider and make it available for
        requests
        :return:  the compiled action
        :raises ConfigurationException:  if an action with the same resource, method, and name is
                                         already registered
        """
        bymeth = self._registry.setdefault(semantics.resource, OrderedDict())
        byname = bymeth.setdefault(semantics.http_method, OrderedDict())
        if semantics.action_name in byname:
            raise ConfigurationException("Action already registered: %s %s on %r" %
                                         (semantics.http_method, semantics.action_name,
                                          semantics.resource))
        action = semantics.to_action(self.provider)
        byname[semantics.action_name] = action
        self.log.debug("Registered %r", semantics)
        return action

    def actions_for(self, resource: Resource) -> List[Action]:
        """
        return the compiled actions registered for a resource
        """
        out = []
        for byname in self._registry.get(resource, {}).values():
            out.extend(byname.values())
        return out

    def find_action(self, route: Route, method: str) -> Action:
        """
        return the action that should handle a request for the given route and HTTP method, or
        None if there is none
        """
        byname = self._registry.get(route.resource, {}).get(method)
        if not byname:
            return None
        return byname.get(route.action_name or STANDARD_ACTION_NAMES.get(method))

    def allowed_methods(self, route: Route) -> List[str]:
        """
        return the HTTP methods for which the given route has actions.  A route without an action
        name counts only the actions with the standard name for each method.  OPTIONS is included
        unless the list is otherwise empty.
        """
        if route.is_root:
            return ["GET", "HEAD", "OPTIONS"]
        out = []
        for meth, byname in self._registry.get(route.resource, {}).items():
            if (route.action_name or STANDARD_ACTION_NAMES.get(meth)) in byname:
                out.append(meth)
        if "GET" in out:
            out.append("HEAD")
        if out:
            out.append("OPTIONS")
        return out

    def entry_points(self) -> List[str]:
        """
        return the names of the collections advertised from the root of the service
        """
        out = []
        for resource, bymeth in self._registry.items():
            if not isinstance(resource, Paged) or resource.name in out:
                continue
            for byname in bymeth.values():
                if any(_is_entry_point(a.semantics) for a in byname.values()):
                    out.append(resource.name)
                    break
        return out

    def resolve_route(self, path: str) -> Route:
        """
        determine the target of a request path, or return None if the path does not address
        anything this app serves
        """
        path = path.strip('/')
        if not path:
            return Route()
        parts = path.split('/')
        if parts[0] != 'p' or len(parts) < 2 or len(parts) > 4 or not all(parts):
            return None

        name = parts[1]
        if len(parts) == 2:
            route = Route(Paged(name))
        elif len(parts) == 3:
            item = Item(name)
            route = Route(item, ResourceId(item, parts[2]))
        else:
            item = Item(name)
            nested = Nested(name, parts[3])
            if nested in self._registry:
                route = Route(nested, parent_id=ResourceId(item, parts[2]))
            else:
                route = Route(item, ResourceId(item, parts[2]), action_name=parts[3])

        if not self.allowed_methods(route):
            return None
        return route

    def create_handler(self, env: dict, start_resp: Callable, path: str, who: Agent) -> "ActionHandler":
        return ActionHandler(self, self.resolve_route(path), path, env, start_resp, who,
                             self.cfg, self.log)

def _is_entry_point(semantics: ActionSemantics) -> bool:
    return any(a is EntryPoint or isinstance(a, EntryPoint) for a in semantics.annotations)

class ActionHandler(HandlerWithJSON):
    """
    the handler that runs the action selected for a request
    """

    def __init__(self, app: ActionServiceApp, route: Route, path: str, wsgienv: dict,
                 start_resp: Callable, who=None, config: dict=None, log: Logger=None):
        super(ActionHandler, self).__init__(path, wsgienv, start_resp, who, config, log, app)
        self._route = route
        self._set_default_format_support(HALSupport())
        self._set_format_qp("format")

    @property
    def route(self) -> Route:
        return self._route

    def do_GET(self, path, ashead=False):
        return self.run_action("GET", ashead)

    def do_HEAD(self, path):
        return self.do_GET(path, True)

    def do_POST(self, path):
        return self.run_action("POST")

    def do_PUT(self, path):
        return self.run_action("PUT")

    def do_PATCH(self, path):
        return self.run_action("PATCH")

    def do_DELETE(self, path):
        return self.run_action("DELETE")

    def do_OPTIONS(self, path):
        if self._route is None:
            return self.send_error_obj(404, "Not Found", "Nothing found at " + path, "not-found")
        return self.send_options(self.app.allowed_methods(self._route))

    def run_action(self, method: str, ashead: bool=False):
        """
        run the action that handles the given method on the requested resource and send its
        result to the client
        """
        if self._route is None:
            return self.send_error_obj(404, "Not Found", "Nothing found at " + self._path,
                                       "not-found", ashead=ashead)

        try:
            fmt = self.select_format()
        except Unacceptable as ex:
            return self.send_error_obj(406, "Not Acceptable", str(ex), "not-acceptable",
                                       ashead=ashead)
        except UnsupportedFormat as ex:
            return self.send_error_obj(400, "Unsupported Format", str(ex), "bad-request",
                                       ashead=ashead)

        if self._route.is_root:
            if method != "GET":
                return self._send_not_allowed(method, ashead)
            return self.send_json(self.app.mapper.map_entry_points(self.app.entry_points()),
                                  ashead=ashead, contenttype=fmt.ctype)

        action = self.app.find_action(self._route, method)
        if action is None:
            return self._send_not_allowed(method, ashead)

        try:
            request = self.make_request(method)
            result = action(request)
            if not action.has_content:
                self.log.debug("%s %s: %s completed", method, self._path,
                               action.semantics.action_name)
                return self.send_no_content()

            data = self.app.mapper.map_result(result, action.semantics)
            if action.semantics.action_name == STANDARD_ACTION_NAMES["POST"]:
                return self.send_json(data, "Created", 201, ashead=ashead, contenttype=fmt.ctype)
            return self.send_json(data, ashead=ashead, contenttype=fmt.ctype)

        except Exception as ex:
            return self.send_exception(ex, ashead)

    def send_exception(self, ex: Exception, ashead: bool=False):
        """
        convert an exception into an error response
        """
        apierr = error.convert(ex)
        if apierr.is_server_error:
            self.log.exception("%s %s: %s", self._meth, self._path, str(ex))
        else:
            self.log.info("%s %s: %d %s: %s", self._meth, self._path, apierr.status,
                          apierr.title, str(ex))
        return self.send_api_error(apierr, ashead)

    def _send_not_allowed(self, method: str, ashead: bool):
        self.add_header("Allow", ", ".join(self.app.allowed_methods(self._route)))
        return self.send_error_obj(405, "Method Not Allowed",
                                   method + " not supported on this resource", "method-not-allowed",
                                   ashead=ashead)

    def make_request(self, method: str) -> ActionRequest:
        """
        gather the facts about the current request into an ActionRequest
        """
        query = parse_qs(self._env.get('QUERY_STRING', ''))
        body = Body()
        if method in _body_methods:
            body = self.read_body()
        return ActionRequest(method, self._path, self._route.resource, self._route.id,
                             self._route.parent_id, query, body, self.who, self._env)

    def read_body(self) -> Body:
        """
        read and parse the JSON request body
        :raises BadRequest:  if the body is not valid JSON
        """
        try:
            length = int(self._env.get('CONTENT_LENGTH') or 0)
        except ValueError:
            raise BadRequest("Invalid Content-Length")
        if length <= 0 or 'wsgi.input' not in self._env:
            return Body()

        content = self._env['wsgi.input'].read(length)
        try:
            return Body(json.loads(content))
        except ValueError as ex:
            raise BadRequest("Request body is not valid JSON: " + str(ex))
