"""
The base REST framework classes
"""
import re, json
from abc import ABCMeta, abstractmethod
from functools import reduce
from logging import Logger
from urllib.parse import parse_qs
from typing import Mapping, Callable, List, Union

import jwt

from wsgiref.headers import Headers

from ..utils import order_accepts
from ..formats import Unacceptable, UnsupportedFormat, FormatSupport
from ...exceptions import ConfigurationException, Unauthenticated
from ...agent import Agent
from ... import system_abbrev

__all__ = ["Handler", "ServiceApp", "Unauthenticated", "WSGIApp",
           "AuthenticatedWSGIApp", "WSGIServiceApp", "Agent",
           "authenticate_via_jwt", "make_agent_from_claimset" ]

class Handler(object):
    """
    a default web request handler that also serves as a base class for the handlers specialized
    for particular resource paths.  Key features built into this class include:
      * the ``who`` property that holds the identity of the remote user making the request
      * helper methods for sending responses
      * content negotiation support
    """

    def __init__(self, path: str, wsgienv: dict, start_resp: Callable, who=None,
                 config: dict=None, log: Logger=None, app=None):
        self._path = path
        self._env = wsgienv
        self._start = start_resp
        self._hdr = Headers([])
        self._code = 0
        self._msg = "unknown status"
        self.cfg = config if config is not None else {}
        self.log = log

        self._app = app
        if self._app and hasattr(app, 'include_headers'):
            self._hdr = Headers(list(app.include_headers.items()))
        if not who:
            who = self._default_agent()
        self.who = who

        # the output formats supported by this Handler; set at construction time via
        # _set_default_format_support()
        self._fmtsup = None

        # the name of the query parameter for requesting a named format (e.g. "format")
        self._format_qp = None

        self._meth = self._env.get('REQUEST_METHOD', 'GET')

    @property
    def app(self):
        """
        the ServiceApp instance that created this handler
        """
        return self._app

    @property
    def format_qp(self):
        """
        the name of the query parameter that clients can use to request a named output format, or
        None if such a parameter is not supported.  Subclasses can set this at construction time
        via :py:meth:`_set_format_qp`.
        """
        return self._format_qp

    def _set_format_qp(self, qpname):
        self._format_qp = qpname

    def _default_agent(self):
        name = system_abbrev if not self.app else self.app.name
        return Agent(name, Agent.UNKN, Agent.ANONYMOUS, Agent.PUBLIC)

    def send_error(self, code, message, content=None, contenttype=None, ashead=None, encoding='utf-8'):
        """
        respond to the client with an error of a given code and reason

        :param int code:        the HTTP response code to assign
        :param str message:     the briefly-stated reason to give for the error; this text is sent
                                as the message that accompanies the code in the HTTP response header
        :param content:         content to return as the body
                                :type content: str or bytes or a list of either
        :param str contenttype: the MIME type to associate with the returned content.
        :param bool ashead:     True if this is being sent as if in response to a HEAD request; if
                                so, the size and type of the content will be included in the headers,
                                but the content itself will be withheld.  If not provided, it will be
                                set to True if the requested method is "HEAD".
        :param str encoding:    the encoding for turning str content into bytes (default: 'utf-8')
        """
        return self._send(code, message, content, contenttype, ashead, encoding)

    def send_unauthorized(self, message="Unauthorized", content=None, contenttype=None, ashead=None,
                          encoding='utf-8'):
        return self.send_error(401, message, content, contenttype, ashead, encoding)

    def send_unacceptable(self, message="Not Acceptable", content=None, contenttype=None, ashead=None,
                          encoding='utf-8'):
        return self.send_error(406, message, content, contenttype, ashead, encoding)

    def send_ok(self, content=None, contenttype=None, message="OK", code=200, ashead=None,
                encoding='utf-8'):
        """
        respond to the client with a success response.

        :param content:         content to return as the body; if not provided, the body will be
                                empty.
        :param str contenttype: the MIME type to associate with the returned content.
        :param str message:     the reason to send with the code (default: "OK")
        :param int code:        the HTTP response code to assign; this should be in the range
                                200-299 (default: 200).
        :param bool ashead:     True if this is being sent as if in response to a HEAD request
                                (see :py:meth:`send_error`)
        :param str encoding:    the encoding for turning str content into bytes (default: 'utf-8')
        """
        return self._send(code, message, content, contenttype, ashead, encoding)

    def send_json(self, data, message="OK", code=200, ashead=None, encoding='utf-8',
                  contenttype="application/json"):
        """
        send some data formatted as JSON.
        :param data:     the data to encode in JSON
        """
        return self._send(code, message, json.dumps(data, indent=2), contenttype, ashead, encoding)

    def send_no_content(self, message="No Content"):
        return self._send(204, message, None, None, True, 'utf-8')

    def send_options(self, allowed_methods: List[str]=None, origin: str=None, extra=None,
                     forcors: bool=True):
        """
        send a response to an OPTIONS request, listing the methods allowed on the resource.
        :param List[str] allowed_methods:  the HTTP methods allowed on the requested resource
        :param str                origin:  the origin to allow for CORS requests
        :param dict|list           extra:  extra headers to include in the output given either as
                                           a dictionary or a list of 2-tuples
        :param bool              forcors:  if True, include the CORS preflight headers
        """
        meths = list(allowed_methods or [])
        if 'OPTIONS' not in meths:
            meths.append('OPTIONS')
        self.add_header('Allow', ", ".join(meths))
        if forcors:
            self.add_header('Access-Control-Allow-Methods', ", ".join(meths))
            if origin:
                self.add_header('Access-Control-Allow-Origin', origin)
            self.add_header('Access-Control-Allow-Headers', "Content-Type, Authorization")
        if isinstance(extra, Mapping):
            extra = extra.items()
        for k, v in (extra or []):
            self.add_header(k, v)

        return self.send_ok(message="No Content", code=204)

    def _send(self, code, message, content, contenttype, ashead, encoding):
        if ashead is None:
            ashead = self._meth.upper() == "HEAD"
        self.set_response(code, message)

        if content:
            if not isinstance(content, list):
                content = [ content ]
            if any(not isinstance(c, (str, bytes)) for c in content):
                raise TypeError("send_*: non-str/bytes found in content")
            if not contenttype:
                contenttype = (isinstance(content[0], str) and "text/plain") or "application/octet-stream"
        elif content is None:
            content = []
        content = [(isinstance(c, str) and c.encode(encoding)) or c for c in content]

        if contenttype:
            self.add_header("Content-Type", contenttype)
        if len(content) > 0:
            self.add_header("Content-Length", str(reduce(lambda x, t: x+len(t), content, 0)))

        self.end_headers()
        return (not ashead and content) or []

    def add_header(self, name, value):
        """
        record a name-value pair to be sent as part of the response header.

        :param str name:  the name of the header field
        :param str value: the value to give to the header field
        :raises UnicodeEncodeError:  if name or value includes characters that cannot be sent in an
                                     HTTP header (see PEP 3333)
        """
        e = "ISO-8859-1"
        (name.encode(e), value.encode(e))

        self._hdr.add_header(name, value)

    def set_response(self, code, message):
        """
        record the response code and message to be sent when the response headers are delivered
        """
        self._code = code
        self._msg = message

    def end_headers(self):
        """
        trigger the delivery of the response's header to the web client.  This should be preceded
        by a call to :py:meth:`set_response`; afterward, the handler should return the body
        content (as an iterable).
        """
        status = "{0} {1}".format(str(self._code), self._msg)
        self._start(status, self._hdr.items(), None)

    def handle(self):
        """
        handle the request encapsulated in this Handler.

        This implementation looks for a method of the form, ``do_``METH(), where METH is the HTTP
        method requested (e.g. GET, HEAD, etc.), and calls it with the requested path.  If the
        requested method is HEAD and there is no ``do_HEAD()``, ``do_GET()`` is called with
        ``ashead=True``.
        """
        meth = self._meth
        if self._env.get('HTTP_X_HTTP_METHOD_OVERRIDE'):
            meth = self._env.get('HTTP_X_HTTP_METHOD_OVERRIDE')
        meth_handler = 'do_'+meth

        if not self.preauthorize():
            return self.send_unauthorized()

        try:
            if hasattr(self, meth_handler):
                return getattr(self, meth_handler)(self._path)
            elif meth == "HEAD" and hasattr(self, "do_GET"):
                return self.do_GET(self._path, ashead=True)
            else:
                return self.send_error(405, meth + " not supported on this resource")
        except Exception as ex:
            if self.log:
                self.log.exception("Unexpected failure: "+str(ex))
            return self.send_error(500, "Server failure")

    def preauthorize(self):
        """
        do an initial test to see if the client identity is authorized to access this service.
        This is called prior to the method handling function (e.g. ``do_GET()``) and allows an
        implementation to filter out requests early, based on the client identity (``self.who``)
        and the requested path.  This implementation always returns True.
        """
        return True

    def get_accepts(self):
        """
        return the requested content types as a list ordered by their q-values.  An empty list
        is returned if no types were specified.
        """
        accepts = self._env.get('HTTP_ACCEPT')
        if not accepts:
            return []
        return order_accepts(accepts)

    def get_requested_formats(self):
        """
        return the formats requested via the format query parameter (named by ``self.format_qp``).
        An empty list is returned if the parameter was not set or is not supported.
        """
        format = []
        if self.format_qp and 'QUERY_STRING' in self._env:
            params = parse_qs(self._env['QUERY_STRING'])
            if self.format_qp in params:
                format = params[self.format_qp]
        return format

    def select_format(self, format: str=None, path: str=None, meth: str="GET"):
        """
        determine the best output format for the given context.

        :param str format:   the name of a format that was programmatically asked for, overriding
                             any preferences specified by the client
        :param str   path:   the requested path (passed to :py:meth:`get_format_support`)
        :param str   meth:   the requested HTTP method (passed to :py:meth:`get_format_support`)
        :raises UnsupportedFormat:  if the requested format is not supported
        :raises Unacceptable:  if no supported format is acceptable to the client
        """
        fmtsup = self.get_format_support(path, meth)
        if isinstance(format, str):
            fmt = fmtsup.match(format) if fmtsup else None
            if not fmt:
                raise UnsupportedFormat(f"{format} not a supported format")
            return fmt

        format = None
        if fmtsup:
            format = fmtsup.select_format(self.get_requested_formats(), self.get_accepts())
            if not format:
                format = fmtsup.default_format()

        return format

    def get_format_support(self, path: str, method: str="GET") -> FormatSupport:
        """
        return the FormatSupport instance appropriate for a requested path and HTTP method.  This
        implementation ignores its inputs and returns the instance set with
        :py:meth:`_set_default_format_support` (or None if none was set).
        """
        return self._fmtsup

    def _set_default_format_support(self, fmtsup: FormatSupport):
        self._fmtsup = fmtsup

class ServiceApp(metaclass=ABCMeta):
    """
    a base class WSGI implementation intended to run as a delegate handling a particular path
    within another WSGI application (usually a :py:class:`WSGIServiceApp`).

    This base implementation reads one parameter from the configuration:

    ``include_headers``
        a dictionary (or list of name-value pairs) of headers to include in every response
    """

    def __init__(self, appname: str, log: Logger, config: Mapping=None):
        self.log = log
        if config is None:
            config = {}
        self.cfg = config
        self._name = appname

        self.include_headers = Headers()
        inclhdrs = config.get("include_headers")
        if inclhdrs:
            try:
                if isinstance(inclhdrs, Mapping):
                    self.include_headers = Headers(list(inclhdrs.items()))
                elif isinstance(inclhdrs, list):
                    self.include_headers = Headers([tuple(h) for h in inclhdrs])
                else:
                    raise TypeError("Not a list of 2-tuples")
            except (TypeError, ValueError):
                raise ConfigurationException("include_headers: must be either a dict or a list of "+
                                             "name-value pairs")

    @property
    def name(self):
        """
        a name for the service provided by this ServiceApp instance (set at construction time)
        """
        return self._name

    @abstractmethod
    def create_handler(self, env: dict, start_resp: Callable, path: str, who: Agent) -> Handler:
        """
        return a handler instance to handle a particular request to a path
        :param Mapping env:  the WSGI environment containing the request
        :param Callable start_resp:  the start_resp function to use to initiate the response
        :param str path:     the path to the resource being requested, relative to the path this
                             ServiceApp is configured to handle
        :param Agent who:    the identity of the requesting user
        """
        raise NotImplementedError()

    def handle_path_request(self, env: dict, start_resp: Callable, path: str=None, who: Agent=None):
        """
        respond to a request on a particular (relative) URL path.
        :param str path:     the path to the resource being requested.  If None, the value of
                             env['PATH_INFO'] is used.
        """
        if path is None:
            path = env.get('PATH_INFO', '')
        return self.create_handler(env, start_resp, path, who).handle()

    def __call__(self, env, start_resp):
        return self.handle_path_request(env, start_resp)

class WSGIApp(metaclass=ABCMeta):
    """
    A WSGI application base class for wrapping a ServiceApp.  It provides a common
    authentication check and base endpoint handling.

    This base implementation uses two parameters from the configuration:

    ``base_ep``
        _str_.  The base endpoint URL path for the web app, starting with a forward slash.  All
                 resource path requests must start with this path; otherwise 404 (Not Found) is
                 returned (or 403 if a parent of the base path was requested).
    ``name``
        _str_.  A short name to identify this web app (e.g. in log messages and authentication)
    """

    def __init__(self, config: Mapping, log: Logger, base_ep: str=None, name: str=None):
        """
        :param dict config:  configuration data for the app
        :param Logger  log:  the Logger this app should use to record log messages
        :param str base_ep:  the base endpoint URL path; if not provided, it is set by the
                             ``base_ep`` configuration parameter
        :param str    name:  a name to identify this app; if not provided, it is set by the
                             ``name`` configuration parameter
        """
        self.log = log
        self.cfg = config
        self.name = name
        if not self.name:
            self.name = self.cfg.get("name", "")
        self.base_ep = None
        if not base_ep:
            base_ep = self.cfg.get("base_ep", "")
        base_ep = base_ep.strip('/')
        if base_ep:
            self.base_ep = '/%s/' % base_ep

    def authenticate(self, env) -> Union[object, str, None]:
        """
        determine and return the identity of the client.  This implementation returns None,
        reflecting that by default authentication is not supported.

        This method may raise an :py:class:`Unauthenticated` exception; if it does,
        :py:meth:`handle_request` responds to the client with a 401 (Unauthorized) error.

        :param Mapping env:  the WSGI request environment
        :raises Unauthenticated:  if the authentication process fails
        """
        return None

    def handle_request(self, env: Mapping, start_resp: Callable):
        path = re.sub(r'/+', '/', env.get('PATH_INFO', '/'))

        try:
            who = self.authenticate(env)
        except Unauthenticated as ex:
            self.log.debug("Authentication failure: %s", str(ex))
            return Handler(path, env, start_resp).send_error(401, "Authentication Failure")
        except Exception as ex:
            self.log.exception("Unexpected failure while authenticating: %s", str(ex))
            return Handler(path, env, start_resp).send_error(500, "Internal Server Error")

        if self.base_ep:
            if path.startswith(self.base_ep):
                path = path[len(self.base_ep):]

            elif self.base_ep == path+'/':
                path = ''

            elif self.base_ep.startswith(path.rstrip('/')+'/'):
                # client asked for a parent resource of the base_ep
                return Handler(path, env, start_resp).send_error(403, "Forbidden")

            else:
                return Handler(path, env, start_resp).send_error(404, "Not Found")

        return self.handle_path_request(path.strip('/'), env, start_resp, who)

    @abstractmethod
    def handle_path_request(self, path: str, env: Mapping, start_resp: Callable, who=None):
        """
        Dispatch a request on a resource path to a handler.
        :param str path:  the requested path relative to the base endpoint; it will not start
                          with a slash
        :param dict env:  the WSGI environment containing all request information
        :param func start_resp:  the start-response function provided by the WSGI engine.
        :param      who:  the identity of the requesting user
        """
        raise NotImplementedError()

    def __call__(self, env, start_resp):
        return self.handle_request(env, start_resp)

class AuthenticatedWSGIApp(WSGIApp):
    """
    a WSGIApp base class that represents the client identity as an :py:class:`~hyperaction.agent.Agent`.

    This class reads the ``authentication`` configuration parameter, an object whose
    sub-parameters control the authentication process (see :py:meth:`authenticate` and
    :py:meth:`authenticate_user`).
    """

    def authenticate(self, env) -> Agent:
        """
        determine and return the identity of the client.  This checks the client application
        identifier, if configured, and then delegates to :py:meth:`authenticate_user`.

        Clients identify themselves via the ``X-Client-ID`` HTTP header and may list the agents
        they are acting on behalf of (space-separated) via ``X-Client-Agents``.  The
        ``authentication`` configuration can include:

        ``allowed_clients``
            a list of client identifiers allowed to use this service.  If not set, all clients are
            allowed and the ``X-Client-ID`` header is optional.
        ``client_agents``
            a map of client identifiers to the list of agents to attach as the returned Agent's
            ``delegated`` property when the client does not send ``X-Client-Agents``.
        ``raise_on_invalid``
            if True, raise :py:class:`Unauthenticated` when the client or its credentials are
            invalid; otherwise (the default), return an Agent whose ``agent_class`` is "invalid".
        ``raise_on_anonymous``
            if True, raise :py:class:`Unauthenticated` when no user credentials are provided;
            otherwise (the default), return an anonymous Agent.

        :raises Unauthenticated:  if the authentication process fails and the configuration
                                  calls for raising
        """
        authcfg = self.cfg.get('authentication', {})

        client_id = env.get('HTTP_X_CLIENT_ID', '(unknown)')
        agents = env.get('HTTP_X_CLIENT_AGENTS', '').split()
        if not agents:
            agents = authcfg.get('client_agents', {}).get(client_id, [client_id])
        allowed = authcfg.get('allowed_clients')
        if allowed is not None and client_id not in allowed:
            self.log.warning("Client %s is not recognized among %s", client_id, str(allowed))
            if authcfg.get('raise_on_invalid'):
                raise Unauthenticated("Unrecognized Client ID")
            return Agent(client_id, Agent.UNKN, Agent.ANONYMOUS, Agent.INVALID, agents,
                         invalid_reason=f"Unrecognized client ID: {client_id}")

        return self.authenticate_user(env, agents, client_id)

    def authenticate_user(self, env: Mapping, agents: List[str]=None, client_id: str=None) -> Agent:
        """
        determine the authenticated user.

        If the ``authentication`` configuration sets ``type`` to "jwt", the user is authenticated
        via :py:func:`authenticate_via_jwt`; otherwise, an anonymous Agent is returned.
        Subclasses can override this to provide other mechanisms.

        :param dict     env:  the WSGI environment with the request data
        :param [str] agents:  an optional list of agent strings to attach to the output agent
        :param str client_id: the identifier of the client application, if known
        :raises Unauthenticated:  if the authentication process fails and the configuration
                                  calls for raising
        """
        authcfg = self.cfg.get('authentication', {})
        if authcfg.get('type') == 'jwt':
            return authenticate_via_jwt(self.name, env, authcfg, self.log, agents, client_id)
        if authcfg.get('type'):
            raise ConfigurationException("authentication.type: unsupported type: " +
                                         str(authcfg.get('type')))

        if authcfg.get('raise_on_anonymous'):
            raise Unauthenticated("Unauthenticated by default")
        vehicle = self.name or client_id or "(unknown)"
        return Agent(vehicle, Agent.UNKN, Agent.ANONYMOUS, Agent.PUBLIC, agents)


def authenticate_via_jwt(svcname: str, env: Mapping, jwtcfg: Mapping, log: Logger,
                         agents: List[str]=None, client_id: str=None,
                         claim_to_agent_func: Callable=None) -> Agent:
    """
    authenticate the remote user assuming a JWT was provided as an Authorization Bearer token.

    This function looks for the following properties in the provided configuration dictionary:

    ``key``
        (str) _required_.  The secret key shared with the token generator used to sign the token.
    ``algorithm``
        (str) _optional_.  The name of the signing algorithm (default: "HS256").
    ``require_expiration``
        (bool) _optional_.  If True (default), a token that does not include an expiration time
        is rejected.
    ``raise_on_anonymous``, ``raise_on_invalid``
        (bool) _optional_.  See :py:meth:`AuthenticatedWSGIApp.authenticate`.

    :param str   svcname: a name to provide as the agent software vehicle
    :param dict      env: the WSGI environment containing the request data
    :param dict   jwtcfg: the JWT decoding configuration (see above)
    :param Logger    log: the logger for recording messages
    :param [str]  agents: an optional list of agent strings to attach to the output agent
    :param str client_id: the identifier of the client application, if known
    :param function claim_to_agent_func:  a function that takes the service name, the JWT claimset
                          dictionary, the logger, and the agents and returns an Agent.  If not
                          provided, :py:func:`make_agent_from_claimset` is used.
    :returns:  an :py:class:`Agent` instance representing the user
    """
    if not client_id:
        client_id = "(unknown)"
    if not svcname:
        svcname = client_id

    auth = env.get('HTTP_AUTHORIZATION', "x").split()
    if len(auth) < 2 or auth[0] != "Bearer":
        log.warning("Client %s did not provide an authentication token", str(client_id))
        if jwtcfg.get('raise_on_anonymous'):
            raise Unauthenticated("JWT token not provided")
        return Agent(svcname, Agent.UNKN, Agent.ANONYMOUS, Agent.PUBLIC, agents)

    try:
        userinfo = jwt.decode(auth[1], jwtcfg.get("key", ""),
                              algorithms=[jwtcfg.get("algorithm", "HS256")])
    except jwt.InvalidTokenError as ex:
        log.warning("Invalid token can not be decoded: %s", str(ex))
        if jwtcfg.get('raise_on_invalid'):
            raise Unauthenticated("Undecodable JWT token")
        return Agent(svcname, Agent.UNKN, Agent.ANONYMOUS, Agent.INVALID, agents,
                     invalid_reason="Invalid token can not be decoded")

    # expiration itself was checked by jwt.decode()
    if jwtcfg.get('require_expiration', True) and not userinfo.get('exp'):
        log.warning("Rejecting non-expiring token for user %s", userinfo.get('sub', "(unknown)"))
        if jwtcfg.get('raise_on_invalid'):
            raise Unauthenticated("Non-expiring JWT token")
        return Agent(svcname, Agent.UNKN, Agent.ANONYMOUS, Agent.INVALID, agents,
                     invalid_reason="non-expiring token rejected")

    if not claim_to_agent_func:
        claim_to_agent_func = make_agent_from_claimset
    return claim_to_agent_func(svcname, userinfo, log, agents)

def make_agent_from_claimset(svcname: str, userinfo: Mapping, log: Logger, agents=None) -> Agent:
    """
    Create an Agent representing the end user given a JWT claim set.  The ``sub`` claim becomes
    the actor identifier, the optional ``agent_class`` claim the agent class (default: "public"),
    and the optional ``groups`` claim the agent's groups; all other claims are kept as
    properties of the agent.
    :param str   svcname:  a name to provide as the agent software vehicle
    :param dict userinfo:  the JWT claimset data
    :param Logger    log:  a Logger for recording warnings (e.g. if the claimset is missing data)
    :param list[str] agents:  the agents that the user is acting on behalf of
    """
    subj = userinfo.get('sub')
    actortype = Agent.USER
    if not subj:
        log.warning("User token is missing subject identifier; defaulting to anonymous")
        subj = Agent.ANONYMOUS
        actortype = Agent.UNKN

    agclass = userinfo.get('agent_class') or Agent.PUBLIC
    groups = userinfo.get('groups') or []
    if isinstance(groups, str):
        groups = groups.split()

    umd = dict((k, v) for k, v in userinfo.items() if k not in ["sub", "agent_class", "groups"])
    return Agent(svcname, actortype, subj, agclass, agents, groups, **umd)


class WSGIServiceApp(AuthenticatedWSGIApp):
    """
    a WSGI application that authenticates each request and passes it to a single
    :py:class:`ServiceApp`
    """

    def __init__(self, svcapp: ServiceApp, log: Logger, base_ep: str=None, config: Mapping=None):
        """
        wrap a single ServiceApp
        :param ServiceApp svcapp:  the app that handles all requests under the base endpoint
        :param Logger        log:  the Logger for this app
        :param str       base_ep:  the base endpoint URL path (overrides the configuration)
        :param dict       config:  the configuration for the app
        """
        if config is None:
            config = {}
        super(WSGIServiceApp, self).__init__(config, log, base_ep, svcapp.name)
        self.svcapp = svcapp

    def handle_path_request(self, path: str, env: Mapping, start_resp: Callable, who=None):
        return self.svcapp.handle_path_request(env, start_resp, path, who)
