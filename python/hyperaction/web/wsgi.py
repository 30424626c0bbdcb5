"""
The WSGI application that serves a set of declared actions.

The application is driven by a configuration dictionary with the following parameters:

``name``
    the name of the service, used as the vehicle of request agents and in log messages
``base_ep``
    the base URL path for the service (default: "/")
``baseurl``
    the URL that links in representations are relative to
``include_headers``
    headers to include in every response (a dictionary)
``authentication``
    the authentication configuration (see
    :py:meth:`~hyperaction.web.rest.base.AuthenticatedWSGIApp.authenticate`); set ``type`` to
    "jwt" to authenticate users via JWT bearer tokens.
``pagination``
    an object whose ``default_items_per_page`` sets the default page size
"""
import logging
from collections.abc import Mapping
from typing import Iterable, Callable

from ..action import ActionSemantics
from ..message import HALMessageMapper, Representor
from ..config import resolve_configuration, configure_log
from ..exceptions import ConfigurationException
from .. import system_abbrev
from .rest.base import WSGIServiceApp
from .rest.actions import ActionServiceApp, ParameterProvider

__all__ = [ "HyperActionApp", "app", "app_from_config" ]

deflog = logging.getLogger(system_abbrev).getChild('wsgi')

DEF_BASE_PATH = "/"

class HyperActionApp(WSGIServiceApp):
    """
    a complete WSGI application serving a set of actions
    """

    def __init__(self, config: Mapping, actions: Iterable[ActionSemantics]=None,
                 representors: Iterable[Representor]=None, providers: Mapping=None,
                 base_ep: str=None, log: logging.Logger=None):
        """
        :param dict config:  the configuration for the app (see the module documentation)
        :param list actions: the actions to serve
        :param list representors:  the representors that describe how models are represented
        :param dict providers:  a map of parameter types to functions that take an
                             :py:class:`~hyperaction.web.rest.actions.ActionRequest` and return
                             the value for the type (see
                             :py:class:`~hyperaction.web.rest.actions.ParameterProvider`)
        :param str base_ep:  the base URL path for the service; if not given, the ``base_ep``
                             configuration parameter is used
        :param Logger  log:  the Logger to use
        """
        if config is None:
            config = {}
        if log is None:
            log = deflog
        if base_ep is None:
            base_ep = config.get('base_ep', DEF_BASE_PATH)

        authcfg = config.get('authentication')
        if authcfg is not None:
            if not isinstance(authcfg, Mapping):
                raise ConfigurationException("Config param, authentication, not a dictionary: "+
                                             str(authcfg))
            if authcfg.get('type') == 'jwt':
                if not authcfg.get('key'):
                    raise ConfigurationException("authentication.key: required for JWT authentication")
                if not authcfg.get('require_expiration', True):
                    log.warning("JWT Authentication: token expiration is not required")
        else:
            log.warning("Authentication is not configured; all users will be anonymous")

        mapper = HALMessageMapper(representors, config.get('baseurl', ''))
        svcapp = ActionServiceApp(log, config, mapper=mapper)
        for paramtype, func in (providers or {}).items():
            svcapp.provider.register(paramtype, func)
        for sem in (actions or []):
            svcapp.register(sem)

        super(HyperActionApp, self).__init__(svcapp, log, base_ep, config)

    @property
    def service(self) -> ActionServiceApp:
        """
        the ServiceApp that holds the registered actions
        """
        return self.svcapp

app = HyperActionApp

def app_from_config(location: str, actions: Iterable[ActionSemantics]=None,
                    representors: Iterable[Representor]=None, providers: Mapping=None,
                    setuplog: bool=True) -> HyperActionApp:
    """
    create the WSGI app from a configuration file.
    :param str location:  the configuration file path or ``file:`` URL
    :param bool setuplog: if True, set up logging as given by the configuration (see
                          :py:func:`~hyperaction.config.configure_log`)
    """
    config = resolve_configuration(location)
    if setuplog:
        configure_log(config=config)
    return HyperActionApp(config, actions, representors, providers)
