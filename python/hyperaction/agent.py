"""
The representation of the user making a request.

Each request handled by the web layer is attributed to an :py:class:`Agent`.  An agent is
identified by a *vehicle*--the service or tool that received the request--and an *actor*--the
authenticated identity, either a person or a functional account, on whose behalf it acts.  Its
:py:attr:`~Agent.agent_class` and :py:attr:`~Agent.groups` are meant for authorization decisions;
an action that needs them declares ``Agent`` among its permission parameter types.
"""
from collections import OrderedDict
from typing import Iterable, Tuple

__all__ = [ "Agent" ]

class Agent(object):
    """
    a description of the user making a request.  An Agent is not changed after it is created.
    """
    USER: str = "user"
    AUTO: str = "auto"  # for functional identities
    UNKN: str = ""
    PUBLIC: str = "public"
    ADMIN: str = "admin"
    INVALID: str = "invalid"
    ANONYMOUS: str = "anonymous"

    def __init__(self, vehicle: str, actortype: str, actorid: str = None, agclass: str = None,
                 agents: Iterable[str] = None, groups: Iterable[str] = None, **kwargs):
        """
        :param str   vehicle:  the name of the service or tool that received the request
        :param str actortype:  one of USER, AUTO, or UNKN
        :param str   actorid:  the identifier for the actor (e.g. a username); None or ANONYMOUS
                               means the actor is not known
        :param str   agclass:  the agent class (default: PUBLIC); INVALID marks an agent whose
                               credentials were rejected
        :param list[str] agents:  the client tools that passed the request along, outermost first
        :param list[str] groups:  the permission groups the actor belongs to
        :param kwargs:  other properties of the actor (e.g. claims from a token); None values
                        are dropped
        """
        if actortype not in (self.USER, self.AUTO, self.UNKN):
            raise ValueError("Agent: actortype not one of "+str((self.USER, self.AUTO, self.UNKN)))
        self._vehicle = vehicle
        self._actor_type = actortype
        self._actor = actorid
        self._agclass = agclass or self.PUBLIC
        self._groups = tuple([self._agclass] + sorted(set(groups or []) - {self._agclass}))
        self._agents = tuple(agents or [])
        self._props = OrderedDict((k, v) for k, v in kwargs.items() if v is not None)

    @property
    def vehicle(self) -> str:
        return self._vehicle

    @property
    def actor(self) -> str:
        return self._actor

    @property
    def actor_type(self) -> str:
        return self._actor_type

    @property
    def agent_class(self) -> str:
        return self._agclass

    @property
    def id(self) -> str:
        """
        the identifier for this agent, of the form *vehicle*/*actor*
        """
        return f"{self._vehicle}/{self._actor}"

    @property
    def groups(self) -> Tuple[str]:
        """
        the groups the actor belongs to, starting with its agent class
        """
        return self._groups

    @property
    def delegated(self) -> Tuple[str]:
        """
        the client tools that passed the request along, as reported by the client.  These are not
        authenticated and should not be used for authorization.
        """
        return self._agents

    def is_in_group(self, group: str) -> bool:
        return group in self._groups

    def is_anonymous(self) -> bool:
        return self._actor in (None, self.ANONYMOUS)

    def is_valid(self) -> bool:
        return self._agclass != self.INVALID

    def get_prop(self, propname: str, defval=None):
        """
        return the value of one of the actor's other properties, or `defval` if it is not set
        """
        return self._props.get(propname, defval)

    def __str__(self):
        return self.id

    def __repr__(self):
        return "Agent(%s)" % self.id
