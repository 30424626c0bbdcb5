"""
The compiled forms of an action.

Compiling an :py:class:`~hyperaction.action.semantics.ActionSemantics` (via its
:py:meth:`~hyperaction.action.semantics.ActionSemantics.to_action` method) produces one of two
shapes of callable: a :py:class:`NoContentAction`, whose invocation only signals success or failure,
or an :py:class:`OkAction`, whose invocation returns the result that should be represented in the
response.  The host dispatches on the shape.
"""
from typing import Callable

__all__ = [ "Action", "NoContentAction", "OkAction" ]

class Action(object):
    """
    a callable that runs an action's request pipeline for a given request
    """
    has_content = True

    def __init__(self, pipeline: Callable, semantics):
        """
        :param Callable pipeline:   the function that runs the pipeline; it takes the request as
                                    its only argument
        :param ActionSemantics semantics:  the descriptor this action was compiled from
        """
        self._pipeline = pipeline
        self._semantics = semantics

    @property
    def semantics(self):
        """
        the :py:class:`~hyperaction.action.semantics.ActionSemantics` this action was compiled from
        """
        return self._semantics

    def __call__(self, request):
        return self._pipeline(request)

    def __repr__(self):
        return "%s(%s %s)" % (type(self).__name__, self._semantics.http_method,
                              self._semantics.action_name)

class NoContentAction(Action):
    """
    an action whose response carries no representation.  Calling it returns None once the
    pipeline completes successfully.
    """
    has_content = False

    def __call__(self, request):
        self._pipeline(request)
        return None

class OkAction(Action):
    """
    an action whose response carries a representation of the result that calling it returns
    """
    pass
