"""
Markers that can be attached to actions and to their declared parameters.

Two kinds of markers are defined here.  *Parameter markers* (:py:class:`Id`, :py:class:`ParentId`)
are classes that an action lists among its parameter types in place of a concrete type; they tell
the parameter provider which role the requested value plays (e.g. "the identifier of the item in
the request path").  *Annotations* are instances of :py:class:`Annotation` attached to an action via
:py:meth:`~hyperaction.action.semantics.FinalStep.annotated_with`; the hosting layer consults them
to decide how to present the action.
"""

__all__ = [ "Id", "ParentId", "Annotation", "EntryPoint", "Description" ]

class Id(object):
    """
    parameter marker: resolves to the :py:class:`~hyperaction.resource.ResourceId` of the item
    addressed by the request path
    """
    pass

class ParentId(object):
    """
    parameter marker: resolves to the :py:class:`~hyperaction.resource.ResourceId` of the parent
    item of a nested collection addressed by the request path
    """
    pass

class Annotation(object):
    """
    a piece of metadata attached to an action.  Annotations are compared by type and attribute
    values.
    """

    def __init__(self, **attrs):
        self._attrs = dict(attrs)

    def get(self, name: str, defval=None):
        return self._attrs.get(name, defval)

    def __eq__(self, other):
        return type(self) is type(other) and self._attrs == other._attrs

    def __hash__(self):
        return hash((type(self).__name__, tuple(sorted(self._attrs.items()))))

    def __repr__(self):
        args = ", ".join("%s=%r" % item for item in sorted(self._attrs.items()))
        return "%s(%s)" % (type(self).__name__, args)

class EntryPoint(Annotation):
    """
    marks a collection action that should be advertised from the root of the API
    """
    pass

class Description(Annotation):
    """
    attaches a human-readable description to an action
    """
    def __init__(self, text: str):
        super(Description, self).__init__(text=text)

    @property
    def text(self) -> str:
        return self.get('text')
