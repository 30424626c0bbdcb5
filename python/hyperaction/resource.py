"""
Identities of the resources that actions operate on.

A resource is identified by its name and its kind: a :py:class:`Paged` collection available at the
root of the API, an :py:class:`Item` type whose instances are addressed by an identifier, or a
:py:class:`Nested` collection that hangs off an item of a parent type.  A specific instance of an
item is identified by a :py:class:`ResourceId`.
"""

__all__ = [ "Resource", "Paged", "Item", "Nested", "ResourceId" ]

class Resource(object):
    """
    the base identity of a resource.  Resources are compared by value.
    """
    __slots__ = ('_name',)

    def __init__(self, name: str):
        if not name:
            raise ValueError("Resource: name must be a non-empty string")
        self._name = name

    @property
    def name(self) -> str:
        """
        the resource's name, as it appears in URL paths
        """
        return self._name

    def _key(self):
        return (type(self).__name__, self._name)

    def __eq__(self, other):
        return isinstance(other, Resource) and self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, self._name)

class Paged(Resource):
    """
    a collection of items available at the root of the API
    """
    __slots__ = ()

class Item(Resource):
    """
    a type of single entity addressable by an identifier
    """
    __slots__ = ()

class Nested(Resource):
    """
    a collection of items belonging to an item of a parent type
    """
    __slots__ = ('_parent',)

    def __init__(self, parent_name: str, name: str):
        super(Nested, self).__init__(name)
        if not parent_name:
            raise ValueError("Nested: parent_name must be a non-empty string")
        self._parent = parent_name

    @property
    def parent_name(self) -> str:
        """
        the name of the item type that this collection belongs to
        """
        return self._parent

    def _key(self):
        return (type(self).__name__, self._parent, self._name)

    def __repr__(self):
        return "Nested(%s/%s)" % (self._parent, self._name)

class ResourceId(object):
    """
    the identity of a specific item: a resource plus the item's identifier.  Action pipelines
    unwrap instances of this class (via :py:meth:`as_object`) before passing them to permission
    functions.
    """
    __slots__ = ('_resource', '_id')

    def __init__(self, resource: Resource, id):
        self._resource = resource
        self._id = id

    @property
    def resource(self) -> Resource:
        return self._resource

    @property
    def name(self) -> str:
        """
        the name of the resource the item belongs to
        """
        return self._resource.name

    def as_object(self):
        """
        return the item's identifier value
        """
        return self._id

    def __eq__(self, other):
        return isinstance(other, ResourceId) and \
               (self._resource, self._id) == (other._resource, other._id)

    def __hash__(self):
        return hash((self._resource, self._id))

    def __repr__(self):
        return "ResourceId(%s, %r)" % (self._resource.name, self._id)
