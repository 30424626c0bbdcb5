"""
Declarations of how the model objects of a resource are represented
"""
from collections import OrderedDict
from typing import Any, Callable

__all__ = [ "Representor", "LinkedModel" ]

class LinkedModel(object):
    """
    the declaration of a reference from one model to an item of another resource
    """
    __slots__ = ('key', 'resource_name', 'identifier', 'embed')

    def __init__(self, key: str, resource_name: str, identifier: Callable, embed: Callable=None):
        self.key = key
        self.resource_name = resource_name
        self.identifier = identifier
        self.embed = embed

class Representor(object):
    """
    a declaration of the parts of a resource's model objects that appear in their representations.
    The declaring methods return the Representor so that they can be chained::

        Representor("person", lambda p: p.id, Person) \\
            .field("name", lambda p: p.name) \\
            .link("homepage", "https://example.com/") \\
            .binary("avatar") \\
            .linked_model("employer", "organization", lambda p: p.org_id) \\
            .related_collection("books", "books")
    """

    def __init__(self, resource_name: str, identifier: Callable[[Any], Any], model_class: type=None):
        """
        :param str resource_name:  the name of the item resource whose models are represented
        :param identifier:         a function that returns a model's identifier
        :param type model_class:   the type of the model objects; if given, message mappers can
                                   find this representor from a model object alone
        """
        self.resource_name = resource_name
        self.model_class = model_class
        self._identifier = identifier
        self._fields = OrderedDict()
        self._links = OrderedDict()
        self._binaries = []
        self._linked = OrderedDict()
        self._related = OrderedDict()

    def identifier(self, model):
        return self._identifier(model)

    def field(self, name: str, func: Callable[[Any], Any]):
        """
        declare a data field whose value is extracted from a model with the given function
        """
        self._fields[name] = func
        return self

    def link(self, key: str, url: str):
        """
        declare a link to an external URL
        """
        self._links[key] = url
        return self

    def binary(self, key: str):
        """
        declare a binary file attached to each model
        """
        if key not in self._binaries:
            self._binaries.append(key)
        return self

    def linked_model(self, key: str, resource_name: str, identifier: Callable[[Any], Any],
                     embed: Callable[[Any], Any]=None):
        """
        declare a reference to an item of another resource.
        :param str      key:  the name of the reference
        :param str resource_name:  the name of the referenced item resource
        :param identifier:    a function that returns the referenced item's identifier from a model
        :param embed:         a function that returns the referenced item itself from a model; if
                              given, the referenced item is embedded in the representation instead
                              of linked to
        """
        self._linked[key] = LinkedModel(key, resource_name, identifier, embed)
        return self

    def related_collection(self, key: str, collection_name: str):
        """
        declare a collection nested under each model
        """
        self._related[key] = collection_name
        return self

    def fields(self):
        return self._fields.items()

    def links(self):
        return self._links.items()

    def binaries(self):
        return tuple(self._binaries)

    def linked_models(self):
        return tuple(self._linked.values())

    def related_collections(self):
        return self._related.items()

    def __repr__(self):
        return "Representor(%s)" % self.resource_name
