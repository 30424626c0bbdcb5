"""
A message mapper producing HAL (Hypertext Application Language) JSON representations.

An item is represented as a JSON object holding its data fields, a ``_links`` object, and, if
it embeds other items, an ``_embedded`` object::

    {
      "name": "Tom",
      "_links": {
        "self":     { "href": "http://localhost/p/person/1" },
        "avatar":   { "href": "http://localhost/b/person/1/avatar" },
        "employer": { "href": "http://localhost/p/organization/10" },
        "books":    { "href": "http://localhost/p/person/1/books" }
      }
    }

A page of a collection holds its items under ``_embedded`` along with the ``count`` of items on
the page, the ``total`` number of items, and navigation links.  Items are addressed under
``{baseurl}/p/`` and binary files under ``{baseurl}/b/``.
"""
from collections import OrderedDict
from collections.abc import Mapping
from typing import Iterable, Union
from urllib.parse import quote

from ..pagination import Page
from ..resource import Nested
from .representor import Representor

__all__ = [ "HALMessageMapper", "HAL_CONTENT_TYPE" ]

HAL_CONTENT_TYPE = "application/hal+json"

def _seg(id) -> str:
    # identifiers become single path segments
    return quote(str(id), safe='')

def _link(href: str) -> Mapping:
    return OrderedDict([("href", href)])

class HALMessageMapper(object):
    """
    a mapper that converts action results into HAL representations
    """
    media_type = HAL_CONTENT_TYPE

    def __init__(self, representors: Union[Mapping, Iterable[Representor]]=None, baseurl: str=""):
        """
        :param representors:  the Representors for the resources served, either as a list or as a
                              mapping of resource names to Representors
        :param str  baseurl:  the URL that the item and binary paths are relative to
        """
        self.baseurl = (baseurl or "").rstrip('/')
        self._byname = OrderedDict()
        self._byclass = OrderedDict()
        if isinstance(representors, Mapping):
            representors = representors.values()
        for rep in (representors or []):
            self.register(rep)

    def register(self, representor: Representor):
        """
        make the mapper aware of a Representor
        """
        self._byname[representor.resource_name] = representor
        if representor.model_class is not None:
            self._byclass[representor.model_class] = representor

    def representor_for(self, model=None, resource_name: str=None) -> Representor:
        """
        return the Representor for a model object, looking first by the model's type and then by
        resource name, or None if none is registered
        """
        if model is not None:
            for cls in type(model).__mro__:
                if cls in self._byclass:
                    return self._byclass[cls]
        if resource_name:
            return self._byname.get(resource_name)
        return None

    def item_url(self, resource_name: str, id) -> str:
        return "%s/p/%s/%s" % (self.baseurl, resource_name, _seg(id))

    def binary_url(self, resource_name: str, id, key: str) -> str:
        return "%s/b/%s/%s/%s" % (self.baseurl, resource_name, _seg(id), key)

    def collection_url(self, resource_name: str, parent_name: str=None, parent_id=None) -> str:
        if parent_name:
            return "%s/p/%s/%s/%s" % (self.baseurl, parent_name, _seg(parent_id),
                                     resource_name)
        return "%s/p/%s" % (self.baseurl, resource_name)

    def map_item(self, model, representor: Representor) -> Mapping:
        """
        represent a single model object
        """
        id = representor.identifier(model)
        name = representor.resource_name
        out = OrderedDict()
        for field, func in representor.fields():
            val = func(model)
            if val is not None:
                out[field] = val

        links = OrderedDict([("self", _link(self.item_url(name, id)))])
        embedded = OrderedDict()
        for key, url in representor.links():
            links[key] = _link(url)
        for key in representor.binaries():
            links[key] = _link(self.binary_url(name, id, key))
        for linked in representor.linked_models():
            if linked.embed:
                target = linked.embed(model)
                rep = self.representor_for(target, linked.resource_name)
                if target is not None and rep:
                    embedded[linked.key] = self.map_item(target, rep)
                    continue
            targetid = linked.identifier(model)
            if targetid is not None:
                links[linked.key] = _link(self.item_url(linked.resource_name, targetid))
        for key, collection in representor.related_collections():
            links[key] = _link(self.collection_url(collection, name, id))

        if embedded:
            out["_embedded"] = embedded
        out["_links"] = links
        return out

    def map_page(self, page: Page) -> Mapping:
        """
        represent a page of a collection
        """
        resource = page.resource
        parent = resource.parent_name if isinstance(resource, Nested) else None
        url = self.collection_url(resource.name, parent, page.parent_id)

        def page_link(num):
            return _link("%s?page=%d&per_page=%d" % (url, num, page.items_per_page))

        items = []
        for model in page.items:
            rep = self.representor_for(model, resource.name)
            items.append(self.map_item(model, rep) if rep else model)

        links = OrderedDict([
            ("self",  page_link(page.page_number)),
            ("first", page_link(1)),
            ("last",  page_link(page.last_page_number))
        ])
        if page.has_previous():
            links["prev"] = page_link(page.page_number - 1)
        if page.has_next():
            links["next"] = page_link(page.page_number + 1)

        return OrderedDict([
            ("_embedded", OrderedDict([(resource.name, items)])),
            ("total", page.total_count),
            ("count", len(items)),
            ("_links", links)
        ])

    def map_entry_points(self, resource_names: Iterable[str]) -> Mapping:
        """
        represent the root of the API as links to the given collections
        """
        links = OrderedDict([("self", _link(self.baseurl + "/"))])
        for name in resource_names:
            links[name] = _link(self.collection_url(name))
        return OrderedDict([("_links", links)])

    def map_result(self, result, semantics=None):
        """
        represent the result of an action.  Pages and models with a registered Representor are
        converted to HAL; anything else is returned unchanged.
        :param result:  the value returned by the action
        :param ActionSemantics semantics:  the action that produced the result; its resource name
                        is used to find a Representor if none is registered for the result's type
        """
        if isinstance(result, Page):
            return self.map_page(result)
        if result is None or isinstance(result, (str, int, float, bool, list, tuple, Mapping)):
            return result
        name = semantics.resource.name if semantics is not None and semantics.resource else None
        rep = self.representor_for(result, name)
        if rep is None:
            return result
        return self.map_item(result, rep)
