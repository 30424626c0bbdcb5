"""
Page requests and pages of results returned by collection actions
"""
import math
from typing import Sequence

from .resource import Resource

__all__ = [ "Pagination", "Page", "DEF_ITEMS_PER_PAGE" ]

DEF_ITEMS_PER_PAGE = 30

class Pagination(object):
    """
    a client's request for a particular page of a collection
    """
    __slots__ = ('_page', '_perpage')

    def __init__(self, page: int=1, items_per_page: int=DEF_ITEMS_PER_PAGE):
        if page < 1:
            raise ValueError("Pagination: page must be a positive integer")
        if items_per_page < 1:
            raise ValueError("Pagination: items_per_page must be a positive integer")
        self._page = page
        self._perpage = items_per_page

    @property
    def page_number(self) -> int:
        return self._page

    @property
    def items_per_page(self) -> int:
        return self._perpage

    @property
    def start_position(self) -> int:
        """
        the (zero-based) index of the first item of the requested page
        """
        return (self._page - 1) * self._perpage

    @property
    def end_position(self) -> int:
        """
        the (zero-based) index just past the last item of the requested page
        """
        return self._page * self._perpage

    def __eq__(self, other):
        return isinstance(other, Pagination) and \
               (self._page, self._perpage) == (other._page, other._perpage)

    def __hash__(self):
        return hash((self._page, self._perpage))

    def __repr__(self):
        return "Pagination(page=%d, items_per_page=%d)" % (self._page, self._perpage)

class Page(object):
    """
    one page of items taken from a collection
    """

    def __init__(self, resource: Resource, items: Sequence, pagination: Pagination, total_count: int,
                 parent_id=None):
        """
        :param Resource   resource:  the collection the items were taken from
        :param list          items:  the items on this page
        :param Pagination pagination:  the page request that produced this page
        :param int     total_count:  the number of items in the whole collection
        :param       parent_id:  the identifier of the item owning the collection when it is a
                                 :py:class:`~hyperaction.resource.Nested` one
        """
        self.resource = resource
        self.parent_id = parent_id
        self.items = list(items)
        self.pagination = pagination
        self.total_count = total_count

    @classmethod
    def of(cls, resource: Resource, allitems: Sequence, pagination: Pagination, parent_id=None):
        """
        create the page requested by `pagination` by slicing a complete list of items
        """
        allitems = list(allitems)
        return cls(resource, allitems[pagination.start_position:pagination.end_position],
                   pagination, len(allitems), parent_id)

    @property
    def page_number(self) -> int:
        return self.pagination.page_number

    @property
    def items_per_page(self) -> int:
        return self.pagination.items_per_page

    @property
    def last_page_number(self) -> int:
        return max(1, int(math.ceil(self.total_count / self.items_per_page)))

    def has_next(self) -> bool:
        return self.page_number < self.last_page_number

    def has_previous(self) -> bool:
        return self.page_number > 1

    def __len__(self):
        return len(self.items)
