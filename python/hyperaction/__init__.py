"""
hyperaction: a framework for building hypermedia-driven REST APIs out of declared actions.

An API is described as a set of *actions*, each one an HTTP-method-bound operation on a resource
(a collection, an item, or a collection nested under an item).  This package is organized into the
following modules and subpackages:

``action``
    the :py:class:`~hyperaction.action.semantics.ActionSemantics` descriptor, the staged builder
    used to create one, and the compiled :py:class:`~hyperaction.action.actions.Action` callables
    that enforce the permission-then-execute request pipeline.
``resource``
    the identities of the resources that actions operate on
``form``
    declarations of the request bodies that actions accept
``pagination``
    page requests and pages of results
``agent``
    the representation of the user making a request
``message``
    mappers that turn action results into hypermedia (HAL) representations
``error``
    converters that turn exceptions into API error descriptions
``web``
    a WSGI layer for serving registered actions
``config``
    configuration loading and logging set-up
``exceptions``
    the exceptions raised across the framework
"""
from .exceptions import *

try:
    from .version import __version__
except ImportError:
    __version__ = "(unset)"

system_name = "Hypermedia Actions"
system_abbrev = "hyperaction"
