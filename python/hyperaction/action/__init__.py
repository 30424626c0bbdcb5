"""
Declared actions: their descriptions, their builders, and their compiled callables.

``semantics``
    :py:class:`~hyperaction.action.semantics.ActionSemantics`, its staged builder, and the
    :py:class:`~hyperaction.action.semantics.Void` and
    :py:class:`~hyperaction.action.semantics.HTTPMethod` types
``actions``
    the compiled :py:class:`~hyperaction.action.actions.Action` shapes
``annotations``
    markers for actions and their parameters
"""
from .actions import Action, NoContentAction, OkAction
from .semantics import (ActionSemantics, HTTPMethod, Void, ProvideFunction,
                        NameStep, MethodStep, ReturnStep, PermissionStep, ExecuteStep, FinalStep)
from .annotations import Id, ParentId, Annotation, EntryPoint, Description
