"""
The description of an action and the pipeline that runs it.

An :py:class:`ActionSemantics` captures everything the framework needs to know about one action:
the resource it operates on, its name, its HTTP method, the type of value it returns, the function
that decides whether the requesting user may run it (along with the parameter types that function
needs), the function that runs it (along with the parameter types that function needs), and,
optionally, the form its request body must conform to.

Instances are created with a staged builder that only allows the required information to be
supplied in a fixed order::

    semantics = ActionSemantics.of_resource(Item("person")) \\
                               .name("retrieve") \\
                               .method(HTTPMethod.GET) \\
                               .returns(Person) \\
                               .permission_function(lambda params: params[0] is not None) \\
                               .permission_provided_classes(Agent) \\
                               .execute_function(lambda params: people.get(params[0].as_object())) \\
                               .receives_params(Id) \\
                               .build()

A built instance never changes; the ``with_*`` methods return modified copies.  Its
:py:meth:`~ActionSemantics.to_action` method compiles it into an
:py:class:`~hyperaction.action.actions.Action` given a *parameter provider*, a function supplied
by the hosting framework with the signature ``provide(semantics, request) -> resolve`` where
``resolve(paramtype)`` returns the value to pass for a declared parameter type.
"""
import functools
from enum import Enum
from typing import Any, Callable, Sequence, List

from ..exceptions import Forbidden, BuilderClosed
from ..resource import Resource, ResourceId
from .actions import Action, NoContentAction, OkAction

__all__ = [ "ActionSemantics", "HTTPMethod", "Void", "ProvideFunction",
            "NameStep", "MethodStep", "ReturnStep", "PermissionStep", "ExecuteStep", "FinalStep" ]

ProvideFunction = Callable[[Any, Any], Callable[[type], Any]]

class HTTPMethod(Enum):
    """
    the HTTP methods an action can be bound to
    """
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

class Void(object):
    """
    the return type of actions whose responses carry no representation.  As a declared parameter
    type, it is always resolved to None.
    """
    pass

def _always_permitted(params):
    return True

def _is_void(cls) -> bool:
    return isinstance(cls, type) and issubclass(cls, Void)

class ActionSemantics(object):
    """
    an immutable description of an action.  Instances are created via :py:meth:`of_resource`.
    """
    __slots__ = ('_resource', '_name', '_method', '_return_class', '_annotations',
                 '_param_classes', '_permission_classes', '_permission_func', '_execute_func',
                 '_form', '_body_func')

    def __init__(self, resource: Resource=None):
        self._resource = resource
        self._name = None
        self._method = None
        self._return_class = None
        self._annotations = ()
        self._param_classes = ()
        self._permission_classes = ()
        self._permission_func = None
        self._execute_func = None
        self._form = None
        self._body_func = None

    @staticmethod
    def of_resource(resource: Resource) -> "NameStep":
        """
        start describing a new action that operates on the given resource
        :return:  the builder stage that accepts the action's name
        """
        return NameStep(_Builder(ActionSemantics(resource)))

    @property
    def resource(self) -> Resource:
        return self._resource

    @property
    def action_name(self) -> str:
        return self._name

    @property
    def http_method(self) -> str:
        return self._method

    @property
    def return_class(self) -> type:
        """
        the type of value the action returns; :py:class:`Void` means the action's response has
        no content
        """
        return self._return_class

    @property
    def annotations(self) -> tuple:
        return self._annotations

    @property
    def param_classes(self) -> tuple:
        """
        the types of the parameters passed to the execute function, in order
        """
        return self._param_classes

    @property
    def permission_provided_classes(self) -> tuple:
        """
        the types of the parameters passed to the permission function, in order
        """
        return self._permission_classes

    @property
    def form(self):
        """
        the :py:class:`~hyperaction.form.Form` the request body must conform to or None if the
        action does not read the body
        """
        return self._form

    def get_body_value(self, body):
        """
        transform the request body into the value the action expects via the function given
        alongside the form.  None is returned if the action does not read the body.
        """
        if self._body_func is None:
            return None
        return self._body_func(body)

    def check_permissions(self, params: Sequence) -> bool:
        """
        run the permission function on the given (already resolved) parameters
        """
        return self._permission_func(params)

    def execute(self, params: Sequence):
        """
        run the execute function on the given (already resolved) parameters
        """
        return self._execute_func(params)

    def get_params(self, resolve: Callable[[type], Any]) -> List:
        """
        resolve each of the execute function's parameter types, in declared order
        """
        return [resolve(cls) for cls in self._param_classes]

    def get_permission_params(self, resolve: Callable[[type], Any]) -> List:
        """
        resolve each of the permission function's parameter types, in declared order.  Resolved
        :py:class:`~hyperaction.resource.ResourceId` values are replaced by their identifier values.
        """
        out = []
        for cls in self._permission_classes:
            param = resolve(cls)
            if isinstance(param, ResourceId):
                param = param.as_object()
            out.append(param)
        return out

    def to_action(self, provide: ProvideFunction) -> Action:
        """
        compile this description into a callable that runs the action for a request.

        Calling the result with a request resolves the permission parameters, checks the
        permissions (raising :py:class:`~hyperaction.exceptions.Forbidden` if they are not
        granted), resolves the execute parameters with a fresh call to ``provide``, and runs the
        execute function.  Any exception raised by ``provide``, the resolver, the permission
        function, or the execute function propagates unchanged.

        :param provide:  the parameter provider: a function that takes this ActionSemantics and
                         the request and returns a function that resolves a parameter type
                         into a value
        :return:  a :py:class:`~hyperaction.action.actions.NoContentAction` if the return class
                  is :py:class:`Void`; otherwise, an :py:class:`~hyperaction.action.actions.OkAction`
        """
        def pipeline(request):
            params = self.get_permission_params(provide(self, request))
            if not self.check_permissions(params):
                raise Forbidden(self._name)

            # resolved afresh; the provider may give different values the second time
            params = self.get_params(provide(self, request))
            return self.execute(params)

        if _is_void(self._return_class):
            return NoContentAction(pipeline, self)
        return OkAction(pipeline, self)

    def _copy(self, **changes) -> "ActionSemantics":
        out = ActionSemantics.__new__(ActionSemantics)
        for attr in self.__slots__:
            setattr(out, attr, changes.get(attr, getattr(self, attr)))
        return out

    def with_annotations(self, annotations: Sequence) -> "ActionSemantics":
        """
        return a copy of this description with the given annotations.  If the very same sequence
        object currently held is given, this instance is returned.
        """
        if annotations is self._annotations:
            return self
        return self._copy(_annotations=tuple(annotations))

    def with_method(self, method) -> "ActionSemantics":
        """
        return a copy of this description with a new HTTP method, or this instance if the method
        is unchanged
        """
        if isinstance(method, HTTPMethod):
            method = method.name
        if self._method == method:
            return self
        return self._copy(_method=method)

    def with_name(self, name: str) -> "ActionSemantics":
        """
        return a copy of this description with a new name, or this instance if the name is
        unchanged
        """
        if self._name == name:
            return self
        return self._copy(_name=name)

    def with_resource(self, resource: Resource) -> "ActionSemantics":
        """
        return a copy of this description with a new resource.  A copy is always made.
        """
        return self._copy(_resource=resource)

    def with_return_class(self, return_class: type) -> "ActionSemantics":
        """
        return a copy of this description with a new return class, or this instance if the class
        is unchanged
        """
        if self._return_class == return_class:
            return self
        return self._copy(_return_class=return_class)

    def __repr__(self):
        return "ActionSemantics(%s %s on %r)" % (self._method, self._name, self._resource)


# builder stages

_NAME, _METHOD, _RETURN, _PERMISSION, _EXECUTE, _FINAL, _BUILT = range(7)

class _Builder(object):
    """
    holds the ActionSemantics under construction and the stage the construction has reached
    """
    __slots__ = ('sem', 'stage')

    def __init__(self, sem: ActionSemantics):
        self.sem = sem
        self.stage = _NAME

    def expect(self, stage: int, op: str):
        if self.stage == _BUILT:
            raise BuilderClosed("%s(): ActionSemantics already built" % op)
        if self.stage != stage:
            raise BuilderClosed("%s(): builder has moved past this stage" % op)

class _Step(object):
    __slots__ = ('_builder',)

    def __init__(self, builder: _Builder):
        self._builder = builder

    def _set(self, stage: int, op: str, attr: str, value, nextstage: int):
        self._builder.expect(stage, op)
        setattr(self._builder.sem, attr, value)
        self._builder.stage = nextstage

class NameStep(_Step):
    """
    the first builder stage: accepts the action's name
    """
    __slots__ = ()

    def name(self, name: str) -> "MethodStep":
        if not name or not isinstance(name, str):
            raise ValueError("name(): action name must be a non-empty str")
        self._set(_NAME, "name", "_name", name, _METHOD)
        return MethodStep(self._builder)

class MethodStep(_Step):
    """
    the builder stage that accepts the action's HTTP method
    """
    __slots__ = ()

    def method(self, method) -> "ReturnStep":
        """
        :param method:  the HTTP method, either as an :py:class:`HTTPMethod` or as its name
        """
        if isinstance(method, HTTPMethod):
            method = method.name
        if not method or not isinstance(method, str):
            raise ValueError("method(): HTTP method must be an HTTPMethod or a non-empty str")
        self._set(_METHOD, "method", "_method", method, _RETURN)
        return ReturnStep(self._builder)

class ReturnStep(_Step):
    """
    the builder stage that accepts the type of value returned by the action
    """
    __slots__ = ()

    def returns(self, return_class: type) -> "PermissionStep":
        if not isinstance(return_class, type):
            raise TypeError("returns(): return class must be a type")
        self._set(_RETURN, "returns", "_return_class", return_class, _PERMISSION)
        return PermissionStep(self._builder)

class PermissionStep(_Step):
    """
    the builder stage that accepts the function that decides if the action may be run
    """
    __slots__ = ()

    def permission_function(self, predicate: Callable[[List], bool]=None) -> "ExecuteStep":
        """
        :param predicate:  a function that takes the list of resolved permission parameters (see
                           :py:meth:`ExecuteStep.permission_provided_classes`) and returns True
                           if the action may be run.  If not given, the action is always permitted.
        """
        if predicate is None:
            predicate = _always_permitted
        elif not callable(predicate):
            raise TypeError("permission_function(): predicate must be callable")
        self._set(_PERMISSION, "permission_function", "_permission_func", predicate, _EXECUTE)
        return ExecuteStep(self._builder)

class ExecuteStep(_Step):
    """
    the builder stage that accepts the action's execute function and the parameter types needed
    by the permission function
    """
    __slots__ = ()

    def permission_provided_classes(self, *classes) -> "ExecuteStep":
        """
        set the types of the parameters to pass to the permission function, replacing any set
        previously
        """
        self._set(_EXECUTE, "permission_provided_classes", "_permission_classes", tuple(classes),
                  _EXECUTE)
        return self

    def execute_function(self, func: Callable[[List], Any]) -> "FinalStep":
        """
        :param func:  a function that takes the list of resolved parameters, in the order given
                      to :py:meth:`FinalStep.receives_params`, and returns the action's result
        """
        if not callable(func):
            raise TypeError("execute_function(): func must be callable")
        self._set(_EXECUTE, "execute_function", "_execute_func", func, _FINAL)
        return FinalStep(self._builder)

class FinalStep(_Step):
    """
    the last builder stage: accepts optional information, in any order, and builds the
    ActionSemantics
    """
    __slots__ = ()

    def receives_params(self, *classes) -> "FinalStep":
        """
        set the types of the parameters to pass to the execute function, replacing any set
        previously.  :py:class:`Void` parameters are resolved as None.  Parameter markers like
        :py:class:`~hyperaction.action.annotations.Id` can be given in place of a type.
        """
        self._set(_FINAL, "receives_params", "_param_classes", tuple(classes), _FINAL)
        return self

    def annotated_with(self, annotation) -> "FinalStep":
        """
        add an annotation to those already attached to the action
        """
        self._builder.expect(_FINAL, "annotated_with")
        sem = self._builder.sem
        sem._annotations = sem._annotations + (annotation,)
        return self

    def annotated_with_all(self, *annotations) -> "FinalStep":
        """
        set the annotations attached to the action, replacing any attached previously
        """
        self._set(_FINAL, "annotated_with_all", "_annotations", tuple(annotations), _FINAL)
        return self

    def form(self, form, transform: Callable[[Any, Any], Any]) -> "FinalStep":
        """
        set the form the request body must conform to and the function that turns the body into
        the value the action receives for its :py:class:`~hyperaction.form.Body` parameter.
        Do not call this if the action does not read the body.
        :param Form    form:  the form
        :param transform:  a function that takes the form and the request
                           :py:class:`~hyperaction.form.Body`
        """
        self._builder.expect(_FINAL, "form")
        sem = self._builder.sem
        sem._form = form
        if form is not None:
            sem._body_func = functools.partial(transform, form)
        return self

    def build(self) -> ActionSemantics:
        """
        finish the description.  The builder can not be used afterward.
        """
        self._builder.expect(_FINAL, "build")
        self._builder.stage = _BUILT
        return self._builder.sem
