"""
Declarations of the request bodies that actions accept.

An action that reads the request body declares a :py:class:`Form` along with a transform function
that turns the validated body into the object the action's execute function needs (see
:py:meth:`~hyperaction.action.semantics.FinalStep.form`).  A body arrives at the action as a
:py:class:`Body`.

A form is checked as a JSON Schema (draft 7) built from its field declarations; see
:py:attr:`Form.schema`.
"""
from collections import OrderedDict
from collections.abc import Mapping
from typing import List

import jsonschema

from .exceptions import InvalidBody

__all__ = [ "Field", "Form", "Body" ]

_json_types = { str: "string", int: "integer", float: "number", bool: "boolean",
                list: "array", dict: "object" }

class Field(object):
    """
    the declaration of one field in a form
    """
    __slots__ = ('name', 'type', 'required', '_extra')

    def __init__(self, name: str, type=str, required: bool=False, schema: Mapping=None):
        """
        :param str     name:  the name of the field
        :param type    type:  the Python type of the field's value: one of str, int, float, bool,
                              list, or dict
        :param bool required: True if the field must be present in the body
        :param dict  schema:  additional JSON Schema keywords constraining the value (e.g.
                              ``{"items": {"type": "string"}}`` for a list of strings)
        """
        if type not in _json_types:
            raise ValueError("Field %s: unsupported field type: %s" % (name, str(type)))
        self.name = name
        self.type = type
        self.required = required
        self._extra = dict(schema) if schema else {}

    @property
    def schema(self) -> Mapping:
        """
        the JSON Schema describing the field's value
        """
        out = OrderedDict([("type", _json_types[self.type])])
        out.update(self._extra)
        return out

    def __repr__(self):
        return "Field(%s, %s%s)" % (self.name, self.type.__name__, ", required" if self.required else "")

class Form(object):
    """
    a declaration of the fields expected in a request body
    """

    def __init__(self, name: str, fields: List[Field]=None):
        self.name = name
        self._fields = OrderedDict()
        for f in (fields or []):
            self._fields[f.name] = f

    def field(self, name: str, type=str, required: bool=False, schema: Mapping=None):
        """
        declare a field, returning this form so that declarations can be chained
        """
        self._fields[name] = Field(name, type, required, schema)
        return self

    @property
    def fields(self):
        return tuple(self._fields.values())

    @property
    def schema(self) -> Mapping:
        """
        the JSON Schema that a body must conform to
        """
        out = OrderedDict([
            ("type", "object"),
            ("title", self.name),
            ("properties", OrderedDict((f.name, f.schema) for f in self._fields.values()))
        ])
        required = [f.name for f in self._fields.values() if f.required]
        if required:
            out["required"] = required
        return out

    def get(self, body) -> Mapping:
        """
        validate the given body against this form and return the values of the declared fields.
        Fields that are not declared are dropped; optional fields that are missing or null are
        left out.
        :param Body body:  the request body (a plain mapping is also accepted)
        :raises InvalidBody:  if the body does not conform to the form's schema.  All problems
                              found are listed in the exception.
        """
        data = body.data if isinstance(body, Body) else body
        if not isinstance(data, Mapping):
            raise InvalidBody("request body must be a JSON object", form=self.name)

        # null is the same as not given
        data = OrderedDict((k, v) for k, v in data.items() if v is not None)

        validator = jsonschema.Draft7Validator(self.schema)
        found = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
        errors = [_describe(err) for err in found]
        if errors:
            raise InvalidBody(errors=errors, form=self.name)

        return OrderedDict((name, data[name]) for name in self._fields if name in data)

    def __repr__(self):
        return "Form(%s)" % self.name

def _describe(error: jsonschema.ValidationError) -> str:
    path = ".".join(str(p) for p in error.absolute_path)
    if error.validator == "required" or not path:
        return error.message
    return "%s: %s" % (path, error.message)

class Body(object):
    """
    the parsed body of a request.  This is also the parameter type that an action declares to
    receive the result of its form's transform function.
    """
    __slots__ = ('_data',)

    def __init__(self, data=None):
        self._data = data

    @property
    def data(self):
        """
        the parsed body content (usually a mapping decoded from JSON); None if no body was sent
        """
        return self._data

    def is_empty(self) -> bool:
        return self._data is None
