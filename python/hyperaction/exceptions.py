"""
Exceptions raised by the hyperaction framework.

The exceptions raised while running an action (the subclasses of :py:class:`ActionError`) are
propagated unchanged by the action pipeline; it is the hosting web layer that turns them into HTTP
error responses (see :py:mod:`hyperaction.error`).
"""

__all__ = [ "HyperActionException", "ConfigurationException", "BuilderClosed", "ActionError",
            "Forbidden", "NotFound", "BadRequest", "InvalidBody", "ParameterNotProvided",
            "Unauthenticated" ]

class HyperActionException(Exception):
    """
    a general base class for exceptions raised by the hyperaction framework
    """
    def __init__(self, message: str=None, sys=None):
        """
        :param str message:  the description of the problem
        :param sys:          a name or object identifying the component in which the problem
                             occurred (optional)
        """
        if message is None:
            message = "Unspecified failure in the hyperaction framework"
        super(HyperActionException, self).__init__(message)
        self.system = sys

class ConfigurationException(HyperActionException):
    """
    an exception indicating that the framework was given missing or invalid configuration
    """
    pass

class BuilderClosed(HyperActionException, RuntimeError):
    """
    an exception indicating that an action builder was used after its ActionSemantics was built
    """
    def __init__(self, message: str=None, sys=None):
        if not message:
            message = "ActionSemantics already built; builder can no longer be updated"
        super(BuilderClosed, self).__init__(message, sys)

class ActionError(HyperActionException):
    """
    a base class for failures that occur while running an action on behalf of a client.  Each
    subclass corresponds to a class of HTTP error response.
    """
    pass

class Forbidden(ActionError):
    """
    an exception indicating that the requesting user is not permitted to execute an action.  This
    corresponds to an HTTP 403 response.
    """
    def __init__(self, action: str=None, message: str=None, sys=None):
        """
        :param str  action:  the name of the action that was refused (optional)
        :param str message:  the message describing the refusal; if not given, a default message
                             is constructed from `action`.
        """
        self.action = action
        if not message:
            message = "Not permitted to execute "
            message += ("action "+action) if action else "this action"
        super(Forbidden, self).__init__(message, sys)

class NotFound(ActionError):
    """
    an exception indicating that the requested resource does not exist.  This corresponds to an
    HTTP 404 response.
    """
    def __init__(self, resource: str=None, id=None, message: str=None, sys=None):
        self.resource = resource
        self.id = id
        if not message:
            message = "Resource not found"
            if resource:
                message = f"{resource} not found"
                if id is not None:
                    message = f"{resource} {id} not found"
        super(NotFound, self).__init__(message, sys)

class BadRequest(ActionError):
    """
    an exception indicating that the client's request is invalid in some way.  This corresponds to
    an HTTP 400 response.
    """
    pass

class InvalidBody(BadRequest):
    """
    an exception indicating that the body of the request does not conform to the action's form.
    The ``errors`` property lists each of the problems found.
    """
    def __init__(self, message: str=None, errors=None, form: str=None, sys=None):
        """
        :param str message:  a brief description of the problem
        :param [str] errors: the individual problems found with the body
        :param str    form:  the name of the form the body was checked against
        """
        if errors is None:
            errors = [message] if message else []
        if not message:
            if len(errors) == 1:
                message = "Invalid body: " + errors[0]
            elif errors:
                message = "Found %d problems with body, including: %s" % (len(errors), errors[0])
            else:
                message = "Invalid request body"
        super(InvalidBody, self).__init__(message, sys)
        self.errors = list(errors)
        self.form = form

    def format_errors(self):
        """
        format the listing of the problems into a multi-line string
        """
        if not self.errors:
            return str(self)
        out = "Problems found in body"
        if self.form:
            out += " for form " + self.form
        return out + ":\n  * " + "\n  * ".join(self.errors)

class ParameterNotProvided(ActionError):
    """
    an exception indicating that a parameter provider cannot produce a value for a parameter type
    declared by an action.  This usually reflects a misconfiguration of the hosting application.
    """
    def __init__(self, paramtype=None, action: str=None, message: str=None, sys=None):
        self.param_type = paramtype
        self.action = action
        if not message:
            name = getattr(paramtype, '__name__', str(paramtype))
            message = f"No provider available for parameter type {name}"
            if action:
                message += f" (needed by action {action})"
        super(ParameterNotProvided, self).__init__(message, sys)

class Unauthenticated(HyperActionException):
    """
    an exception indicating that a client did not successfully authenticate itself, either because
    credentials are required but none were provided, or because the credentials presented were
    not valid.

    An authentication implementation is not required to raise this exception; it can instead
    return an identity that specifically represents an unauthenticated user.
    """
    pass
