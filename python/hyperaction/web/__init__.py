"""
A WSGI layer for serving declared actions.

This package is organized into the following modules:

``utils``
    functions for interpreting the ``Accept`` HTTP header
``formats``
    classes that help a handler choose the output format requested by the client
``rest``
    the REST framework: the base handler and application classes, JSON error support, and the
    application that routes requests to registered actions
``wsgi``
    the factory function that builds a complete WSGI application from configuration
"""
