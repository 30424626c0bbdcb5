"""
Classes that help a handler choose the output format for a response.

A :py:class:`FormatSupport` instance records the formats a handler can produce--each a
:py:class:`Format` with a logical name and a default content type--along with the content types
that select each one.  Given the formats a client asked for (via a query parameter) and the
content types it accepts (via the ``Accept`` header), it picks the format to return.
"""
import re
from collections import namedtuple
from typing import List

from .utils import is_content_type, match_accept, acceptable

__all__ = [ "Format", "FormatSupport", "UnsupportedFormat", "Unacceptable",
            "JSONSupport", "HALSupport" ]

class UnsupportedFormat(Exception):
    """
    an exception indicating that none of the formats requested by the client are supported.
    This is expected to result in a 400 (Bad Request) response.
    """
    pass

class Unacceptable(Exception):
    """
    an exception indicating that the formats that could be returned correspond to content types
    that the client does not accept.  This is expected to result in a 406 (Not Acceptable) response.
    """
    pass

Format = namedtuple("Format", ["name", "ctype"])

class FormatSupport(object):
    """
    the set of formats supported by a handler
    """
    _wildcard_re = re.compile(r'^(\w+)/\*$')

    def __init__(self):
        self._bylabel = {}      # format names and content types -> Format
        self._ctypes = {}       # format name -> set of content types
        self._default = None

    def support(self, format: Format, ctypes: List[str]=None, asdefault: bool=False,
                raiseonconflict: bool=False):
        """
        add support for a format.
        :param Format format:   the format (its name and default content type)
        :param [str] ctypes:    the content types that select this format when requested
        :param bool asdefault:  if True, make this the format returned when the client expresses
                                no preference; the first format registered is the default otherwise
        :param bool raiseonconflict:  if True, raise a ValueError if the format name or any of the
                                content types is already registered; otherwise, a new registration
                                replaces the old one
        """
        ctypes = list(ctypes or [])
        if raiseonconflict:
            if format.name in self._bylabel:
                raise ValueError("Format already registered as supported: " + format.name)
            taken = [c for c in ctypes if c in self._bylabel]
            if taken:
                raise ValueError("Content types already supported by a registered format: " +
                                 str(taken))

        if format.name in self._bylabel:
            self._bylabel = dict((k, f) for k, f in self._bylabel.items() if f.name != format.name)

        for ct in ctypes:
            self._bylabel[ct] = format
        self._bylabel[format.name] = format
        self._ctypes[format.name] = set(ctypes) | {format.ctype}

        if asdefault or not self._default:
            self._default = format

    def default_format(self) -> Format:
        """
        the format to return when the client has not asked for a particular one
        """
        return self._default

    def match(self, fmtreq: str) -> Format:
        """
        return the supported Format that matches a content type or format name, or None if the
        request matches no supported format.  When matched by a specific content type, the
        returned Format carries that content type.
        """
        if fmtreq in ('*', '*/*'):
            return self.default_format()

        m = self._wildcard_re.match(fmtreq)
        if not m:
            fmt = self._bylabel.get(fmtreq)
            if fmt and is_content_type(fmtreq):
                fmt = Format(fmt.name, fmtreq)
            return fmt

        # a request for any subtype of a major type (e.g. "application/*")
        major = m.group(1) + '/'
        if self._default and self._default.ctype.startswith(major):
            return self._default
        for label, fmt in self._bylabel.items():
            if label.startswith(major):
                return fmt
        return None

    def select_format(self, formats: List[str], accepts: List[str]) -> Format:
        """
        pick the supported format that best satisfies the client's request.
        :param [str] formats:  the formats requested via a query parameter, most preferred first;
                               these take precedence over `accepts` but must still be consistent
                               with it
        :param [str] accepts:  the acceptable content types, most preferred first
        :return:  the selected Format or None if neither `formats` nor `accepts` has values (in
                  which case the caller usually uses :py:meth:`default_format`)
        :raises UnsupportedFormat:  if none of the requested `formats` are supported
        :raises Unacceptable:  if no supported format corresponds to an acceptable content type
        """
        if formats:
            inconsistent = False
            for label in formats:
                fmt = self.match(label)
                if not fmt:
                    continue
                if not accepts or '*' in accepts or '*/*' in accepts:
                    return fmt

                if is_content_type(label):
                    ct = acceptable(label, accepts)
                    if ct:
                        if ct.endswith('/*') and match_accept(ct, fmt.ctype):
                            return fmt
                        return Format(fmt.name, ct)
                else:
                    for accepted in accepts:
                        ct = acceptable(accepted, self._ctypes.get(fmt.name, []))
                        if ct and not ct.endswith('/*'):
                            return Format(fmt.name, ct)
                inconsistent = True

            if inconsistent:
                raise Unacceptable("format parameter is inconsistent with Accept header")
            raise UnsupportedFormat("Unsupported format requested")

        if accepts:
            for label in accepts:
                fmt = self.match(label)
                if fmt:
                    return fmt
            raise Unacceptable("No given Accept types supported")

        return None

class JSONSupport(FormatSupport):
    """
    support plain JSON as an output format
    """
    FMT_JSON = "json"
    DEF_CONTENT_TYPE = "application/json"

    def __init__(self, ctypes: List[str]=None):
        super(JSONSupport, self).__init__()
        JSONSupport.add_support(self, ctypes)

    @classmethod
    def add_support(cls, fmtsup: FormatSupport, ctypes: List[str]=None, asdefault: bool=False):
        """
        add support for JSON content types to the given FormatSupport instance
        """
        if not ctypes:
            ctypes = [ cls.DEF_CONTENT_TYPE ]
        fmtsup.support(Format(cls.FMT_JSON, cls.DEF_CONTENT_TYPE), ctypes, asdefault, True)

class HALSupport(FormatSupport):
    """
    support HAL JSON as the default output format, with plain JSON available as an alternative.
    Both carry the same HAL content; they differ only in the declared content type.
    """
    FMT_HAL = "hal"
    DEF_CONTENT_TYPE = "application/hal+json"

    def __init__(self):
        super(HALSupport, self).__init__()
        HALSupport.add_support(self, asdefault=True)
        JSONSupport.add_support(self)

    @classmethod
    def add_support(cls, fmtsup: FormatSupport, asdefault: bool=False):
        """
        add support for the HAL content type to the given FormatSupport instance
        """
        fmtsup.support(Format(cls.FMT_HAL, cls.DEF_CONTENT_TYPE), [cls.DEF_CONTENT_TYPE],
                       asdefault, True)
