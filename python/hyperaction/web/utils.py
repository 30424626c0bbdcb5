"""
functions that assist with interpreting a web request's content negotiation headers
"""
import re

__all__ = [ 'is_content_type', 'match_accept', 'acceptable', 'order_accepts' ]

_qval_re = re.compile(r';\s*q=(\d+(\.\d+)?)')

def is_content_type(label: str) -> bool:
    """
    return True if the given format label looks like a MIME type (i.e. it contains a '/')
    rather than a logical format name
    """
    return '/' in label

def match_accept(ctype: str, accepted: str) -> str:
    """
    compare two content types, either of which may be a wildcard of the form "type/*", and
    return the more specific one if they match or None if they do not
    """
    if ctype == accepted:
        return ctype
    if accepted.endswith('/*') and ctype.startswith(accepted[:-1]):
        return ctype
    if ctype.endswith('/*') and accepted.startswith(ctype[:-1]):
        return accepted
    return None

def acceptable(ctype: str, accepts) -> str:
    """
    return the first content type in a list of acceptable ones that matches the given type.
    If the list is empty, everything is acceptable and `ctype` is returned.
    """
    if not accepts:
        return ctype
    accepts = list(accepts)
    if ctype in ('*', '*/*'):
        return accepts[0]
    for ct in accepts:
        found = match_accept(ctype, ct)
        if found:
            return found
    return None

def order_accepts(accepts) -> list:
    """
    order the values of an Accept header by their q-values, most preferred first.  Values with a
    q-value of zero are dropped.
    :param accepts:  the Accept header value(s) as a str or a list of str
    :return:  the list of content types without their parameters
    """
    if isinstance(accepts, str):
        accepts = [accepts]
    weighted = []
    for value in accepts:
        for item in value.split(','):
            item = item.strip()
            if not item:
                continue
            m = _qval_re.search(item)
            q = float(m.group(1)) if m else 1.0
            weighted.append((item.split(';', 1)[0].strip(), q))

    # sort is stable, so equally weighted types keep the client's order
    weighted.sort(key=lambda a: a[1], reverse=True)
    return [ct for ct, q in weighted if q > 0]
