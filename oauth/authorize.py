"""Authorization request URL construction."""

from typing import Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


def build_authorization_url(
    base: str,
    params: Mapping[str, Optional[str]],
    fragment: Optional[str] = None,
) -> str:
    """Merge ``params`` into the query string of ``base``.

    Query parameters already on ``base`` are kept, repeated keys included; a
    key present in both takes the new value. Parameters whose value is None are skipped.

    Args:
        base: The authorization endpoint URL, possibly with its own query
        params: Parameters to add (response_type, scope, client_id, ...)
        fragment: Optional fragment to set on the result

    Returns:
        The full URL with percent-encoded query parameters.
    """
    parts = urlsplit(base)

    added = [(key, value) for key, value in params.items() if value is not None]
    overridden = {key for key, _ in added}

    # Repeated keys on the endpoint are kept unless overridden
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in overridden
    ]
    query.extend(added)

    return urlunsplit((
        parts.scheme,
        parts.netloc,
        parts.path,
        urlencode(query),
        fragment if fragment is not None else parts.fragment,
    ))
