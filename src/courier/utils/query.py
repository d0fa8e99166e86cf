"""Query-string and form encoding helpers.

Parameters are encoded the way HTML forms are (``application/x-www-form-urlencoded``):
spaces become ``+`` and reserved characters are percent-encoded. Booleans are
sent as ``1``/``0``, ``None`` values are dropped, sequences repeat their key
and nested mappings use bracket notation (``filter[status]=open``).
"""

from typing import Any, Iterable, List, Mapping, Tuple, Union
from urllib.parse import urlencode, urlsplit, urlunsplit

ParamPairs = Iterable[Tuple[str, Any]]
Params = Union[Mapping[str, Any], ParamPairs]


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _flatten(key: str, value: Any) -> List[Tuple[str, str]]:
    if value is None:
        return []
    if isinstance(value, Mapping):
        pairs: List[Tuple[str, str]] = []
        for sub_key, sub_value in value.items():
            pairs.extend(_flatten(f"{key}[{sub_key}]", sub_value))
        return pairs
    if isinstance(value, (list, tuple)):
        pairs = []
        for item in value:
            pairs.extend(_flatten(key, item))
        return pairs
    return [(key, _scalar(value))]


def flatten_params(params: Params) -> List[Tuple[str, str]]:
    """Flatten parameters into ordered ``(name, value)`` string pairs.

    :param params: Mapping or iterable of pairs to flatten
    :return: Pairs in insertion order, ready for ``urlencode``
    """
    items = params.items() if isinstance(params, Mapping) else params
    pairs: List[Tuple[str, str]] = []
    for key, value in items:
        pairs.extend(_flatten(str(key), value))
    return pairs


def encode_params(params: Params) -> str:
    """Encode parameters as a form/query string.

    >>> encode_params({"name": "John", "age": 30})
    'name=John&age=30'
    """
    return urlencode(flatten_params(params))


def merge_query(url: str, params: Params) -> str:
    """Append encoded parameters to the query string of ``url``.

    An existing query is preserved and the new pairs are joined to it
    with ``&``. The fragment, if any, stays at the end of the URL.

    :param url: URL to extend
    :param params: Parameters to append
    :return: URL with the merged query string
    """
    encoded = encode_params(params)
    if not encoded:
        return url
    parts = urlsplit(url)
    query = f"{parts.query}&{encoded}" if parts.query else encoded
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
