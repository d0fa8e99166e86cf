"""Fluent builder for outgoing request headers.

Header names are matched case-insensitively. Setting a header that is
already present replaces its value in place, so the wire order stays the
order in which names were first added.
"""

import base64
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union


class Headers:
    """Ordered, case-insensitive collection of request headers.

    ``Headers`` is a mutable builder. Requests store a read-only
    :class:`FrozenHeaders` snapshot of it.

    .. example::
       >>> headers = Headers.instance().json().auth_bearer("token")
       >>> headers.to_list()
       ['Accept: application/json', 'Content-Type: application/json', 'Authorization: Bearer token']
    """

    def __init__(
        self, headers: Optional[Union["Headers", Mapping[str, str]]] = None
    ) -> None:
        # lowercased name -> (original name, value)
        self._items: Dict[str, Tuple[str, str]] = {}
        if headers is not None:
            self.update(headers)

    @classmethod
    def instance(cls) -> "Headers":
        """Return a new, empty header builder."""
        return cls()

    def set(self, name: str, value: str) -> "Headers":
        """Set a header, replacing any existing value for the name.

        :param name: Header name
        :param value: Header value
        :return: This builder, for chaining
        """
        self._items[name.lower()] = (name, str(value))
        return self

    def remove(self, name: str) -> "Headers":
        """Remove a header if present."""
        self._items.pop(name.lower(), None)
        return self

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the value of a header, or ``default``."""
        item = self._items.get(name.lower())
        return item[1] if item is not None else default

    def update(self, headers: Union["Headers", Mapping[str, str]]) -> "Headers":
        """Set every header from another builder or mapping."""
        for name, value in headers.items():
            self.set(name, value)
        return self

    def copy(self) -> "Headers":
        """Return an independent copy of this builder."""
        clone = Headers()
        clone._items = dict(self._items)
        return clone

    def items(self) -> List[Tuple[str, str]]:
        """Return ``(name, value)`` pairs in wire order."""
        return list(self._items.values())

    def to_dict(self) -> Dict[str, str]:
        return dict(self._items.values())

    def to_list(self) -> List[str]:
        """Serialize headers as ``"Name: value"`` lines in wire order."""
        return [f"{name}: {value}" for name, value in self._items.values()]

    # Shortcuts

    def auth_bearer(self, token: str) -> "Headers":
        return self.set("Authorization", f"Bearer {token}")

    def auth_basic(self, username: str, password: str) -> "Headers":
        credentials = f"{username}:{password}".encode("utf-8")
        return self.set(
            "Authorization", "Basic " + base64.b64encode(credentials).decode("ascii")
        )

    def json(self) -> "Headers":
        """Accept and send JSON."""
        return self.set("Accept", "application/json").set(
            "Content-Type", "application/json"
        )

    def user_agent(self, agent: str) -> "Headers":
        return self.set("User-Agent", agent)

    def accept_language(self, language: str) -> "Headers":
        return self.set("Accept-Language", language)

    def referer(self, url: str) -> "Headers":
        return self.set("Referer", url)

    def content_type(self, content_type: str) -> "Headers":
        return self.set("Content-Type", content_type)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._items.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return {k: v[1] for k, v in self._items.items()} == {
            k: v[1] for k, v in other._items.items()
        }

    def __repr__(self) -> str:
        return f"Headers({self.to_dict()!r})"


class FrozenHeaders(Headers):
    """Read-only headers held by a :class:`~courier.models.request.Request`.

    Lookups work as on :class:`Headers`; ``copy()`` returns a mutable
    builder for deriving new header sets.
    """

    def __init__(
        self, headers: Optional[Union[Headers, Mapping[str, str]]] = None
    ) -> None:
        self._items = Headers(headers)._items

    def set(self, name: str, value: str) -> "Headers":
        raise TypeError(
            "Request headers are read-only; use copy() or Request.with_header()"
        )

    def remove(self, name: str) -> "Headers":
        raise TypeError(
            "Request headers are read-only; use copy() or Request.without_header()"
        )
