"""Tagged result of a send: either a response or an error."""

from dataclasses import dataclass
from typing import Optional

from .exceptions import CourierError, HTTPError
from .models.response import Response


@dataclass(frozen=True)
class SendOutcome:
    """Outcome of executing a request.

    Exactly one of ``response`` and ``error`` is set. ``attempts`` counts
    the transport round trips that were made.
    """

    response: Optional[Response] = None
    error: Optional[CourierError] = None
    attempts: int = 0

    def __post_init__(self) -> None:
        if (self.response is None) == (self.error is None):
            raise ValueError("SendOutcome needs exactly one of response or error")

    @property
    def ok(self) -> bool:
        """True when a response was obtained."""
        return self.response is not None

    def unwrap(self) -> Response:
        """Return the response or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.response

    def as_response(self) -> Response:
        """Return a response whatever happened.

        HTTP errors give back the response they carry; transport errors
        become a status-0 response describing the failure.
        """
        if self.response is not None:
            return self.response
        if isinstance(self.error, HTTPError):
            return self.error.response
        return Response.connection_error(self.error)
