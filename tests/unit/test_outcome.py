"""Unit tests for the SendOutcome tagged result."""

import pytest

from courier.exceptions import HTTPError, TransportTimeoutError
from courier.models.response import Response
from courier.outcome import SendOutcome


def test_requires_exactly_one_side():
    with pytest.raises(ValueError):
        SendOutcome()
    with pytest.raises(ValueError):
        SendOutcome(response=Response(status_code=200), error=TransportTimeoutError("t"))


def test_response_side():
    response = Response(status_code=200)
    outcome = SendOutcome(response=response, attempts=1)
    assert outcome.ok
    assert outcome.unwrap() is response
    assert outcome.as_response() is response


def test_transport_error_side():
    error = TransportTimeoutError("timed out")
    outcome = SendOutcome(error=error, attempts=3)
    assert not outcome.ok
    with pytest.raises(TransportTimeoutError):
        outcome.unwrap()
    synthesized = outcome.as_response()
    assert synthesized.status_code == 0
    assert synthesized.info("error") == "timed out"


def test_http_error_side_exposes_its_response():
    response = Response(status_code=500, body="down")
    outcome = SendOutcome(error=HTTPError(response), attempts=1)
    assert outcome.as_response() is response
