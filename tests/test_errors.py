import pytest

from election import (
    DuplicateKeyError,
    ElectionError,
    ErrorKind,
    InvalidProofError,
    OperationResult,
    attempt,
)


def test_kind_and_message():
    error = DuplicateKeyError("key already bound")
    assert error.kind is ErrorKind.DUPLICATE_KEY
    assert error.reason == "key already bound"
    assert str(error) == "duplicate_key: key already bound"
    assert isinstance(error, ElectionError)


def test_attempt_success_and_failure():
    assert attempt(lambda a, b=0: a + b, 2, b=3) == OperationResult(ok=True, value=5)

    def reject():
        raise InvalidProofError("bad response")

    result = attempt(reject)
    assert result.failed
    assert result.error is ErrorKind.INVALID_PROOF
    assert result.reason == "bad response"


def test_attempt_propagates_other_exceptions():
    with pytest.raises(ZeroDivisionError):
        attempt(lambda: 1 / 0)
