import pytest

from devportal.rpc.rpc_outcome import RpcOutcome


@pytest.mark.parametrize(
    "value", [42, "text", [1, 2], {"nested": True}, None, False]
)
def test_enveloped_and_bare_responses_yield_same_result(value):
    enveloped = RpcOutcome.from_response({"success": True, "result": value})
    assert enveloped == RpcOutcome(success=True, result=value)

    if not isinstance(value, dict):
        assert RpcOutcome.from_response(value) == enveloped


def test_bare_object_without_result_is_the_result():
    body = {"title": "Home", "items": []}
    assert RpcOutcome.from_response(body) == RpcOutcome.ok(body)


def test_error_wins_over_other_fields():
    outcome = RpcOutcome.from_response(
        {"error": "boom", "result": 1, "success": True}
    )

    assert outcome.success is False
    assert outcome.error == "boom"
    assert outcome.result is None


def test_null_error_is_still_failure():
    outcome = RpcOutcome.from_response({"error": None, "result": 5})

    assert outcome.success is False
    assert outcome.result is None
    assert outcome.error


def test_non_string_error_is_stringified():
    outcome = RpcOutcome.from_response({"error": {"code": 3}})

    assert outcome.success is False
    assert outcome.error == "{'code': 3}"


def test_outcome_is_immutable():
    outcome = RpcOutcome.ok(1)
    with pytest.raises(AttributeError):
        outcome.result = 2  # type: ignore[misc]
