import pytest

from reply_normalizer.src.errors import (
    DecodingFailedError,
    EmptyContentError,
    InvalidJSONError,
    MaxRetriesExceededError,
    UnknownParseError,
)
from reply_normalizer.src.models import RetryPolicy
from reply_normalizer.src.processing.retry_controller import RetryController


@pytest.fixture
def controller():
    return RetryController(RetryPolicy(max_attempts=3, include_error_context=True, retry_delay=0.5))


@pytest.mark.parametrize("max_attempts", [1, 2, 3, 5])
def test_exhaustion_after_max_attempts_failures(max_attempts):
    ctrl = RetryController(RetryPolicy(max_attempts=max_attempts, retry_delay=0))
    results = [ctrl.record_failure(InvalidJSONError("bad"), "x") for _ in range(max_attempts)]
    assert all(r is not None for r in results[:-1])
    assert results[-1] is None
    assert ctrl.is_exhausted


def test_contexts_count_up(controller):
    first = controller.record_failure(EmptyContentError())
    second = controller.record_failure(InvalidJSONError("oops"), "{")
    assert (first.attempt_number, first.remaining_attempts) == (1, 2)
    assert (second.attempt_number, second.remaining_attempts) == (2, 1)
    assert controller.get_last_retry_context() is second


def test_success_resets_state(controller):
    controller.record_failure(InvalidJSONError("bad"), "content")
    controller.record_failure(InvalidJSONError("bad"), "content")
    controller.record_success()
    assert controller.attempt == 1
    assert controller.last_error is None
    assert controller.last_failed_content is None
    assert controller.get_last_retry_context() is None
    assert controller.get_summary().total_attempts == 0
    assert controller.can_retry


def test_terminal_error_stops_immediately(controller):
    assert controller.record_failure(UnknownParseError("transport down")) is None
    assert controller.is_exhausted
    assert controller.get_final_error().attempts == 1


def test_none_policy_makes_first_failure_terminal():
    ctrl = RetryController(RetryPolicy.none())
    assert ctrl.record_failure(InvalidJSONError("bad")) is None
    final = ctrl.get_final_error()
    assert isinstance(final, MaxRetriesExceededError)
    assert final.attempts == 1
    assert "Invalid JSON: bad" in final.last_error


def test_retry_prompt_with_error_context(controller):
    context = controller.record_failure(DecodingFailedError("Field required", field="price"), '{"name": "w"}')
    prompt = controller.build_retry_prompt("Describe the product.", context)
    assert prompt.startswith("Describe the product.")
    assert "[Retry attempt 2/3, 2 remaining]" in prompt
    assert "price" in prompt
    assert '{"name": "w"}' in prompt


def test_retry_prompt_without_error_context():
    ctrl = RetryController(RetryPolicy(max_attempts=2, include_error_context=False, retry_delay=0))
    context = ctrl.record_failure(InvalidJSONError("secret detail"), "leaked content")
    prompt = ctrl.build_retry_prompt("Original", context)
    assert "[Retry attempt 2/2, 1 remaining]" in prompt
    assert "secret detail" not in prompt
    assert "leaked content" not in prompt


def test_retry_prompt_truncates_failed_content(controller, monkeypatch):
    from reply_normalizer.src.config import Config

    monkeypatch.setattr(Config, "RETRY_EXCERPT_MAX", 10)
    context = controller.record_failure(InvalidJSONError("bad"), "x" * 50)
    prompt = controller.build_retry_prompt("P", context)
    assert "[truncated 40 chars]" in prompt


def test_retry_delay_backoff_within_jitter(controller):
    controller.record_failure(InvalidJSONError("bad"))
    first = controller.get_retry_delay()
    assert 0.4 <= first <= 0.6
    controller.record_failure(InvalidJSONError("bad"))
    second = controller.get_retry_delay()
    assert 0.6 <= second <= 0.9


def test_zero_delay_policy():
    ctrl = RetryController(RetryPolicy(max_attempts=2, retry_delay=0))
    ctrl.record_failure(InvalidJSONError("bad"))
    assert ctrl.get_retry_delay() == 0.0


def test_summary_lists_errors_in_order(controller):
    controller.record_failure(EmptyContentError())
    controller.record_failure(InvalidJSONError("bad"))
    controller.record_failure(InvalidJSONError("worse"))
    summary = controller.get_summary()
    assert summary.total_attempts == 3
    assert summary.is_exhausted
    assert summary.errors == ["Response content is empty", "Invalid JSON: bad", "Invalid JSON: worse"]
    assert summary.describe().startswith("Retry Summary: 3/3 attempts (exhausted)")
