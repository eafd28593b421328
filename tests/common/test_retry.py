import pytest

from timekeeping.common.retry import run_with_retry
from timekeeping.core.enums import ErrorCode
from timekeeping.core.exceptions import ConcurrentUpdateError, InternalError, OptimisticLockError, ValidationError


class Flaky:
    def __init__(self, *failures):
        self.failures = list(failures)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return "done"


def test_returns_after_conflicts_with_linear_backoff():
    sleeps = []
    op = Flaky(OptimisticLockError("v1"), OptimisticLockError("v2"))

    assert run_with_retry(op, max_attempts=3, backoff_ms=100, label="t", sleep=sleeps.append) == "done"
    assert op.calls == 3
    assert sleeps == [0.1, 0.2]


def test_exhausted_conflicts_raise_concurrent_update():
    op = Flaky(*[OptimisticLockError("v")] * 3)

    with pytest.raises(ConcurrentUpdateError) as exc:
        run_with_retry(op, max_attempts=3, backoff_ms=100, label="t", sleep=lambda _: None)

    assert exc.value.code is ErrorCode.CONCURRENT_UPDATE_ERROR
    assert isinstance(exc.value.__cause__, OptimisticLockError)


def test_exhausted_failures_raise_internal_error():
    op = Flaky(*[KeyError("x")] * 3)

    with pytest.raises(InternalError):
        run_with_retry(op, max_attempts=3, backoff_ms=0, label="t", sleep=lambda _: None)


def test_domain_errors_fail_fast():
    sleeps = []
    op = Flaky(ValidationError("bad input"))

    with pytest.raises(ValidationError):
        run_with_retry(op, max_attempts=3, backoff_ms=100, label="t", sleep=sleeps.append)

    assert op.calls == 1
    assert sleeps == []
