import pytest
from http import HTTPStatus

from errors import FormatError
from utils.result import Result


class TestResultConstruction:
    """
    Tests for the Result factory methods.
    """

    def test_ok_holds_data(self):
        result = Result.ok(b"data")

        assert result.is_success()
        assert result.data == b"data"
        assert result.errors == []
        assert result.status_code == HTTPStatus.OK

    def test_fail_accepts_single_message(self):
        result = Result.fail("only one")

        assert result.is_failure()
        assert result.errors == ["only one"]
        assert result.status_code == HTTPStatus.BAD_REQUEST

    def test_fail_keeps_error_order(self):
        result = Result.fail(["first", "second", "third"])

        assert result.errors == ["first", "second", "third"]

    @pytest.mark.parametrize(
        "errors, expected_success",
        [([], True), (["problem"], False)],
        ids=["no-errors", "with-errors"]
    )
    def test_from_errors(self, errors, expected_success):
        """
        Test that a phase succeeds exactly when its accumulator is empty.

        Args:
            errors: Accumulated errors
            expected_success: Whether the Result should be a success
        """
        result = Result.from_errors(errors, "value")

        assert result.is_success() is expected_success
        assert result.data == ("value" if expected_success else None)

    def test_server_error_status(self):
        assert Result.server_error("boom").status_code == HTTPStatus.INTERNAL_SERVER_ERROR

    def test_int_status_code_is_converted(self):
        assert Result(success=False, errors=["x"], status_code=404).status_code == HTTPStatus.NOT_FOUND


class TestResultChaining:
    """
    Tests for map, and_then and unwrap_or_raise.
    """

    def test_and_then_short_circuits_on_failure(self):
        """
        Test that the next phase is not run when the previous phase failed.
        """
        calls = []

        def next_phase(value):
            calls.append(value)
            return Result.ok(value)

        result = Result.fail(["first phase failed"]).and_then(next_phase)

        assert calls == []
        assert result.errors == ["first phase failed"]

    def test_and_then_runs_next_phase(self):
        result = Result.ok(2).and_then(lambda value: Result.fail([f"bad {value}"]))

        assert result.errors == ["bad 2"]

    def test_map_transforms_success_only(self):
        assert Result.ok(2).map(lambda value: value * 3).data == 6
        assert Result.fail(["x"]).map(lambda value: value * 3).errors == ["x"]

    def test_unwrap_or_raise_raises_format_error_with_all_errors(self):
        with pytest.raises(FormatError) as exc_info:
            Result.fail(["a", "b"]).unwrap_or_raise()

        assert exc_info.value.errors == ["a", "b"]
        assert str(exc_info.value) == "a; b"

    def test_unwrap_or_raise_returns_success_data(self):
        assert Result.ok(b"out").unwrap_or_raise() == b"out"

    def test_failure_keeps_status_through_chaining(self):
        result = Result.server_error("boom").map(str).and_then(Result.ok)

        assert result.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
        assert result.errors == ["boom"]
