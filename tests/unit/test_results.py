"""Unit tests for the non-throwing Result value."""

import pytest

from typedhttp.http.errors import NotFoundError
from typedhttp.results import Result


class TestResult:
    """Tests for Result."""

    @pytest.mark.unit
    def test_ok(self) -> None:
        """Test a success result."""
        result = Result.ok(5)

        assert result.is_success is True
        assert result.is_failure is False
        assert result.error is None
        assert result.value == 5
        assert result.unwrap() == 5

    @pytest.mark.unit
    def test_ok_without_value(self) -> None:
        """Test a success result without a value."""
        assert Result.ok().value is None

    @pytest.mark.unit
    def test_fail(self) -> None:
        """Test that value raises the carried error."""
        error = NotFoundError()
        result: Result[int] = Result.fail(error)

        assert result.is_failure is True
        assert result.error is error
        with pytest.raises(NotFoundError):
            _ = result.value

    @pytest.mark.unit
    def test_fail_requires_error(self) -> None:
        """Test that a failure needs an error."""
        with pytest.raises(ValueError, match="requires an error"):
            Result.fail(None)  # type: ignore[arg-type]

    @pytest.mark.unit
    def test_map(self) -> None:
        """Test mapping success values and passing failures through."""
        assert Result.ok(2).map(lambda v: (v or 0) * 10).value == 20

        error = NotFoundError()
        mapped = Result.fail(error).map(lambda v: v)
        assert mapped.error is error

    @pytest.mark.unit
    def test_repr(self) -> None:
        """Test the representation."""
        assert repr(Result.ok(1)) == "Result.ok(1)"
        assert repr(Result.fail(ValueError("x"))).startswith("Result.fail(")
