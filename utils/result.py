from typing import Generic, TypeVar, Optional, Callable, List, Union
from http import HTTPStatus

from errors import FormatError

T = TypeVar('T')
U = TypeVar('U')


class Result(Generic[T]):
    """
    Outcome of one transformation phase.

    A phase either succeeds with data or fails with the complete, ordered list
    of problems it found. The status code is what the HTTP boundary answers with.
    """
    def __init__(
        self,
        success: bool,
        data: Optional[T] = None,
        errors: Optional[List[str]] = None,
        status_code: Optional[Union[int, HTTPStatus]] = None
    ):
        self.success = success
        self.data = data
        self.errors = list(errors) if errors else []
        if status_code is None:
            status_code = HTTPStatus.OK if success else HTTPStatus.BAD_REQUEST
        self.status_code = HTTPStatus(status_code)

    @classmethod
    def ok(cls, data: T, status_code: Union[int, HTTPStatus] = HTTPStatus.OK) -> "Result[T]":
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(cls, errors: Union[str, List[str]], status_code: Union[int, HTTPStatus] = HTTPStatus.BAD_REQUEST) -> "Result[T]":
        """Fail with one diagnostic or an ordered list of them."""
        if isinstance(errors, str):
            errors = [errors]
        return cls(success=False, errors=errors, status_code=status_code)

    @classmethod
    def from_errors(cls, errors: List[str], data: T) -> "Result[T]":
        """
        Close a phase: fail with the accumulated errors, or succeed with data if there are none.

        Args:
            errors (List[str]): The accumulator the phase appended to
            data (T): The value the phase produced
        """
        if errors:
            return cls.fail(errors)
        return cls.ok(data)

    @classmethod
    def invalid_input(cls, error: str) -> "Result[T]":
        return cls.fail(error, status_code=HTTPStatus.BAD_REQUEST)

    @classmethod
    def server_error(cls, error: str) -> "Result[T]":
        return cls.fail(error, status_code=HTTPStatus.INTERNAL_SERVER_ERROR)

    def is_success(self) -> bool:
        return self.success

    def is_failure(self) -> bool:
        return not self.success

    def unwrap_or_raise(self) -> T:
        """
        Get the data, or raise FormatError carrying every diagnostic of a failure.

        Raises:
            FormatError: If the Result is a failure
        """
        if self.is_failure():
            raise FormatError(self.errors)
        return self.data  # type: ignore

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        """Apply fn to the data of a success. A failure passes through unchanged."""
        if self.is_success():
            return Result.ok(fn(self.data), status_code=self.status_code)  # type: ignore
        return Result.fail(self.errors, status_code=self.status_code)

    def and_then(self, fn: Callable[[T], "Result[U]"]) -> "Result[U]":
        """
        Chain the next phase. A failure short-circuits and the next phase never runs.

        Args:
            fn (Callable[[T], Result[U]]): Next phase, taking the success data

        Returns:
            Result[U]: Either this failure or the Result of the next phase
        """
        if self.is_failure():
            return Result.fail(self.errors, status_code=self.status_code)
        return fn(self.data)  # type: ignore
