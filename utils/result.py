from typing import Generic, TypeVar, Optional, Any, Dict, Union
from http import HTTPStatus

T = TypeVar('T')  # Generic type variable

class Result(Generic[T]):
    """
    A generic result class that represents the outcome of an operation.

    This class can be used to return either successful results with data
    or failed results with error messages in a type-safe manner.

    Attributes:
        success (bool): Indicates if the operation was successful
        data (Optional[T]): The result data (only present when success is True)
        error (Optional[str]): Error message (only present when success is False)
        details (Optional[str]): Underlying cause of the failure, shown to API clients
        status_code (HTTPStatus): HTTP status code (default: 200 for success, 400 for failure)
    """
    def __init__(
        self,
        success: bool,
        data: Optional[T] = None,
        error: Optional[str] = None,
        details: Optional[str] = None,
        status_code: Optional[Union[int, HTTPStatus]] = None
    ):
        self.success = success
        self.data = data
        self.error = error
        self.details = details

        # Set default status code based on success/failure if not provided
        if status_code is None:
            self.status_code = HTTPStatus.OK if success else HTTPStatus.BAD_REQUEST
        elif isinstance(status_code, int):
            self.status_code = HTTPStatus(status_code)
        else:
            self.status_code = status_code

    @classmethod
    def ok(cls, data: T, status_code: Optional[Union[int, HTTPStatus]] = HTTPStatus.OK) -> "Result[T]":
        """
        Create a successful Result with the provided data.

        Args:
            data (T): The data to be wrapped in the Result
            status_code (Optional[Union[int, HTTPStatus]], optional): HTTP status code. Defaults to 200 OK.

        Returns:
            Result[T]: A successful Result containing the provided data
        """
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(
        cls,
        error: str,
        details: Optional[str] = None,
        status_code: Optional[Union[int, HTTPStatus]] = HTTPStatus.BAD_REQUEST
    ) -> "Result[T]":
        """
        Create a failed Result with the provided error message.

        Args:
            error (str): The error message describing the failure
            details (Optional[str], optional): Underlying cause. Defaults to the error message.
            status_code (Optional[Union[int, HTTPStatus]], optional): HTTP status code. Defaults to 400 BAD_REQUEST.

        Returns:
            Result[T]: A failed Result containing the error message
        """
        return cls(success=False, error=error, details=details or error, status_code=status_code)

    @classmethod
    def server_error(cls, error: str = "Internal server error", details: Optional[str] = None) -> "Result[T]":
        """
        Create a failed Result with INTERNAL_SERVER_ERROR status code.

        Args:
            error (str, optional): The error message. Defaults to "Internal server error".
            details (Optional[str], optional): Underlying cause. Defaults to the error message.

        Returns:
            Result[T]: A failed Result with 500 status code
        """
        return cls.fail(error, details=details, status_code=HTTPStatus.INTERNAL_SERVER_ERROR)

    def is_success(self) -> bool:
        return self.success

    def is_failure(self) -> bool:
        return not self.success

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert Result to a dictionary suitable for API responses.

        Successful results return their data unchanged; failures return
        ``{"error": ..., "details": ...}``.

        Returns:
            Dict[str, Any]: Response body
        """
        if self.is_success():
            return self.data  # type: ignore
        return {"error": self.error, "details": self.details}

    def __str__(self) -> str:
        status_info = f"{self.status_code.value} {self.status_code.phrase}"
        if self.is_success():
            data_repr = str(self.data)
            # Truncate long data representations
            if len(data_repr) > 100:
                data_repr = f"{data_repr[:97]}..."
            return f"Success ({status_info}): {data_repr}"
        return f"Failure ({status_info}): {self.error}"

    def __repr__(self) -> str:
        return f"Result(success={self.success}, status_code={self.status_code!r}, data={self.data!r}, error={self.error!r})"
