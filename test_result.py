from http import HTTPStatus

from utils.errors import UpstreamError
from utils.result import Result


class TestResult:
    """
    Tests for the Result wrapper used at the request boundary.
    """

    def test_ok_returns_data_as_body(self):
        result = Result.ok({"Sheet1": {}})

        assert result.is_success()
        assert not result.is_failure()
        assert result.status_code == HTTPStatus.OK
        assert result.to_dict() == {"Sheet1": {}}

    def test_fail_defaults_details_to_error(self):
        result = Result.fail("Bad input")

        assert result.status_code == HTTPStatus.BAD_REQUEST
        assert result.to_dict() == {"error": "Bad input", "details": "Bad input"}

    def test_int_status_code_is_converted(self):
        result = Result(success=False, error="x", status_code=500)
        assert result.status_code is HTTPStatus.INTERNAL_SERVER_ERROR

    def test_str_truncates_long_data(self):
        result = Result.ok("x" * 200)
        assert str(result).startswith("Success (200 OK): ")
        assert str(result).endswith("...")
        assert str(Result.server_error("boom")) == "Failure (500 Internal Server Error): boom"

    def test_repr(self):
        assert repr(Result.fail("e")).startswith("Result(success=False")


class TestUpstreamError:
    """
    Tests for UpstreamError.
    """

    def test_details_default_to_message(self):
        error = UpstreamError("Connection refused")
        assert error.details == "Connection refused"
        assert str(error) == "Connection refused"

    def test_str_includes_distinct_details(self):
        error = UpstreamError("403 Client Error", '{"error": "forbidden"}')
        assert str(error) == '403 Client Error: {"error": "forbidden"}'
