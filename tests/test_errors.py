"""Tests for nsoap.errors and nsoap.server.errors."""

import pytest

from nsoap.errors import (
    ConfigurationError,
    HTTPError,
    NormalizationError,
    NotFound,
    NsoapError,
    ResponseStateError,
    RoutingError,
    RoutingErrorKind,
)
from nsoap.server.errors import error_response


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [ConfigurationError, HTTPError, NormalizationError, ResponseStateError, RoutingError],
    )
    def test_nsoap_errors(self, cls: type) -> None:
        assert issubclass(cls, NsoapError)

    def test_normalization_error_is_value_error(self) -> None:
        assert issubclass(NormalizationError, ValueError)

    def test_not_found_is_http_error(self) -> None:
        assert issubclass(NotFound, HTTPError)


class TestHTTPError:
    def test_str(self) -> None:
        assert str(HTTPError(status=400, detail="Malformed request body")) == (
            "400: Malformed request body"
        )
        assert str(HTTPError(status=500)) == "500"

    def test_frozen(self) -> None:
        err = HTTPError(status=400)
        with pytest.raises(AttributeError):
            err.status = 500  # type: ignore[misc]

    def test_not_found(self) -> None:
        err = NotFound()
        assert err.status == 404
        assert err.detail == "Not Found"


class TestRoutingError:
    def test_kind_and_detail(self) -> None:
        err = RoutingError(RoutingErrorKind.NOT_FOUND, "no handler: x")
        assert err.kind is RoutingErrorKind.NOT_FOUND
        assert str(err) == "no handler: x"

    def test_message_defaults_to_kind(self) -> None:
        assert str(RoutingError(RoutingErrorKind.SERVER_ERROR)) == "server_error"


class TestErrorResponse:
    def test_http_error(self) -> None:
        resp = error_response(
            HTTPError(status=401, detail="Login required", headers=(("WWW-Authenticate", "Bearer"),)),
            debug=False,
        )
        assert resp.status == 401
        assert resp.text == "Login required"
        assert resp.header("www-authenticate") == "Bearer"

    def test_http_error_debug(self) -> None:
        resp = error_response(HTTPError(status=400, detail="bad"), debug=True)
        assert resp.text == "400: bad"

    def test_unexpected_error_hidden(self) -> None:
        resp = error_response(RuntimeError("secret"), debug=False)
        assert resp.status == 500
        assert resp.text == "Internal Server Error"

    def test_unexpected_error_debug_traceback(self) -> None:
        try:
            raise RuntimeError("visible")
        except RuntimeError as exc:
            resp = error_response(exc, debug=True)
        assert resp.status == 500
        assert "RuntimeError: visible" in resp.text
