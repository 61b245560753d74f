import json
import pytest
import ninebooks.utils.responses
from ninebooks.middleware.logging import REQUEST_ID_HEADER
from ninebooks.utils.isbn import is_isbn_query, normalize_query, strip_separators


def body(response):
    return json.loads(response.body.decode())


class TestIsbn:
    @pytest.mark.parametrize("query", ["9784101010014", "978-4-10-101001-4", " 978 4101010014 ", "4101010013"])
    def test_identifier_queries(self, query):
        assert is_isbn_query(query) is True

    @pytest.mark.parametrize("query", ["", "12345", "97841010100145", "978410101001X", "こころ"])
    def test_text_queries(self, query):
        assert is_isbn_query(query) is False

    def test_strip_separators(self):
        assert strip_separators("978-4 10-101001-4") == "9784101010014"
        assert strip_separators(None) == ""

    def test_normalize_identifier(self):
        assert normalize_query("978-4-10-101001-4") == "9784101010014"

    def test_normalize_text(self):
        assert normalize_query("  Natsume   SOSEKI ") == "natsume soseki"


class TestResponses:
    def test_success_response(self):
        response = ninebooks.utils.responses.success_response({"key": "value"}, status_code=201)
        assert response.status_code == 201
        assert body(response) == {"success": True, "data": {"key": "value"}, "error": None}

    def test_error_response(self):
        response = ninebooks.utils.responses.error_response("TEST_ERROR", "Test error message", {"field": "q"})
        assert response.status_code == 400
        assert body(response)["error"] == {
            "code": "TEST_ERROR",
            "message": "Test error message",
            "details": {"field": "q"},
        }

    @pytest.mark.parametrize("reason,status_code", [
        ("query_required", 400),
        ("shelf_full", 400),
        ("forbidden", 403),
        ("not_found", 404),
        ("already_on_shelf", 409),
        ("something_else", 400),
    ])
    def test_service_error_mapping(self, reason, status_code):
        response = ninebooks.utils.responses.service_error_response(ValueError(reason))
        assert response.status_code == status_code
        assert body(response)["error"]["code"] == reason.upper()


class TestRequestLogging:
    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={REQUEST_ID_HEADER: "abc123"})
        assert response.headers[REQUEST_ID_HEADER] == "abc123"
        assert "X-Process-Time" in response.headers

    def test_request_id_is_generated(self, client):
        response = client.get("/health")
        assert response.headers[REQUEST_ID_HEADER]
