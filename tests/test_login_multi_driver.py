"""
End-to-end login scenarios using the multi-driver approach.

Every test runs once through the dispatcher directly and once through the
ASGI adapter.
"""

from typeroute import RouteRegistry
from tests.framework import MultiDriverTestBase


class TestLoginScenarios(MultiDriverTestBase):
    """Login routes discovered from the fixture package."""

    def create_registry(self) -> RouteRegistry:
        return RouteRegistry.from_package("tests.login")

    def test_login_status_returns_fixed_content(self, api):
        api_client, driver_name = api

        response = api_client.execute(api_client.get("/login_status"))

        assert response.status_code == 200
        assert response.content_type == "application/json"
        assert response.body == {
            "loggedIn": True,
            "user": {"username": "root", "roles": ["admin", "superadmin"]},
        }

    def test_failed_login_is_not_an_http_error(self, api):
        api_client, driver_name = api

        response = api_client.login("/login", {"username": "alice", "password": "x"})

        data = api_client.expect_json(response, 200)
        assert data == {"loggedIn": False, "user": {"username": "alice"}}

    def test_successful_login(self, api):
        api_client, driver_name = api

        response = api_client.login("/login", {"username": "root", "password": "secret"})

        assert api_client.expect_json(response)["loggedIn"] is True

    def test_login_with_form_body(self, api):
        api_client, driver_name = api

        response = api_client.submit_form("/login", {"username": "root", "password": "secret"})

        assert api_client.expect_json(response) == {"loggedIn": True, "user": {"username": "root"}}

    def test_login_from_query_string(self, api):
        api_client, driver_name = api

        request = api_client.post("/login").with_query(username="bob", password="x")
        response = api_client.execute(request)

        assert api_client.expect_json(response)["user"] == {"username": "bob"}

    def test_json_body_overrides_query(self, api):
        api_client, driver_name = api

        request = api_client.post("/login").with_query(username="bob").with_json_body(
            {"username": "root", "password": "x"}
        )
        response = api_client.execute(request)

        assert api_client.expect_json(response)["loggedIn"] is True

    def test_missing_username_is_bad_request(self, api):
        api_client, driver_name = api

        response = api_client.login("/login", {"password": "x"})

        api_client.expect_bad_request(response, "username")

    def test_empty_login_body_is_bad_request(self, api):
        api_client, driver_name = api

        response = api_client.execute(api_client.post("/login"))

        api_client.expect_bad_request(response, "username", "request")

    def test_invalid_json_body_contributes_nothing(self, api):
        api_client, driver_name = api

        request = api_client.post("/login").with_text_body("{not json", "application/json")
        response = api_client.execute(request)

        api_client.expect_bad_request(response, "username")

    def test_unknown_path_is_not_found(self, api):
        api_client, driver_name = api

        api_client.expect_not_found(api_client.execute(api_client.get("/logout")))

    def test_wrong_verb_is_not_found(self, api):
        api_client, driver_name = api

        api_client.expect_not_found(api_client.execute(api_client.get("/login")))
        api_client.expect_not_found(api_client.execute(api_client.delete("/login_status")))

    def test_paths_are_matched_exactly(self, api):
        api_client, driver_name = api

        api_client.expect_not_found(api_client.execute(api_client.get("/login_status/")))
        api_client.expect_not_found(api_client.execute(api_client.get("/LOGIN_STATUS")))
