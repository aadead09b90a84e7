"""
Login example for typeroute.

This example demonstrates:
- Verb-marked handler methods on a Route class
- Object parameters hydrated from the whole payload
- Inline property objects and typed containers in JSON content
- Error mapping for missing fields and unknown routes
- Generating the OpenAPI document for the same classes
"""

import json
from typing import Optional

from typeroute import (
    GeneratorSettings,
    JsonContent,
    Property,
    Request,
    RequestDispatcher,
    Response,
    Route,
    RouteRegistry,
    SchemaSynthesizer,
    StringArray,
    get,
    post,
)


class UserProperty(Property):
    username: str
    roles: StringArray


class LoggedInContent(JsonContent):
    loggedIn: bool
    user: Optional[UserProperty]


class LoginStatusResponse(Response):
    STATUS = 200
    DESCRIPTION = "Returns login status"
    CONTENT = LoggedInContent


class LoginRequest:
    username: str
    password: str


# In-memory credential store for this example
accounts = {"root": ("secret", ["admin", "superadmin"])}


class MainRoute(Route):
    @get
    def login_status(self) -> LoginStatusResponse:
        content = LoggedInContent()
        content.loggedIn = False
        return LoginStatusResponse(content)

    @post
    def login(self, request: LoginRequest) -> LoginStatusResponse:
        password, roles = accounts.get(request.username, (None, []))

        user = UserProperty()
        user.username = request.username
        user.roles = StringArray(roles)

        content = LoggedInContent()
        content.loggedIn = password is not None and password == request.password
        content.user = user
        return LoginStatusResponse(content)


def main():
    registry = RouteRegistry()
    registry.discover([MainRoute])
    dispatcher = RequestDispatcher(registry)

    # Explicit payload mapping
    result = dispatcher.handle("/login", "POST", {"username": "root", "password": "secret"})
    print(result.status_line)
    print(f"Content-Type: {result.content_type}")
    print(result.body)
    print()

    # Raw request with a JSON body
    result = dispatcher.execute(
        Request(
            method="POST",
            path="/login",
            headers={"Content-Type": "application/json"},
            body=json.dumps({"password": "x"}),
        )
    )
    print(f"POST /login without username: {result.status_code}")
    print(result.body)
    print()

    result = dispatcher.handle("/logout", "GET")
    print(f"GET /logout: {result.status_code} {result.body}")
    print()

    synthesizer = SchemaSynthesizer(GeneratorSettings(title="Login API"))
    synthesizer.scan([LoginStatusResponse, MainRoute])
    print(synthesizer.to_json())


if __name__ == "__main__":
    main()
