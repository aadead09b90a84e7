"""
Typed response envelopes.
"""

from typing import ClassVar, Optional, Type

from .content import Content


class Response:
    """A response variant: fixed status and description, instance-specific content.

    Subclasses declare the three constants and are constructed with a content
    value, e.g.::

        class LoginStatusResponse(Response):
            STATUS = 200
            DESCRIPTION = "Returns login status"
            CONTENT = LoggedInContent
    """

    STATUS: ClassVar[int] = 0
    DESCRIPTION: ClassVar[str] = ""
    CONTENT: ClassVar[Optional[Type[Content]]] = None

    def __init__(self, content: Content):
        self.content = content

    @property
    def status_code(self) -> int:
        return type(self).STATUS

    @property
    def description(self) -> str:
        return type(self).DESCRIPTION
