"""
Test framework for dispatch testing using a 4-layer architecture.
"""

from .dsl import RestApiDsl, HttpRequest, HttpResponse
from .drivers import DispatcherDriver, AsgiDriver
from .multi_driver_base import MultiDriverTestBase

__all__ = [
    'RestApiDsl',
    'HttpRequest',
    'HttpResponse',
    'DispatcherDriver',
    'AsgiDriver',
    'MultiDriverTestBase',
]
