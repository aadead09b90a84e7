"""
Multi-driver test base for automatic driver discovery and execution.

Each test class inherits from MultiDriverTestBase and defines a single
create_registry() method; every test then runs once per enabled driver.
"""

from abc import ABC, abstractmethod
from typing import List

import pytest

from typeroute import RequestDispatcher, RouteRegistry
from .drivers import AsgiDriver, DispatcherDriver, DriverInterface
from .dsl import RestApiDsl


class MultiDriverTestBase(ABC):
    """
    Base class for multi-driver tests.

    Subclasses must implement create_registry() to define the routes under test.
    """

    # Override this in subclasses to control which drivers to test
    ENABLED_DRIVERS = [
        'direct',   # Calls RequestDispatcher.execute directly
        'asgi',     # Runs the ASGI adapter in-process
    ]

    @abstractmethod
    def create_registry(self) -> RouteRegistry:
        """Create the route registry under test."""

    @classmethod
    def get_available_drivers(cls) -> List[str]:
        """Get list of available driver names for this test class."""
        return list(cls.ENABLED_DRIVERS)

    @classmethod
    def create_driver(cls, driver_name: str, dispatcher: RequestDispatcher) -> DriverInterface:
        """Create a driver instance for the given driver name."""
        driver_map = {
            'direct': DispatcherDriver,
            'asgi': AsgiDriver,
        }
        if driver_name not in driver_map:
            pytest.skip(f"Driver '{driver_name}' not available. Available: {list(driver_map)}")
        return driver_map[driver_name](dispatcher)

    @pytest.fixture(scope="class")
    def api(self, request):
        """
        Parametrized fixture that provides the DSL client for each enabled driver.

        Uses class scope so the registry is discovered once per class and driver.
        """
        driver_name = request.param
        dispatcher = RequestDispatcher(self.create_registry())
        yield RestApiDsl(self.create_driver(driver_name, dispatcher)), driver_name

