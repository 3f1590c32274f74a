"""Fake/mock implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeSourcePort: Canned release, tag and commit listings
- FakeStateStorePort: In-memory marker persistence
- FakeCategorizerPort: Canned categorization responses
- FakeDeliveryPort: Captured payloads for assertion
- FakeRunPort: Captured run invocations
"""

from .categorizer import FakeCategorizerPort
from .delivery import FakeDeliveryPort
from .run import FakeRunPort
from .source import FakeSourcePort
from .store import FakeStateStorePort

__all__ = [
    "FakeCategorizerPort",
    "FakeDeliveryPort",
    "FakeRunPort",
    "FakeSourcePort",
    "FakeStateStorePort",
]
