"""Test helper modules for the provision test suite.

- fakes: FakeRunner, a CommandRunner that records argv and simulates tools
- builders: small factories for server/platform/site inventories
- io_utils: YAML config writers for isolated projects
"""
from __future__ import annotations
