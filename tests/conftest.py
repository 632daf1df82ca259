"""Shared test configuration for the claim registry."""

from tests.fixtures import *  # noqa: F401,F403
