"""Command scopes used by the tests."""
