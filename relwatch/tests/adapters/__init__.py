"""Integration tests for adapter implementations.

These tests exercise adapters against mocked external systems
to validate correct translation between core domain models and
external formats.
"""
