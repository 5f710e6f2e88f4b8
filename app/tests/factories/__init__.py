"""Test data factories for deterministic test data generation."""

from tests.factories.catalog import (
    make_expression,
    make_greeting_expression,
    make_project,
    make_translation,
)

__all__ = [
    "make_expression",
    "make_greeting_expression",
    "make_project",
    "make_translation",
]
