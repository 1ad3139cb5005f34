"""Repository workspace helpers."""
