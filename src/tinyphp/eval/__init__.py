"""Evaluator helper modules for the tinyphp runtime."""

__all__ = [
    "bind",
    "blocks",
    "chains",
    "common",
    "expr",
    "fn",
    "helpers",
    "loops",
]
