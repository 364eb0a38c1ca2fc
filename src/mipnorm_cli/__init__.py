"""Command line interface for mipnorm."""

from .cli import app, main

__all__ = ["app", "main"]
