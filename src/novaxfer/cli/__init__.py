"""
CLI Module - Command-line interface for NovaXfer.
=================================================

Usage:
    novaxfer --help
    novaxfer index
    novaxfer equivalencies MTH 263 -i UVA

Components:
- main: Typer CLI application
"""

from novaxfer.cli.main import app, cli

__all__ = ["app", "cli"]
