"""CLI do voxclean.

Registra todos os comandos no grupo principal.
"""

from voxclean.cli.clean import clean
from voxclean.cli.main import cli

__all__ = [
    "clean",
    "cli",
]
