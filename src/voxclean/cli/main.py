"""Grupo principal de comandos CLI do voxclean."""

from __future__ import annotations

import click

import voxclean


@click.group()
@click.version_option(version=voxclean.__version__, prog_name="voxclean")
def cli() -> None:
    """voxclean — Limpeza offline de gravacoes de voz para transcricao."""
