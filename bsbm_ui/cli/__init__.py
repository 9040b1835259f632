"""Typer entrypoint for the bsbm CLI."""
