"""Typer command groups of the bsbm CLI."""
