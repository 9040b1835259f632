"""Helpers wrapping the external BSBM tools."""
