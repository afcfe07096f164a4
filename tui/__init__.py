"""Textual render surface for the onevox console."""
