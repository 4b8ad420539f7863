"""Verigate: bot-check redirect gateway in front of the Anura verification service."""

__version__ = "1.0.0"
