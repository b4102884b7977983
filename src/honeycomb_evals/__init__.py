"""Evaluation harness for Honeycomb MCP server tools."""

__version__ = "0.1.0"
