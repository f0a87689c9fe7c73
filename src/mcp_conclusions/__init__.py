"""MCP Conclusions - durable, searchable why/what records for AI-assisted work."""

__version__ = "0.1.0"
