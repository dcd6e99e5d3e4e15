"""toolveil: stdio MCP proxy that hides selected tools from `tools/list` responses."""

__version__ = "0.1.0"
