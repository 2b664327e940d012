"""design-kb - feature definitions and ubiquitous-language terms over MCP and REST."""

__version__ = "1.0.0"
