"""Core of the X MCP server: credentials, OAuth 1.0a signing, the X API client and tool dispatch."""
