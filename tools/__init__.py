# tools package for the X MCP server
# Modules in this package expose `get_tools(client) -> dict[str, dict]` mapping a tool name to
# {"func": async callable, "title": str, "description": str}. The server imports every module here
# and registers the returned callables through the tool dispatcher.
__all__ = []
