from contextlib import asynccontextmanager
from importlib import import_module
from pathlib import Path
import inspect
import logging
import pkgutil
import sys
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import ValidationError as PydanticValidationError

from core.client import XClient
from core.config import get_config
from core.credentials import load_credentials
from core.dispatcher import ToolDispatcher, ToolEntry, ToolResponse
from core.errors import ConfigurationError, UnknownToolError, ValidationError
from core.logging_config import install_redaction, setup_logging

__version__ = "0.1.0"

logger = logging.getLogger("server")

TOOLS_PACKAGE = "tools"
tools_path = Path(__file__).resolve().parent / TOOLS_PACKAGE

###################################################### MCP Tools ######################################################


def load_tool_mapping(client: XClient) -> Dict[str, Any]:
    """Import every module in the tools package and merge what their `get_tools` return."""
    mapping: Dict[str, Any] = {}
    for _finder, name, _ispkg in pkgutil.iter_modules([str(tools_path)]):
        if name.startswith("_"):
            continue
        module_name = f"{TOOLS_PACKAGE}.{name}"
        mod = import_module(module_name)
        if not hasattr(mod, "get_tools"):
            logger.warning(f"Tools module {module_name} has no get_tools(); skipping")
            continue
        if len(inspect.signature(mod.get_tools).parameters) > 0:
            module_tools = mod.get_tools(client)
        else:
            module_tools = mod.get_tools()
        for tool_name in module_tools:
            if tool_name in mapping:
                raise ValueError(f"Tool {tool_name} is defined twice (second time in {module_name})")
        mapping.update(module_tools)
        logger.info(f"Imported tools module: {module_name} ({', '.join(module_tools)})")
    return mapping


def build_dispatcher(client: XClient) -> ToolDispatcher:
    return ToolDispatcher.from_mapping(load_tool_mapping(client))


def make_wrapper(dispatcher: ToolDispatcher, entry: ToolEntry):
    """FastMCP-facing callable that routes through the dispatcher.

    Carries the handler's parameters so the published input schema keeps types,
    defaults and bounds. Error responses are raised as ToolError so the runtime
    receives an MCP error result instead of a normal one.
    """

    async def _wrapped(**call_kwargs):
        response = await dispatcher.dispatch(entry.name, call_kwargs)
        if response.is_error:
            raise ToolError(response.text)
        return response.text

    _wrapped.__signature__ = entry.signature.replace(return_annotation=str)
    _wrapped.__name__ = entry.name.value
    _wrapped.__doc__ = entry.description
    return _wrapped


def schema_error(error: PydanticValidationError) -> ValidationError:
    """First failure from FastMCP's argument model, named the way the dispatcher names it."""
    errors = error.errors()
    first = errors[0] if errors else {}
    loc = first.get("loc") or ()
    field = str(loc[0]) if loc else None
    if first.get("type") == "missing":
        return ValidationError(f"Missing required argument: {field}", field=field)
    return ValidationError(f"Argument '{field}' is invalid: {first.get('msg', 'invalid value')}", field=field)


class XFastMCP(FastMCP):
    """FastMCP whose failed tool calls always carry the dispatcher's error envelope.

    FastMCP checks arguments against the published schema before the handler
    runs, and prefixes handler failures with its own text.
    """

    dispatcher: Optional[ToolDispatcher] = None

    async def call_tool(self, name: str, arguments: Dict[str, Any]):
        if self.dispatcher is not None and name not in self.dispatcher.names():
            raise ToolError(ToolResponse.failure(UnknownToolError(name)).text)
        try:
            return await super().call_tool(name, arguments)
        except ToolError as e:
            cause = e.__cause__
            if isinstance(cause, PydanticValidationError):
                failure = schema_error(cause)
                logger.warning(f"Tool {name} failed: {failure.error_type}: {failure.message}")
                raise ToolError(ToolResponse.failure(failure).text) from cause
            if isinstance(cause, ToolError):
                # already an envelope raised by make_wrapper
                raise ToolError(str(cause)) from cause
            raise


def make_lifespan(client: XClient):
    @asynccontextmanager
    async def lifespan(_server: FastMCP):
        try:
            yield {}
        finally:
            await client.aclose()
            logger.info("Closed X API connection pool.")

    return lifespan


def create_server(client: XClient, config: Optional[Dict[str, Any]] = None) -> XFastMCP:
    config = config if config is not None else get_config()
    mcp = XFastMCP(
        config.get("server_name") or "x-mcp-server",
        instructions=config.get("instructions"),
        lifespan=make_lifespan(client),
    )

    logger.info("Loading MCP tools...")
    dispatcher = build_dispatcher(client)
    mcp.dispatcher = dispatcher
    for entry in dispatcher.entries:
        mcp.add_tool(
            make_wrapper(dispatcher, entry),
            name=entry.name.value,
            title=entry.title,
            description=entry.description,
        )
        logger.info(f"Added tool: {entry.name.value} (title={entry.title})")
    logger.info(f"Total tools registered: {len(dispatcher.entries)} , tool names: {dispatcher.names()}")
    return mcp


###################################################### Startup ######################################################


def main() -> None:
    load_dotenv()  # Loads variables from .env into the environment; real env vars win
    config = get_config()
    log_cfg = config.get("logging") or {}
    setup_logging(
        logs_dir=log_cfg.get("logs_dir"),
        level=log_cfg.get("level", "INFO"),
        log_to_file=bool(log_cfg.get("log_to_file", True)),
    )
    logger.info(f"X MCP server {__version__} bootstrap starting.")

    try:
        credentials = load_credentials()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        print(f"Configuration error: {e.message}", file=sys.stderr)
        sys.exit(1)
    install_redaction(credentials.secret_values())
    logger.info(f"Authenticating with {credentials.mode} credentials (posting enabled: {credentials.can_post})")

    client = XClient(credentials, config)
    mcp = create_server(client, config)

    logger.info("Starting MCP server on stdio...")
    try:
        mcp.run(transport="stdio")
        logger.info("MCP server shut down.")
    except Exception:
        logger.exception("Unhandled exception running MCP server")
        print("Unhandled exception occurred. See logs/ for details.", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
