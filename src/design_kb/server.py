"""design-kb MCP server.

Serves feature definitions and ubiquitous-language terms to MCP clients over
stdio. Uses FastMCP; the tool signatures below are the published schemas.
https://github.com/modelcontextprotocol/python-sdk
"""

import asyncio
import json
from typing import Any

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ResourceError, ToolError

from . import messages
from .config import (
    FEATURES_LIST_URI,
    JSON_MIME_TYPE,
    SERVER_NAME,
    SERVER_VERSION,
    STATISTICS_URI,
    TERMS_LIST_URI,
    Settings,
)
from .errors import ConfigError
from .logging_config import configure_logging, get_logger
from .services import KnowledgeBase, utc_timestamp

# Logs go to file only; stdout carries the MCP stdio stream
configure_logging(console_output=False)
logger = get_logger("server")

mcp = FastMCP(SERVER_NAME)

# Global state (initialized on first tool call)
_kb: KnowledgeBase | None = None
_initialized = False
_init_lock = asyncio.Lock()


async def _ensure_initialized() -> KnowledgeBase:
    """Lazy initialization of components with thread-safe locking."""
    global _kb, _initialized

    if _initialized:
        return _kb

    async with _init_lock:
        if _initialized:
            return _kb

        logger.info("Initializing design-kb server...")
        try:
            settings = Settings.from_env()
            _kb = KnowledgeBase.open(settings.data_file)

            stats = await _kb.statistics()
            if stats.ok:
                logger.info(
                    f"Loaded design document {settings.data_file}: "
                    f"{stats.value.feature_count} features, {stats.value.term_count} terms"
                )
            else:
                # Each call reloads the file, so a later fix is picked up
                logger.warning(f"Design document is not readable: {stats.error.message}")
            _initialized = True
        except Exception as e:
            logger.error(f"Failed to initialize design-kb server: {e}")
            raise

        return _kb


def _fail(message: str) -> ToolError:
    logger.warning(message)
    return ToolError(message)


# ============================================================================
# TOOLS
# ============================================================================


@mcp.tool()
async def add_or_update_feature(feature: dict[str, Any]) -> str:
    """Add a feature definition, or replace the one with the same name.

    Args:
        feature: Full feature record with sections feature {name, purpose,
                 userStories}, inputs, outputs, coreLogicSteps, errorHandling,
                 nonFunctionalRequirements and documentationNotes.
                 The name must start with a letter and contain only letters,
                 digits and underscores.
    """
    kb = await _ensure_initialized()

    checked = kb.add_or_update_feature.validate_input(feature)
    if not checked.ok:
        raise _fail(checked.error.message)

    result = await kb.add_or_update_feature.execute(feature)
    if not result.ok:
        raise _fail(result.error.message)

    return messages.feature_saved(feature["feature"]["name"].strip(), result.value.is_update)


@mcp.tool()
async def delete_feature(feature_name: str) -> str:
    """Delete a feature definition by name.

    Args:
        feature_name: Exact name of the feature to delete
    """
    kb = await _ensure_initialized()

    checked = kb.delete_feature.validate_input(feature_name)
    if not checked.ok:
        raise _fail(checked.error.message)

    result = await kb.delete_feature.execute(feature_name)
    if not result.ok:
        raise _fail(result.error.message)
    if not result.value.found:
        raise _fail(messages.feature_not_found(feature_name))

    return messages.feature_deleted(feature_name)


@mcp.tool()
async def add_or_update_term(term: dict[str, Any]) -> str:
    """Add a ubiquitous-language term, or replace the one with the same name.

    Args:
        term: Full term record with sections term {name, definition, aliases,
              context {boundedContext, scope}}, details {category, examples,
              ambiguitiesAndBoundaries}, relationships {relatedTerms,
              associatedFunctions} and implementation {codeMapping,
              dataStructureHint, constraints}.
              The name may contain Japanese or ASCII letters, digits, spaces,
              hyphens and underscores.
    """
    kb = await _ensure_initialized()

    checked = kb.add_or_update_term.validate_input(term)
    if not checked.ok:
        raise _fail(checked.error.message)

    result = await kb.add_or_update_term.execute(term)
    if not result.ok:
        raise _fail(result.error.message)

    return messages.term_saved(term["term"]["name"].strip(), result.value.is_update)


@mcp.tool()
async def delete_term(term_name: str) -> str:
    """Delete a ubiquitous-language term by name.

    Args:
        term_name: Exact name of the term to delete
    """
    kb = await _ensure_initialized()

    checked = kb.delete_term.validate_input(term_name)
    if not checked.ok:
        raise _fail(checked.error.message)

    result = await kb.delete_term.execute(term_name)
    if not result.ok:
        raise _fail(result.error.message)
    if not result.value.found:
        raise _fail(messages.term_not_found(term_name))

    return messages.term_deleted(term_name)


@mcp.tool()
async def get_details(
    feature_names: list[str] | None = None,
    term_names: list[str] | None = None,
) -> str:
    """Get full records for the named features and terms.

    Names that do not exist are listed separately, not treated as errors.
    Browse design://features/list and design://terms/list for available names.

    Args:
        feature_names: Feature names to fetch (optional)
        term_names: Term names to fetch (optional)
    """
    kb = await _ensure_initialized()

    checked = kb.get_details.validate_input(feature_names, term_names)
    if not checked.ok:
        raise _fail(checked.error.message)

    result = await kb.get_details.execute(feature_names, term_names)
    if not result.ok:
        raise _fail(result.error.message)

    details = result.value
    payload = json.dumps(details.to_wire(), indent=2, ensure_ascii=False)
    return f"{messages.details_summary(details)}\n\n{payload}"


# ============================================================================
# RESOURCES
# ============================================================================


def _resource_body(description: str, data: Any) -> str:
    return json.dumps(
        {"description": description, "data": data, "timestamp": utc_timestamp()},
        indent=2,
        ensure_ascii=False,
    )


@mcp.resource(
    FEATURES_LIST_URI,
    name="Feature list",
    description="Names and purposes of all feature definitions",
    mime_type=JSON_MIME_TYPE,
)
async def features_list() -> str:
    kb = await _ensure_initialized()
    result = await kb.features.get_list()
    if not result.ok:
        raise ResourceError(result.error.message)
    return _resource_body("Feature list", [s.to_wire() for s in result.value])


@mcp.resource(
    TERMS_LIST_URI,
    name="Term list",
    description="Names, definitions and categories of all ubiquitous-language terms",
    mime_type=JSON_MIME_TYPE,
)
async def terms_list() -> str:
    kb = await _ensure_initialized()
    result = await kb.terms.get_list()
    if not result.ok:
        raise ResourceError(result.error.message)
    return _resource_body("Term list", [s.to_wire() for s in result.value])


@mcp.resource(
    STATISTICS_URI,
    name="Statistics",
    description="Number of feature definitions and terms in the design document",
    mime_type=JSON_MIME_TYPE,
)
async def statistics() -> str:
    kb = await _ensure_initialized()
    result = await kb.statistics()
    if not result.ok:
        raise ResourceError(result.error.message)
    return _resource_body("Design document statistics", result.value.to_wire())


# ============================================================================
# ENTRY POINT
# ============================================================================


def main():
    """Run the MCP server with stdio transport."""
    import sys

    if len(sys.argv) > 1:
        if sys.argv[1] in ("--help", "-h"):
            print(f"""design-kb - feature and ubiquitous-language knowledge base

Usage: design-kb-mcp [OPTIONS]

Runs as an MCP server over stdio. Launch it from an MCP-compatible client.

Options:
  -h, --help     Show this help message
  -V, --version  Show version number

Environment:
  DESIGN_KB_DATA_FILE   Design document path (default ~/.design-kb/design.json)
  DESIGN_KB_DATA_DIR    Directory holding design.json
  DESIGN_KB_LOG_DIR     Log directory (default ~/.design-kb/logs)
  DESIGN_KB_LOG_LEVEL   Log level (default INFO)

Resources:
  {FEATURES_LIST_URI}
  {TERMS_LIST_URI}
  {STATISTICS_URI}
""")
            return
        elif sys.argv[1] in ("--version", "-V"):
            print(f"{SERVER_NAME} {SERVER_VERSION}")
            return

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(log_dir=settings.log_dir, log_level=settings.log_level, console_output=False)
    logger.info(f"Starting {SERVER_NAME} {SERVER_VERSION} on stdio")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
