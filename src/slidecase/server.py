"""Process entry point: wire settings, clients and tools, then serve over MCP.

Environment:
    SLIDECASE_API_ACCESS_TOKEN   OAuth2 bearer token for the Slides API
    SLIDECASE_TRANSPORT          stdio (default), sse or streamable-http
    SLIDECASE_LOG_FORMAT         console, json or none
"""

from __future__ import annotations

from slidecase.foundation.config import SlidecaseSettings, get_settings
from slidecase.foundation.registry import ToolRegistry
from slidecase.operations import SlidesServices
from slidecase.runtime.observability import configure_logging, get_logger
from slidecase.slides import GoogleTranslator, SlidesClient
from slidecase.tools import BatchUpdateTool

log = get_logger("server")


def build_services(settings: SlidecaseSettings) -> SlidesServices:
    token = settings.api.access_token.get_secret_value() if settings.api.access_token else None
    return SlidesServices(
        documents=SlidesClient(settings.api, access_token=token),
        translator=GoogleTranslator(settings.translate, access_token=token),
    )


def build_registry(services: SlidesServices) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(BatchUpdateTool(services))
    return registry


def main() -> None:
    from slidecase.ext.mcp import serve_mcp

    settings = get_settings()
    configure_logging(settings.logging.format, settings.logging.level)
    if settings.api.access_token is None:
        log.warning("no SLIDECASE_API_ACCESS_TOKEN configured, Slides API calls will be rejected")
    registry = build_registry(build_services(settings))
    serve_mcp(registry, name=settings.server_name, transport=settings.transport, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
