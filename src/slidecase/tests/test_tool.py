"""Tests for BaseTool, the registry and the MCP-facing server surface."""

from __future__ import annotations

import inspect
from typing import ClassVar

import orjson
import pytest
from pydantic import BaseModel

from slidecase.batch import BatchUpdateParams
from slidecase.ext.mcp.server import ToolServer, _tool_signature
from slidecase.foundation.core import BaseTool, ToolMetadata
from slidecase.foundation.errors import ErrorCode, ToolException
from slidecase.foundation.registry import ToolRegistry
from slidecase.operations import SlidesServices
from slidecase.tools import BatchUpdateTool

from .fakes import FakeDocumentService


class EchoParams(BaseModel):
    text: str
    fail: bool = False


class EchoTool(BaseTool[EchoParams]):
    metadata: ClassVar[ToolMetadata] = ToolMetadata(name="echo", description="Echo text back to the caller", category="test")
    params_schema: ClassVar[type[EchoParams]] = EchoParams

    async def _async_run(self, params: EchoParams) -> str:
        if params.fail:
            raise ToolException.create("echo", "asked to fail", ErrorCode.INVALID_PARAMS, recoverable=False)
        return params.text


class InMemoryServer(ToolServer):
    def run(self, **kwargs: object) -> None:
        raise NotImplementedError


@pytest.fixture
def registry(services: SlidesServices) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(BatchUpdateTool(services))
    registry.register(EchoTool())
    return registry


# ─────────────────────────────────────────────────────────────────────────────
# BaseTool
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_arun_result() -> None:
    tool = EchoTool()
    assert (await tool.arun_result(EchoParams(text="hi"))).unwrap() == "hi"
    error = (await tool.arun_result(EchoParams(text="hi", fail=True))).unwrap_err()
    assert error.code is ErrorCode.INVALID_PARAMS
    assert error.tool_name == "echo"


@pytest.mark.asyncio
async def test_arun_renders_unexpected_exceptions() -> None:
    class BrokenTool(EchoTool):
        async def _async_run(self, params: EchoParams) -> str:
            raise RuntimeError("disk on fire")

    output = await BrokenTool().arun(EchoParams(text="hi"))
    assert "Execution failed: disk on fire" in output
    assert "(echo)" in output


def test_metadata_constraints() -> None:
    with pytest.raises(ValueError):
        ToolMetadata(name="Bad-Name", description="long enough description")
    with pytest.raises(ValueError):
        ToolMetadata(name="ok", description="short")


# ─────────────────────────────────────────────────────────────────────────────
# Registry
# ─────────────────────────────────────────────────────────────────────────────


def test_registry_lookup(registry: ToolRegistry) -> None:
    assert len(registry) == 2
    assert "batch_update" in registry
    assert registry.get("echo").metadata.category == "test"
    assert registry.get("missing") is None
    assert [t.metadata.name for t in registry.list_tools(category="slides")] == ["batch_update"]
    with pytest.raises(ValueError, match="already registered"):
        registry.register(EchoTool())


@pytest.mark.asyncio
async def test_execute_batch_update(registry: ToolRegistry, documents: FakeDocumentService) -> None:
    output = await registry.execute("batch_update", {
        "presentation_id": "pres-1",
        "operations": [{"kind": "delete_object", "parameters": {"object_id": "img_a"}}],
    })
    report = orjson.loads(output)
    assert report["success_count"] == 1
    assert report["api_call_count"] == 1
    assert documents.batch_calls == [[{"deleteObject": {"objectId": "img_a"}}]]


@pytest.mark.asyncio
async def test_request_errors_render(registry: ToolRegistry) -> None:
    output = await registry.execute("batch_update", {"presentation_id": "pres-1", "operations": []})
    assert "no operations provided" in output
    assert "INVALID_PARAMS" in output


@pytest.mark.asyncio
async def test_unknown_tool(registry: ToolRegistry) -> None:
    output = await registry.execute("nope", {})
    assert "not found" in output


@pytest.mark.asyncio
async def test_execute_returns_report_object(services: SlidesServices) -> None:
    tool = BatchUpdateTool(services)
    report = await tool.execute(BatchUpdateParams(
        presentation_id="pres-1",
        operations=[{"kind": "delete_object", "parameters": {"object_id": "img_a"}}],
    ))
    assert report.success_count == 1


# ─────────────────────────────────────────────────────────────────────────────
# Server
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_server_invoke(registry: ToolRegistry) -> None:
    server = InMemoryServer("test", registry)
    assert await server.invoke("echo", {"text": "hello"}) == "hello"
    assert "Invalid parameters" in await server.invoke("echo", {})
    assert "not found" in await server.invoke("missing", {})


def test_server_lists_schemas(registry: ToolRegistry) -> None:
    tools = {t["name"]: t for t in InMemoryServer("test", registry).list_tools()}
    assert set(tools) == {"batch_update", "echo"}
    assert "operations" in tools["batch_update"]["parameters"]["properties"]


def test_tool_signature_mirrors_fields() -> None:
    signature = _tool_signature(BatchUpdateParams)
    assert list(signature.parameters) == ["presentation_id", "operations", "on_error"]
    assert all(p.kind is inspect.Parameter.KEYWORD_ONLY for p in signature.parameters.values())
    assert signature.parameters["operations"].default == []
    assert _tool_signature(EchoParams).parameters["text"].default is inspect.Parameter.empty
