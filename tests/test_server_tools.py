"""Tests for the MCP server tools and resources in server.py.

Tests call the tool functions directly after injecting a knowledge base on a
temporary document into the server globals.
"""

import json

import pytest
from conftest import make_feature, make_term
from mcp.server.fastmcp.exceptions import ResourceError, ToolError

import design_kb.server as server_module
from design_kb.server import (
    add_or_update_feature,
    add_or_update_term,
    delete_feature,
    delete_term,
    features_list,
    get_details,
    mcp,
    statistics,
    terms_list,
)
from design_kb.services import KnowledgeBase


@pytest.fixture
def kb(data_file):
    """Inject a knowledge base on a temp document into the server globals."""
    knowledge_base = KnowledgeBase.open(data_file)
    server_module._kb = knowledge_base
    server_module._initialized = True

    yield knowledge_base

    server_module._kb = None
    server_module._initialized = False


# ============================================================================
# FEATURE TOOLS
# ============================================================================


class TestAddOrUpdateFeature:
    async def test_add_then_update(self, kb):
        assert await add_or_update_feature(make_feature()) == "Added feature 'Checkout'."
        assert await add_or_update_feature(make_feature()) == "Updated feature 'Checkout'."
        assert (await kb.features.count()).value == 1

    async def test_invalid_name_is_tool_error(self, kb):
        with pytest.raises(ToolError, match="invalid format"):
            await add_or_update_feature(make_feature("not valid"))

    async def test_invalid_record_lists_errors(self, kb):
        payload = make_feature()
        payload["inputs"] = [{"name": ""}]
        with pytest.raises(ToolError) as exc_info:
            await add_or_update_feature(payload)
        message = str(exc_info.value)
        assert "inputs[0].name: must not be blank" in message
        assert "inputs[0].purpose" in message

    async def test_storage_error_is_tool_error(self, kb, write_document):
        write_document("not json")
        with pytest.raises(ToolError, match="Failed to load design document"):
            await add_or_update_feature(make_feature())


class TestDeleteFeature:
    async def test_delete(self, kb):
        await add_or_update_feature(make_feature())
        assert await delete_feature("Checkout") == "Deleted feature 'Checkout'."

    async def test_not_found(self, kb):
        with pytest.raises(ToolError, match="Feature 'Checkout' was not found."):
            await delete_feature("Checkout")

    async def test_invalid_name(self, kb):
        with pytest.raises(ToolError):
            await delete_feature("")


# ============================================================================
# TERM TOOLS
# ============================================================================


class TestTermTools:
    async def test_add_update_delete(self, kb):
        assert await add_or_update_term(make_term()) == "Added term '注文'."
        assert await add_or_update_term(make_term()) == "Updated term '注文'."
        assert await delete_term("注文") == "Deleted term '注文'."

    async def test_delete_missing(self, kb):
        with pytest.raises(ToolError, match="Term '在庫' was not found."):
            await delete_term("在庫")

    async def test_missing_term_section(self, kb):
        with pytest.raises(ToolError, match="'term' must be an object"):
            await add_or_update_term({"definition": "x"})


# ============================================================================
# GET DETAILS
# ============================================================================


class TestGetDetails:
    async def test_summary_then_json(self, kb):
        await add_or_update_feature(make_feature())
        await add_or_update_term(make_term())

        text = await get_details(feature_names=["Checkout", "Refund"], term_names=["注文"])

        summary, _, payload = text.partition("\n\n{")
        assert summary.startswith("Retrieved details.")
        assert "Features (1):\n- Checkout: Turn a shopping cart into a paid order." in summary
        assert "Terms (1):\n- 注文: A confirmed request" in summary
        assert "Not found:\nFeatures: Refund" in summary
        assert summary.index("Features (1)") < summary.index("Terms (1)") < summary.index("Not found")

        details = json.loads("{" + payload)
        assert details["features"][0]["feature"]["name"] == "Checkout"
        assert details["notFound"] == {"featureNames": ["Refund"], "termNames": []}

    async def test_nothing_requested_points_to_resources(self, kb):
        text = await get_details()
        assert "design://features/list" in text
        assert '"notFound"' in text

    async def test_invalid_names(self, kb):
        with pytest.raises(ToolError):
            await get_details(feature_names=["bad name"])


# ============================================================================
# RESOURCES
# ============================================================================


class TestResources:
    async def test_features_list(self, kb):
        await add_or_update_feature(make_feature())
        body = json.loads(await features_list())
        assert body["description"] == "Feature list"
        assert body["data"] == [{"name": "Checkout", "purpose": "Turn a shopping cart into a paid order."}]
        assert "timestamp" in body

    async def test_terms_list(self, kb):
        await add_or_update_term(make_term())
        body = json.loads(await terms_list())
        assert body["data"][0]["category"] == "Entity"

    async def test_statistics(self, kb):
        await add_or_update_feature(make_feature())
        body = json.loads(await statistics())
        assert body["data"] == {"featureCount": 1, "termCount": 0}

    async def test_repository_failure(self, kb, write_document):
        write_document("{")
        with pytest.raises(ResourceError, match="Failed to load design document"):
            await statistics()


class TestProtocol:
    async def test_tools_are_registered(self):
        tools = {tool.name: tool for tool in await mcp.list_tools()}
        assert set(tools) == {
            "add_or_update_feature",
            "delete_feature",
            "add_or_update_term",
            "delete_term",
            "get_details",
        }
        assert "feature_name" in tools["delete_feature"].inputSchema["properties"]

    async def test_resources_are_registered(self):
        uris = {str(r.uri).rstrip("/") for r in await mcp.list_resources()}
        assert uris == {"design://features/list", "design://terms/list", "design://statistics"}

    async def test_unknown_tool(self):
        with pytest.raises(ToolError, match="Unknown tool"):
            await mcp.call_tool("nope", {})

    async def test_unknown_resource(self):
        with pytest.raises(Exception, match="Unknown resource"):
            await mcp.read_resource("design://nope")

    async def test_call_through_protocol(self, kb):
        await mcp.call_tool("add_or_update_feature", {"feature": make_feature()})
        assert (await kb.features.count()).value == 1
