"""Tests for MCP tool definitions and execution."""

import pytest

from mcp_conclusions.tools import execute_tool, make_tools

# Fixtures temp_project, config, store, and conclusion_file are provided by conftest.py


class TestMakeTools:
    """Tests for make_tools function."""

    def test_make_tools_returns_all_tools(self, store):
        """make_tools returns all expected tool definitions."""
        tools = make_tools(store)

        assert set(tools) == {
            "conclusion_record",
            "conclusion_search",
            "interaction_summary",
            "list_templates",
        }

    def test_tool_definitions_have_required_fields(self, store):
        """Each tool has name, description, and inputSchema."""
        for name, tool in make_tools(store).items():
            assert tool["name"] == name
            assert tool["description"]
            assert tool["inputSchema"]["type"] == "object"

    def test_record_required_arguments(self, store):
        schema = make_tools(store)["conclusion_record"]["inputSchema"]
        assert schema["required"] == ["projectPath", "whyChange", "whatChange"]
        assert schema["properties"]["impactLevel"]["enum"] == ["low", "medium", "high"]

    def test_description_names_configured_file(self, store):
        description = make_tools(store)["conclusion_record"]["description"]
        assert "conclusion-data/conclusion.md" in description


class TestConclusionRecordTool:
    """Tests for the conclusion_record tool."""

    @pytest.mark.asyncio
    async def test_record_minimal(self, store, temp_project, conclusion_file):
        """Recording with only the required arguments succeeds."""
        result = await execute_tool(store, "conclusion_record", {
            "projectPath": str(temp_project),
            "whyChange": "needed auth",
            "whatChange": "added JWT middleware",
        })

        assert result["success"] is True
        assert result["savedFilesCount"] == 1
        assert result["savedFiles"][0]["type"] == "conclusion"
        assert result["savedFiles"][0]["filePath"] == str(conclusion_file)
        assert result["conclusionId"].startswith("conclusion-")
        assert result["message"] == f"Conclusion saved to {conclusion_file}"
        assert conclusion_file.exists()

    @pytest.mark.asyncio
    async def test_record_with_options(self, store, temp_project, conclusion_file):
        """camelCase options are applied to the rendered entry."""
        result = await execute_tool(store, "conclusion_record", {
            "projectPath": str(temp_project),
            "whyChange": "slow dashboard",
            "whatChange": "added query caching",
            "category": "perf",
            "impactLevel": "high",
            "affectedFiles": ["src/dashboard.py"],
            "tags": ["cache"],
        })

        assert result["success"] is True
        content = conclusion_file.read_text(encoding="utf-8")
        assert content.startswith("## ⚡ perf | high")
        assert "`src/dashboard.py`" in content

    @pytest.mark.asyncio
    async def test_record_with_thoughts(self, store, temp_project):
        result = await execute_tool(store, "conclusion_record", {
            "projectPath": str(temp_project),
            "whyChange": "why",
            "whatChange": "what",
            "thoughts": [
                {"thought": "first idea", "thoughtNumber": 1},
                {"thought": "second idea", "thoughtNumber": 2, "branchId": "alt"},
            ],
        })

        assert result["savedFilesCount"] == 3
        assert [f["type"] for f in result["savedFiles"]] == ["thought", "thought", "conclusion"]
        thoughts = (temp_project.resolve() / "conclusion-data" / "thoughts.md").read_text(encoding="utf-8")
        assert "## Thought 2 (alt)" in thoughts

    @pytest.mark.asyncio
    async def test_record_empty_project_path(self, store):
        """Empty projectPath is reported as an invalid path."""
        result = await execute_tool(store, "conclusion_record", {
            "projectPath": "",
            "whyChange": "why",
            "whatChange": "what",
        })

        assert result["success"] is False
        assert result["error_type"] == "invalid_path"
        assert "suggestion" in result

    @pytest.mark.asyncio
    async def test_record_missing_why(self, store, temp_project):
        result = await execute_tool(store, "conclusion_record", {
            "projectPath": str(temp_project),
            "whatChange": "what",
        })

        assert result["success"] is False
        assert result["error_type"] == "invalid_arguments"
        assert "whyChange" in result["error"]

    @pytest.mark.asyncio
    async def test_record_write_failure(self, store, temp_project, monkeypatch):
        """A failed write is reported, not raised."""
        def fail(*args, **kwargs):
            raise OSError("read-only file system")

        monkeypatch.setattr("mcp_conclusions.storage.atomic_write_text", fail)
        result = await execute_tool(store, "conclusion_record", {
            "projectPath": str(temp_project),
            "whyChange": "why",
            "whatChange": "what",
        })

        assert result["success"] is False
        assert result["error_type"] == "io_failure"
        assert "read-only file system" in result["error"]
        assert result["savedFilesCount"] == 0
        assert "conclusionId" not in result

    @pytest.mark.asyncio
    async def test_record_bad_thought(self, store, temp_project):
        result = await execute_tool(store, "conclusion_record", {
            "projectPath": str(temp_project),
            "whyChange": "why",
            "whatChange": "what",
            "thoughts": [{"thought": "x", "thoughtNumber": "not a number"}],
        })

        assert result["success"] is False
        assert result["error_type"] == "invalid_arguments"


class TestConclusionSearchTool:
    """Tests for the conclusion_search tool."""

    @pytest.mark.asyncio
    async def test_search_returns_ranked_ids(self, store, temp_project):
        """Results are ordered by relevance and carry metadata."""
        once = await execute_tool(store, "conclusion_record", {
            "projectPath": str(temp_project),
            "whyChange": "security",
            "whatChange": "added authentication",
        })
        twice = await execute_tool(store, "conclusion_record", {
            "projectPath": str(temp_project),
            "whyChange": "authentication bugs",
            "whatChange": "rewrote authentication",
            "tags": ["auth"],
        })

        result = await execute_tool(store, "conclusion_search", {"query": "authentication"})

        assert result["success"] is True
        assert result["count"] == 2
        assert result["ids"] == [twice["conclusionId"], once["conclusionId"]]
        assert result["results"][0]["tags"] == ["auth"]

    @pytest.mark.asyncio
    async def test_search_limit(self, store, temp_project):
        for _ in range(3):
            await execute_tool(store, "conclusion_record", {
                "projectPath": str(temp_project),
                "whyChange": "why",
                "whatChange": "tuned logging",
            })

        result = await execute_tool(store, "conclusion_search", {"query": "logging", "limit": 1})
        assert result["count"] == 1

    @pytest.mark.asyncio
    async def test_search_no_results(self, store):
        result = await execute_tool(store, "conclusion_search", {"query": "nothing"})
        assert result == {"success": True, "count": 0, "ids": [], "results": []}

    @pytest.mark.asyncio
    async def test_search_blank_query(self, store):
        result = await execute_tool(store, "conclusion_search", {"query": "  "})
        assert result["error_type"] == "invalid_arguments"


class TestInteractionSummaryTool:
    """Tests for the interaction_summary tool."""

    @pytest.mark.asyncio
    async def test_summary_appended(self, store, temp_project, conclusion_file):
        result = await execute_tool(store, "interaction_summary", {
            "projectPath": str(temp_project),
            "thoughtNumber": 1,
            "totalThoughts": 3,
            "what": "drafted plan",
            "why": "scope the work",
        })

        assert result["success"] is True
        assert result["savedFile"]["filePath"] == str(conclusion_file)
        assert "## Interaction Summary 1/3" in conclusion_file.read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_summary_empty_path(self, store):
        result = await execute_tool(store, "interaction_summary", {
            "projectPath": "",
            "thoughtNumber": 1,
            "totalThoughts": 3,
            "what": "x",
            "why": "y",
        })

        assert result["success"] is False
        assert result["error_type"] == "invalid_path"

    @pytest.mark.asyncio
    async def test_summary_write_failure(self, store, temp_project, monkeypatch):
        def fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("mcp_conclusions.storage.atomic_write_text", fail)
        result = await execute_tool(store, "interaction_summary", {
            "projectPath": str(temp_project),
            "thoughtNumber": 1,
            "totalThoughts": 3,
            "what": "x",
            "why": "y",
        })

        assert result["success"] is False
        assert result["error_type"] == "io_failure"


class TestOtherTools:
    """Tests for list_templates and unknown tools."""

    @pytest.mark.asyncio
    async def test_list_templates(self, store):
        result = await execute_tool(store, "list_templates", {})

        assert result["success"] is True
        names = [t["name"] for t in result["templates"]]
        assert "default" in names
        assert "detailed" in names

    @pytest.mark.asyncio
    async def test_unknown_tool(self, store):
        result = await execute_tool(store, "no_such_tool", {})
        assert result == {"success": False, "error": "Unknown tool: no_such_tool"}

    @pytest.mark.asyncio
    async def test_unexpected_error(self, store, temp_project, monkeypatch):
        """Unexpected exceptions become error results."""
        def boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(store, "record", boom)
        result = await execute_tool(store, "conclusion_record", {
            "projectPath": str(temp_project),
            "whyChange": "why",
            "whatChange": "what",
        })

        assert result["error_type"] == "unexpected_error"
        assert result["error"] == "boom"
