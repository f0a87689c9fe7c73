"""Tests for data models."""

from mcp_conclusions.models import (
    CodeSnippet,
    ConclusionMetadata,
    ConclusionOptions,
    ImpactLevel,
    SavedFileInfo,
    SavedFileType,
    ThoughtEntry,
)


class TestConclusionOptions:
    """Tests for ConclusionOptions.from_dict."""

    def test_empty(self):
        options = ConclusionOptions.from_dict(None)
        assert options == ConclusionOptions()

    def test_camel_case_keys(self):
        options = ConclusionOptions.from_dict({
            "category": "fix",
            "subCategories": ["security"],
            "impactLevel": "high",
            "affectedFiles": ["a.py"],
            "ticketReference": "PROJ-1",
            "testingPerformed": "pytest",
        })

        assert options.category == "fix"
        assert options.sub_categories == ["security"]
        assert options.impact_level == "high"
        assert options.affected_files == ["a.py"]
        assert options.ticket_reference == "PROJ-1"
        assert options.testing_performed == "pytest"

    def test_snake_case_keys(self):
        options = ConclusionOptions.from_dict({"business_context": "SSO", "tags": ["x"]})
        assert options.business_context == "SSO"
        assert options.tags == ["x"]

    def test_unknown_and_none_ignored(self):
        """Tool-only arguments and nulls leave defaults in place."""
        options = ConclusionOptions.from_dict({
            "projectPath": "/tmp/p",
            "whyChange": "why",
            "category": None,
            "tags": None,
        })

        assert options.category is None
        assert options.tags == []

    def test_string_wrapped_for_list_field(self):
        options = ConclusionOptions.from_dict({"tags": "single"})
        assert options.tags == ["single"]

    def test_list_items_stringified(self):
        options = ConclusionOptions.from_dict({"relatedConclusions": [1, 2]})
        assert options.related_conclusions == ["1", "2"]

    def test_code_snippets_converted(self):
        options = ConclusionOptions.from_dict({
            "codeSnippets": [{"file": "a.py", "before": "x", "after": "y"}],
        })
        assert options.code_snippets == [CodeSnippet(file="a.py", before="x", after="y")]


class TestThoughtEntry:
    """Tests for ThoughtEntry."""

    def test_from_camel_case(self):
        thought = ThoughtEntry.from_dict({"thought": "idea", "thoughtNumber": 3, "branchId": "b"})

        assert thought.thought == "idea"
        assert thought.thought_number == 3
        assert thought.branch_id == "b"

    def test_to_markdown(self):
        assert ThoughtEntry("idea", 1).to_markdown() == "## Thought 1 (main)\n\nidea"


class TestConclusionMetadata:
    """Tests for ConclusionMetadata serialization."""

    def test_template_data_uses_placeholder_names(self):
        metadata = ConclusionMetadata(
            id="conclusion-1",
            timestamp="2026-01-06T12:30:00.000+00:00",
            category="fix",
            impact_level=ImpactLevel.HIGH,
        )
        data = metadata.to_template_data()

        assert data["impactLevel"] == "high"
        assert data["affectedFiles"] == []
        assert data["ticketReference"] == ""

    def test_to_dict(self):
        metadata = ConclusionMetadata(id="conclusion-1", timestamp="t", category="feature")
        data = metadata.to_dict()

        assert data["id"] == "conclusion-1"
        assert data["impact_level"] == "medium"
        assert data["thought_numbers"] is None


class TestSavedFileInfo:
    """Tests for SavedFileInfo."""

    def test_success(self):
        info = SavedFileInfo(file_path="/p/conclusion.md", type=SavedFileType.CONCLUSION, timestamp=1)

        assert info.success
        assert info.to_dict() == {"filePath": "/p/conclusion.md", "type": "conclusion", "timestamp": 1}

    def test_failure(self):
        info = SavedFileInfo(file_path="/p/thoughts.md", type=SavedFileType.THOUGHT, timestamp=1, error="denied")

        assert not info.success
        assert info.to_dict()["error"] == "denied"
        assert info.to_dict()["type"] == "thought"
