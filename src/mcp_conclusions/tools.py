"""MCP tool definitions wrapping the conclusion store."""

from __future__ import annotations

import asyncio
from typing import Any

from .engine import (
    ConclusionStore,
    ConclusionStoreError,
    InvalidPathError,
    RenderError,
    StorageIOError,
)
from .models import ConclusionOptions, ThoughtEntry

_STRING_ARRAY = {"type": "array", "items": {"type": "string"}}


def make_tools(store: ConclusionStore) -> dict[str, dict]:
    """Create MCP tool definitions for the conclusion store.

    Returns:
        Dict mapping tool names to their definitions.
    """

    tools = {}

    # ========== conclusion_record ==========
    tools["conclusion_record"] = {
        "name": "conclusion_record",
        "description": (
            "Record why and what changed once a unit of work is finished. "
            "Appends a markdown conclusion to <projectPath>/"
            f"{store.config.data_dir}/{store.config.conclusion_file}; never rewrites earlier entries."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "projectPath": {
                    "type": "string",
                    "description": "Absolute path to the project directory where the conclusion file lives",
                },
                "whyChange": {
                    "type": "string",
                    "description": "Why the change was necessary or what motivated it",
                },
                "whatChange": {
                    "type": "string",
                    "description": "What was modified or implemented",
                },
                "category": {
                    "type": "string",
                    "description": "Conventional-commit category (feature, fix, docs, test, refactor, chore, style, perf)",
                },
                "subCategories": {**_STRING_ARRAY, "description": "More specific classification (UI, performance, security...)"},
                "tags": {**_STRING_ARRAY, "description": "Tags for search and classification"},
                "impactLevel": {
                    "type": "string",
                    "enum": ["low", "medium", "high"],
                    "description": "Impact of this change on the system",
                },
                "affectedFiles": {**_STRING_ARRAY, "description": "Files affected by this change"},
                "codeSnippets": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "before": {"type": "string"},
                            "after": {"type": "string"},
                            "file": {"type": "string"},
                        },
                        "required": ["file"],
                    },
                    "description": "Relevant before/after code snippets",
                },
                "relatedConclusions": {**_STRING_ARRAY, "description": "IDs of related conclusions"},
                "ticketReference": {"type": "string", "description": "Ticket or issue reference"},
                "businessContext": {"type": "string", "description": "Business value or motivation"},
                "technicalContext": {"type": "string", "description": "Architecture or components affected"},
                "alternativesConsidered": {**_STRING_ARRAY, "description": "Alternatives considered and why they were rejected"},
                "testingPerformed": {"type": "string", "description": "Tests performed to validate the change"},
                "thoughts": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "thought": {"type": "string"},
                            "thoughtNumber": {"type": "integer"},
                            "branchId": {"type": "string"},
                            "score": {"type": "number"},
                        },
                        "required": ["thought", "thoughtNumber"],
                    },
                    "description": "Reasoning steps that led to this conclusion, saved alongside it",
                },
            },
            "required": ["projectPath", "whyChange", "whatChange"],
        },
    }

    # ========== conclusion_search ==========
    tools["conclusion_search"] = {
        "name": "conclusion_search",
        "description": "Search conclusions recorded since the server started, ranked by keyword relevance.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Keywords to search for (words shorter than "
                                   f"{store.config.min_token_length} letters are ignored)",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results",
                },
            },
            "required": ["query"],
        },
    }

    # ========== interaction_summary ==========
    tools["interaction_summary"] = {
        "name": "interaction_summary",
        "description": "Append a short why/what summary of the current interaction to the conclusion file (not indexed).",
        "inputSchema": {
            "type": "object",
            "properties": {
                "projectPath": {"type": "string", "description": "Absolute path to the project directory"},
                "thoughtNumber": {"type": "integer", "description": "Current step number"},
                "totalThoughts": {"type": "integer", "description": "Estimated total number of steps"},
                "what": {"type": "string", "description": "What was done"},
                "why": {"type": "string", "description": "Why it was done"},
            },
            "required": ["projectPath", "thoughtNumber", "totalThoughts", "what", "why"],
        },
    }

    # ========== list_templates ==========
    tools["list_templates"] = {
        "name": "list_templates",
        "description": "List registered conclusion templates and which one is in use.",
        "inputSchema": {
            "type": "object",
            "properties": {},
        },
    }

    return tools


def _require(arguments: dict[str, Any], *names: str) -> None:
    """Reject missing or blank required string arguments."""
    for name in names:
        value = arguments.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            if name == "projectPath":
                raise InvalidPathError("The project path cannot be empty")
            raise ValueError(f"Required argument '{name}' cannot be empty")


async def execute_tool(store: ConclusionStore, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Execute a conclusion tool and return the result.

    Store calls run in a worker thread so file I/O doesn't block the event loop.

    Args:
        store: ConclusionStore instance
        name: Tool name
        arguments: Tool arguments

    Returns:
        Result dict with success status and data or error
    """
    try:
        if name == "conclusion_record":
            _require(arguments, "projectPath", "whyChange", "whatChange")
            options = ConclusionOptions.from_dict(arguments)
            thoughts = [ThoughtEntry.from_dict(t) for t in arguments.get("thoughts") or []]

            saved = await asyncio.to_thread(
                store.record,
                arguments["projectPath"],
                arguments["whyChange"],
                arguments["whatChange"],
                options,
                thoughts,
            )
            failed = [f for f in saved if not f.success]
            conclusion = saved[-1]
            result = {
                "success": not failed,
                "savedFilesCount": len(saved) - len(failed),
                "savedFiles": [f.to_dict() for f in saved],
            }
            if conclusion.success:
                result["conclusionId"] = conclusion.conclusion_id
            if failed:
                result["error"] = "; ".join(f.error for f in failed)
                result["error_type"] = "io_failure"
                result["message"] = f"{len(failed)} of {len(saved)} writes failed"
            else:
                result["message"] = f"Conclusion saved to {conclusion.file_path}"
            return result

        elif name == "conclusion_search":
            _require(arguments, "query")
            ids = store.search(arguments["query"], limit=arguments.get("limit"))
            results = []
            for conclusion_id in ids:
                metadata = store.get_metadata(conclusion_id)
                results.append(metadata.to_dict() if metadata else {"id": conclusion_id})
            return {
                "success": True,
                "count": len(ids),
                "ids": ids,
                "results": results,
            }

        elif name == "interaction_summary":
            _require(arguments, "projectPath", "what", "why")
            saved = await asyncio.to_thread(
                store.append_interaction_summary,
                arguments["projectPath"],
                int(arguments["thoughtNumber"]),
                int(arguments["totalThoughts"]),
                arguments["what"],
                arguments["why"],
            )
            if saved is None:
                return {
                    "success": False,
                    "error": "Interaction summary could not be written",
                    "error_type": "io_failure",
                }
            return {
                "success": True,
                "savedFile": saved.to_dict(),
                "message": f"Interaction summary appended to {saved.file_path}",
            }

        elif name == "list_templates":
            return {
                "success": True,
                "templates": store.list_templates(),
            }

        else:
            return {
                "success": False,
                "error": f"Unknown tool: {name}",
            }

    except InvalidPathError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "invalid_path",
            "suggestion": "Provide the absolute path of the project directory",
        }

    except StorageIOError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "io_failure",
        }

    except RenderError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "render_failure",
        }

    except ConclusionStoreError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "store_error",
        }

    except (KeyError, TypeError, ValueError) as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "invalid_arguments",
        }

    except Exception as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "unexpected_error",
        }
