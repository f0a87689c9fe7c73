"""MCP Conclusions Configuration - Python Example

Copy to your project root as conclusions_config.py to add hooks.

Convention:
- CONFIG dict for static configuration (same structure as TOML)
- Functions named hook_* become lifecycle hooks
"""

import os

# =============================================================================
# Static Configuration (same structure as TOML)
# =============================================================================

CONFIG = {
    "project": {
        "name": "payments-service",
    },
    "storage": {
        "data_dir": "conclusion-data",
        "conclusion_file": "conclusion.md",
        "thoughts_file": "thoughts.md",
        "lock_timeout": 10,
    },
    "defaults": {
        "category": "feature",
        "impact_level": "medium",
    },
    "templates": {
        "use": "compact",
        "compact": (
            "## {emoji} {category} | {impactLevel} [ID:{id}]\n"
            "**Ticket:** {ticketReference}\n"
            "**Why:** {whyChange}\n"
            "**What:** {whatChange}\n"
            "<!-- metadata -->\n"
        ),
    },
    "logging": {
        "level": "INFO",
        "file": "conclusion-data/server.log",
    },
}


# =============================================================================
# Hooks - Called during ConclusionStore.record
# =============================================================================

def hook_pre_record(options, thoughts):
    """Called before a conclusion is rendered.

    Args:
        options: ConclusionOptions supplied by the caller
        thoughts: ThoughtEntry list saved alongside the conclusion

    Returns:
        Replacement ConclusionOptions, or None to keep the given ones
    """
    # Example: default the ticket from the current branch environment
    if not options.ticket_reference and "TICKET" in os.environ:
        options.ticket_reference = os.environ["TICKET"]
    return options


def hook_post_record(metadata, saved):
    """Called after a conclusion write was attempted.

    Args:
        metadata: ConclusionMetadata of the rendered conclusion
        saved: SavedFileInfo list, conclusion last
    """
    if saved[-1].success:
        print(f"[Conclusions] {metadata.id} recorded")
