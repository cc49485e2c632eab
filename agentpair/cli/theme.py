"""CLI theme configuration - all colors in one place.

Colors use Rich markup syntax (e.g., "green", "bold red", "dim italic").
"""


class Theme:
    """Terminal color theme for the agentpair CLI."""

    # -------------------------------------------------------------------------
    # Status colors
    # -------------------------------------------------------------------------
    SUCCESS = "green"
    SUCCESS_BOLD = "bold green"
    ERROR = "red"
    ERROR_BOLD = "bold red"
    WARNING = "yellow"
    INFO_BOLD = "bold cyan"

    # -------------------------------------------------------------------------
    # Text styles
    # -------------------------------------------------------------------------
    HEADER = "bold"
    DIM = "grey62"
    DIM_ITALIC = "grey62 italic"
    TEXT = "white"
    PROMPT = "cyan"

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------
    TABLE_ID = "cyan"
    TABLE_LABEL = "grey62"

    # -------------------------------------------------------------------------
    # Verdicts and check severities
    # -------------------------------------------------------------------------
    VERDICT_PASS = "bold green"
    VERDICT_FAIL = "bold red"
    VERDICT_NEEDS_REVISION = "bold yellow"
    SEVERITY_MINOR = "grey62"
    SEVERITY_MAJOR = "yellow"
    SEVERITY_CRITICAL = "bold red"

    # -------------------------------------------------------------------------
    # Pipeline stages
    # -------------------------------------------------------------------------
    STAGE_PRODUCING = "cyan"
    STAGE_AUDITING = "magenta"

    # -------------------------------------------------------------------------
    # Panel borders
    # -------------------------------------------------------------------------
    BORDER_TASK = "blue"
    BORDER_SOLUTION = "green"
    BORDER_VALIDATION = "magenta"
    BORDER_ERROR = "red"


# Default theme instance - import this in other modules
theme = Theme()
