"""Tool-level exceptions."""


class ToolError(Exception):
    """Exception raised for invalid tool arguments or unusable results."""

    pass
