"""Commit marker line embedded at the top of labeled snapshot content."""

LABEL_MARKER_PREFIX = "[commit] "


def strip_label_marker(content: str) -> str:
    """Remove a previously embedded commit marker line."""
    if not content.startswith(LABEL_MARKER_PREFIX):
        return content
    _, _, rest = content.partition("\n")
    return rest


def apply_label_marker(content: str, label: str) -> str:
    return f"{LABEL_MARKER_PREFIX}{label}\n{strip_label_marker(content)}"
