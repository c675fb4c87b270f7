"""URL helpers and the route patterns used by the state commands."""
from __future__ import annotations

import posixpath
import re
from urllib.parse import quote, unquote

# Matches a presence-only ``reset`` flag anywhere in the query string.
RESET_ON_LOAD_PATTERN = re.compile(r"(\?reset|\&reset)($|&)")

# Catch-all: every location loads state.
LOAD_PATTERN = re.compile(r".?")


def workspace_pattern(workspaces_url: str) -> re.Pattern[str]:
    """Pattern capturing the workspace segment after ``workspaces_url``."""
    return re.compile("^" + re.escape(workspaces_url) + r"([^?/]+)")


def join(*parts: str) -> str:
    """Join URL path parts, keeping a leading slash and dropping empties."""
    pieces = [p for p in parts if p]
    if not pieces:
        return ""
    joined = posixpath.join(*(p if i == 0 else p.lstrip("/") for i, p in enumerate(pieces)))
    joined = re.sub(r"/{2,}", "/", joined)
    if len(joined) > 1 and joined.endswith("/") and not pieces[-1].endswith("/"):
        joined = joined.rstrip("/")
    return joined


def query_to_dict(search: str) -> dict[str, str]:
    """Parse ``?a=1&b`` into ``{"a": "1", "b": ""}``. Order is preserved."""
    result: dict[str, str] = {}
    for chunk in search.lstrip("?").split("&"):
        if not chunk:
            continue
        key, _, value = chunk.partition("=")
        if key:
            result[unquote(key)] = unquote(value)
    return result


def dict_to_query(query: dict[str, str]) -> str:
    """Inverse of query_to_dict; empty dict gives an empty string."""
    if not query:
        return ""
    return "?" + "&".join(
        f"{quote(key, safe='')}={quote(str(value), safe='')}"
        for key, value in query.items()
    )


def workspace_from_path(path: str, workspaces_url: str) -> str:
    """Return the decoded workspace segment of ``path`` or ``""``."""
    match = workspace_pattern(workspaces_url).match(path)
    return unquote(match.group(1)) if match else ""
