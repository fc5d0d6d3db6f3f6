"""
Agent profile parser: markdown with a frontmatter block -> :class:`AgentProfile`.

The frontmatter is a deliberately small YAML subset: one ``key: value`` per line, no multiline
values, no quoted values containing ``:``.  Example::

    ---
    name: planner
    description: Implementation planning specialist
    tools: ["read_file", "list_dir"]
    model: default
    ---

    You are an implementation planner...
"""

import logging
from pathlib import Path
from typing import (
    List,
    Optional,
    Tuple,
)

from pydantic import (
    BaseModel,
    ConfigDict,
)

logger = logging.getLogger(__name__)

FENCE = "---"
DEFAULT_MODEL_PREFERENCE = "default"


class AgentProfile(BaseModel):
    """A named agent configuration parsed from one markdown document."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    name: str
    description: str = ""
    tools: Tuple[str, ...] = ()
    model_preference: str = DEFAULT_MODEL_PREFERENCE
    system_prompt: str = ""


def parse_string_list(value: str) -> List[str]:
    """Parse ``["a", 'b', c]`` into ``["a", "b", "c"]``, dropping empty entries."""
    value = value.strip()
    if value.startswith("["):
        value = value[1:]
    if value.endswith("]"):
        value = value[:-1]
    items = []
    for item in value.split(","):
        item = item.strip().strip('"').strip("'").strip()
        if item:
            items.append(item)
    return items


def parse_agent_profile(content: str) -> Optional[AgentProfile]:
    """
    Parse *content* into a profile.

    Returns ``None`` when the document does not open with a ``---`` line, has no closing ``---``
    line, or lacks a non-empty ``name`` field.  Unknown keys are ignored.
    """
    lines = content.strip().splitlines()
    if not lines or lines[0].strip() != FENCE:
        return None

    try:
        end = next(i for i in range(1, len(lines)) if lines[i].strip() == FENCE)
    except StopIteration:
        return None

    name: Optional[str] = None
    description = ""
    tools: List[str] = []
    model_preference = DEFAULT_MODEL_PREFERENCE

    for line in lines[1:end]:
        key, sep, value = line.strip().partition(":")
        if not sep:
            continue
        key, value = key.strip(), value.strip()
        if key == "name":
            name = value
        elif key == "description":
            description = value
        elif key == "model":
            model_preference = value or DEFAULT_MODEL_PREFERENCE
        elif key == "tools":
            tools = parse_string_list(value)

    if not name:
        return None

    return AgentProfile(
        name=name,
        description=description,
        tools=tuple(tools),
        model_preference=model_preference,
        system_prompt="\n".join(lines[end + 1 :]).strip(),
    )


def load_profile_from_file(path: Path) -> Optional[AgentProfile]:
    """Read and parse *path*; log a warning and return ``None`` on failure."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Failed to read agent profile %s: %s", path, exc)
        return None

    profile = parse_agent_profile(content)
    if profile is None:
        logger.warning("Failed to parse agent profile %s", path)
    return profile
