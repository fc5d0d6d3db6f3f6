"""Tests for the markdown agent profile parser."""

import pytest
from pydantic import ValidationError

from libra_ai.profile.parser import (
    AgentProfile,
    parse_agent_profile,
    parse_string_list,
)

SAMPLE_AGENT = """---
name: planner
description: Implementation planning specialist
tools: ["read_file", "list_dir", "grep_files"]
model: default
---

You are an implementation planner.

## Planning Process

1. Understand requirements
2. Explore codebase
"""


def test_parse_agent_profile() -> None:
    """All recognised fields are extracted and the body becomes the system prompt."""

    profile = parse_agent_profile(SAMPLE_AGENT)
    assert profile is not None
    assert profile.name == "planner"
    assert profile.description == "Implementation planning specialist"
    assert profile.tools == ("read_file", "list_dir", "grep_files")
    assert profile.model_preference == "default"
    assert profile.system_prompt.startswith("You are an implementation planner.")
    assert profile.system_prompt.endswith("2. Explore codebase")


def test_parse_is_idempotent() -> None:
    """Parsing the same document twice yields equal profiles."""

    assert parse_agent_profile(SAMPLE_AGENT) == parse_agent_profile(SAMPLE_AGENT)


def test_parse_no_frontmatter() -> None:
    """A document without an opening fence yields no profile."""

    assert parse_agent_profile("No frontmatter here") is None
    assert parse_agent_profile("") is None


def test_parse_missing_name() -> None:
    """A document without a name yields no profile."""

    assert parse_agent_profile("---\ndescription: test\n---\nbody") is None
    assert parse_agent_profile("---\nname:\n---\nbody") is None


def test_parse_unclosed_frontmatter() -> None:
    """A document whose frontmatter never closes yields no profile."""

    assert parse_agent_profile("---\nname: open\nbody without fence") is None


def test_parse_defaults() -> None:
    """Model defaults to 'default', description and tools to empty."""

    profile = parse_agent_profile("---\nname: bare\n---\n")
    assert profile == AgentProfile(name="bare")
    assert profile.model_preference == "default"
    assert profile.system_prompt == ""


def test_parse_ignores_unknown_keys_and_noise() -> None:
    """Unknown keys and lines without a colon are skipped."""

    profile = parse_agent_profile(
        "---\nname: x\ncolor: blue\njust some words\nmodel: fast\n---\n  Body text.  \n"
    )
    assert profile is not None
    assert profile.model_preference == "fast"
    assert profile.system_prompt == "Body text."


def test_parse_tolerates_leading_whitespace() -> None:
    """Surrounding whitespace before the fence is trimmed."""

    profile = parse_agent_profile("\n\n  ---\nname: spaced\n---\nbody")
    assert profile is not None and profile.name == "spaced"


def test_parse_string_list() -> None:
    """Bracketed lists accept quoted and unquoted entries; empty entries are dropped."""

    assert parse_string_list('["a", "b", "c"]') == ["a", "b", "c"]
    assert parse_string_list("[]") == []
    assert parse_string_list('["single"]') == ["single"]
    assert parse_string_list("[a, 'b', , \"\"]") == ["a", "b"]
    assert parse_string_list("plain, list") == ["plain", "list"]


def test_profile_is_immutable() -> None:
    """Profiles cannot be modified after parse."""

    profile = parse_agent_profile(SAMPLE_AGENT)
    with pytest.raises(ValidationError):
        profile.name = "other"
