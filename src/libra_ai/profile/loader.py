"""
Three-tier profile loading.

Profiles are gathered, highest priority first, from:

1. ``{working_dir}/.libra/agents/*.md`` (project-local)
2. ``{user-config-dir}/libra/agents/*.md`` (user-global)
3. the defaults bundled in ``libra_ai/profile/embedded``

A name claimed by a higher tier is never replaced by a lower one.  Unreadable, oversized or
malformed files are skipped with a warning.
"""

import logging
from importlib import resources
from pathlib import Path
from typing import (
    List,
    Optional,
    Set,
)

from libra_ai.config import settings
from libra_ai.profile.parser import (
    AgentProfile,
    load_profile_from_file,
    parse_agent_profile,
)

logger = logging.getLogger(__name__)

EMBEDDED_PROFILES = (
    "planner.md",
    "code_reviewer.md",
    "architect.md",
    "build_error_resolver.md",
)


def load_embedded_profiles() -> List[AgentProfile]:
    """Return the bundled default profiles in their fixed order."""
    root = resources.files("libra_ai.profile").joinpath("embedded")
    profiles = []
    for filename in EMBEDDED_PROFILES:
        profile = parse_agent_profile(root.joinpath(filename).read_text(encoding="utf-8"))
        if profile is None:
            raise RuntimeError(f"Embedded agent profile {filename} is malformed")
        profiles.append(profile)
    return profiles


def load_profiles_from_dir(
    directory: Path,
    profiles: List[AgentProfile],
    loaded_names: Set[str],
    extension: Optional[str] = None,
    max_bytes: Optional[int] = None,
) -> None:
    """Append profiles found in *directory* whose names are not yet in *loaded_names*."""
    extension = extension or settings.PROFILE_EXTENSION
    max_bytes = settings.MAX_PROFILE_FILE_BYTES if max_bytes is None else max_bytes

    if not directory.is_dir():
        return

    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        logger.warning("Failed to list agent directory %s: %s", directory, exc)
        return

    for path in entries:
        if path.suffix != extension or not path.is_file():
            continue

        try:
            size = path.stat().st_size
        except OSError as exc:
            logger.warning("Failed to read agent file metadata %s: %s", path, exc)
            continue

        if size > max_bytes:
            logger.warning(
                "Skipped oversized agent profile %s (%d bytes > %d)", path, size, max_bytes
            )
            continue

        profile = load_profile_from_file(path)
        if profile is None:
            continue
        if profile.name in loaded_names:
            logger.debug("Agent profile '%s' from %s is shadowed", profile.name, path)
            continue
        loaded_names.add(profile.name)
        profiles.append(profile)


def load_profiles(
    working_dir: Path,
    user_dir: Optional[Path] = None,
    include_embedded: bool = True,
) -> List[AgentProfile]:
    """
    Load profiles from the project, user and embedded tiers.

    *user_dir* overrides the user-global agents directory (default:
    :meth:`Settings.user_agents_dir`).
    """
    profiles: List[AgentProfile] = []
    loaded_names: Set[str] = set()

    load_profiles_from_dir(settings.project_agents_dir(Path(working_dir)), profiles, loaded_names)
    load_profiles_from_dir(
        user_dir if user_dir is not None else settings.user_agents_dir(), profiles, loaded_names
    )

    if include_embedded:
        for profile in load_embedded_profiles():
            if profile.name not in loaded_names:
                loaded_names.add(profile.name)
                profiles.append(profile)

    logger.debug("Loaded %d agent profiles: %s", len(profiles), [p.name for p in profiles])
    return profiles
