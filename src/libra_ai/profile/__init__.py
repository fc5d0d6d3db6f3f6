"""
Agent profiles: markdown-defined agent configurations and keyword routing between them.

Profiles are loaded from a three-tier hierarchy (project, user, embedded) by
:func:`load_profiles`; :class:`AgentProfileRouter` picks one for a free-text request.
"""

from libra_ai.profile.loader import (
    load_embedded_profiles,
    load_profiles,
)
from libra_ai.profile.parser import (
    AgentProfile,
    load_profile_from_file,
    parse_agent_profile,
)
from libra_ai.profile.router import AgentProfileRouter

__all__ = [
    "AgentProfile",
    "AgentProfileRouter",
    "load_embedded_profiles",
    "load_profile_from_file",
    "load_profiles",
    "parse_agent_profile",
]
