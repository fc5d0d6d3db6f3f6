"""Agent profile router: selects the profile whose description best matches free text."""

import re
from typing import (
    FrozenSet,
    Iterable,
    Optional,
    Tuple,
)

from libra_ai.config import settings
from libra_ai.profile.parser import AgentProfile

STOP_WORDS: FrozenSet[str] = frozenset(
    [
        "a", "an", "the", "is", "are", "was", "were", "be", "been", "being", "have", "has",
        "had", "do", "does", "did", "will", "would", "could", "should", "may", "might",
        "shall", "can", "for", "and", "but", "or", "nor", "not", "so", "yet", "to", "of", "in",
        "on", "at", "by", "with", "from", "up", "about", "into", "through", "during", "before",
        "after", "above", "below", "between", "use", "that", "this", "it", "its",
    ]
)  # fmt: skip

_WORD_RE = re.compile(r"[^\W_]+")


def extract_keywords(description: str) -> Tuple[str, ...]:
    """Distinct lower-cased description words longer than two characters, minus stop words."""
    seen = {}
    for word in _WORD_RE.findall(description.lower()):
        if len(word) > 2 and word not in STOP_WORDS:
            seen.setdefault(word, None)
    return tuple(seen)


class AgentProfileRouter:
    """
    Routes user input to the most appropriate agent profile.

    The router keeps the profiles in the order it was given them; on equal scores the earlier
    profile wins.
    """

    def __init__(self, profiles: Iterable[AgentProfile], min_score: int | None = None):
        self._profiles: Tuple[AgentProfile, ...] = tuple(profiles)
        self._keywords = {id(p): extract_keywords(p.description) for p in self._profiles}
        self.min_score = settings.MIN_MATCH_SCORE if min_score is None else min_score

    @property
    def profiles(self) -> Tuple[AgentProfile, ...]:
        return self._profiles

    def get(self, name: str) -> Optional[AgentProfile]:
        """Return the profile called *name*, if any."""
        for profile in self._profiles:
            if profile.name == name:
                return profile
        return None

    def score(self, text: str, profile: AgentProfile) -> int:
        """Count distinct description keywords of *profile* occurring as substrings of *text*."""
        text_lower = text.lower()
        keywords = self._keywords.get(id(profile))
        if keywords is None:
            keywords = extract_keywords(profile.description)
        return sum(1 for keyword in keywords if keyword in text_lower)

    def select(self, text: str) -> Optional[AgentProfile]:
        """Return the best-scoring profile at or above ``min_score``, or ``None``."""
        best: Optional[AgentProfile] = None
        best_score = 0
        for profile in self._profiles:
            score = self.score(text, profile)
            # Require several keyword hits so short generic inputs ("test", "build") stay unrouted
            if score >= self.min_score and (best is None or score > best_score):
                best, best_score = profile, score
        return best
