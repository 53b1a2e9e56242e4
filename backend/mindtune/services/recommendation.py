"""
Recommendation Engine
=====================
Maps a user's current mental-state snapshot to a ranked list of music
categories drawn from the track catalog.

Decision logic:
    1. Evaluate every rule in RECOMMENDATION_RULES in order. Rules are
       independent: each one whose predicate matches contributes exactly
       one category. The stress rules are mutually exclusive, as are the
       mood, time-of-day and session-goal rules within their groups.
    2. Each category's tracks are the catalog entries whose mood (or
       category) tag is in the rule's tag set, in catalog order. A rule
       that matches no tracks still contributes an empty category.
    3. Sort by score descending. The sort is stable, so equal scores keep
       rule order.
    4. Keep the top MAX_RECOMMENDATIONS.

The engine holds no mutable state and is safe to share across requests.
Reasoning strings avoid clinical language (no diagnose / treat / cure).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Literal, Optional

from mindtune.models.music import MentalState, RecommendationCategory, TimeOfDay, Track
from mindtune.services.catalog import TrackCatalog, get_track_catalog

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAX_RECOMMENDATIONS = 6

HIGH_STRESS_THRESHOLD = 7
MODERATE_STRESS_THRESHOLD = 4
LOW_STRESS_THRESHOLD = 3
POOR_SLEEP_THRESHOLD = 5


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RecommendationRule:
    """One row of the rule table: when *predicate* holds, emit a category."""

    predicate: Callable[[MentalState], bool]
    name: str
    description: str
    reasoning: str
    score: int
    match_field: Literal["mood", "category"]
    tags: frozenset[str]

    def select_tracks(self, catalog: TrackCatalog) -> list[Track]:
        if self.match_field == "mood":
            return catalog.filter_by_mood(self.tags)
        return catalog.filter_by_category(self.tags)

    def build(self, catalog: TrackCatalog) -> RecommendationCategory:
        return RecommendationCategory(
            name=self.name,
            description=self.description,
            reasoning=self.reasoning,
            tracks=self.select_tracks(catalog),
            score=self.score,
        )


def _rule(predicate, name, description, reasoning, score, match_field, *tags) -> RecommendationRule:
    return RecommendationRule(
        predicate=predicate,
        name=name,
        description=description,
        reasoning=reasoning,
        score=score,
        match_field=match_field,
        tags=frozenset(tags),
    )


RECOMMENDATION_RULES: tuple[RecommendationRule, ...] = (
    # --- stress ---
    _rule(
        lambda s: s.stress_level >= HIGH_STRESS_THRESHOLD,
        "Immediate Stress Relief",
        "Calming sounds to reduce high stress levels",
        "High stress level reported - prioritizing immediate calming effects",
        95, "mood", "calm", "peaceful",
    ),
    _rule(
        lambda s: MODERATE_STRESS_THRESHOLD <= s.stress_level < HIGH_STRESS_THRESHOLD,
        "Moderate Stress Management",
        "Steady, grounding sounds to keep stress in check",
        "Moderate stress level reported - balancing calm with gentle focus",
        85, "category", "meditation", "relaxation",
    ),
    # --- mood (exactly one fires) ---
    _rule(
        lambda s: s.mood == "anxious",
        "Anxiety Relief",
        "Gentle sounds to ease anxiety and promote calm",
        "Anxious mood reported - using steady calming frequencies",
        90, "category", "meditation", "nature",
    ),
    _rule(
        lambda s: s.mood == "depressed",
        "Mood Uplift",
        "Uplifting ambient sounds to lift your mood",
        "Low mood reported - gentle uplifting sounds suggested",
        85, "mood", "peaceful", "relaxed",
    ),
    _rule(
        lambda s: s.mood == "energetic",
        "Focus Enhancement",
        "Ambient sounds to channel energy into focus",
        "High energy reported - channeling it into productive focus",
        80, "category", "ambient", "meditation",
    ),
    _rule(
        lambda s: s.mood == "calm",
        "Maintain Calmness",
        "Peaceful sounds to sustain your calm state",
        "Calm mood reported - keeping things gentle and steady",
        82, "mood", "calm", "peaceful",
    ),
    _rule(
        lambda s: s.mood == "neutral",
        "Balanced Wellness",
        "A balanced mix of ambient and nature sounds",
        "Neutral mood reported - a balanced soundscape for general wellbeing",
        75, "category", "ambient", "nature",
    ),
    # --- time of day (afternoon has no rule) ---
    _rule(
        lambda s: s.time_of_day == "morning",
        "Morning Mindfulness",
        "Gentle sounds to start your day peacefully",
        "Morning routine - gentle awakening sounds",
        75, "category", "meditation", "nature",
    ),
    _rule(
        lambda s: s.time_of_day == "evening",
        "Evening Wind-Down",
        "Relaxing sounds to transition to rest",
        "Evening time - preparing for rest and relaxation",
        82, "category", "ambient", "relaxation",
    ),
    _rule(
        lambda s: s.time_of_day == "night",
        "Night-Time Relaxation",
        "Deep relaxation sounds for better sleep",
        "Night time - optimizing for sleep preparation",
        90, "category", "sleep", "ambient",
    ),
    # --- session goal ("energy" has no rule yet) ---
    _rule(
        lambda s: s.session_goal == "meditation",
        "Deep Meditation",
        "Sounds specifically designed for meditation practice",
        "Meditation goal - using traditional meditation sounds",
        95, "category", "meditation",
    ),
    _rule(
        lambda s: s.session_goal == "sleep",
        "Sleep Induction",
        "Sounds to help you fall asleep faster",
        "Sleep goal - using sleep-optimized frequencies",
        93, "category", "sleep", "ambient",
    ),
    _rule(
        lambda s: s.session_goal == "relaxation",
        "Deep Relaxation",
        "Comprehensive relaxation soundscape",
        "Relaxation goal - multi-layered calming sounds",
        88, "category", "relaxation", "nature",
    ),
    _rule(
        lambda s: s.session_goal == "focus",
        "Focus Enhancement",
        "Ambient sounds to improve concentration",
        "Focus goal - non-distracting background sounds",
        85, "category", "ambient", "meditation",
    ),
    # --- sleep quality ---
    _rule(
        lambda s: s.sleep_quality <= POOR_SLEEP_THRESHOLD,
        "Sleep Improvement",
        "Sounds designed to improve sleep quality",
        "Low sleep quality reported - using sleep-optimized frequencies",
        88, "category", "sleep", "ambient",
    ),
    # --- always ---
    _rule(
        lambda s: True,
        "Daily Mindfulness",
        "A short daily practice to stay grounded",
        "Daily practice - a consistent mindful moment supports wellbeing",
        70, "category", "meditation", "nature",
    ),
    # --- low stress ---
    _rule(
        lambda s: s.stress_level <= LOW_STRESS_THRESHOLD,
        "Creative Flow",
        "Open, ambient sounds for creative work",
        "Low stress level reported - a good moment for creative flow",
        78, "category", "ambient", "relaxation",
    ),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def time_of_day_for_hour(hour: int) -> TimeOfDay:
    """05-11 morning, 12-16 afternoon, 17-20 evening, otherwise night."""
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "night"


def current_time_of_day(now: Optional[datetime] = None) -> TimeOfDay:
    """Time of day for *now*, defaulting to the server's local wall clock."""
    return time_of_day_for_hour((now or datetime.now()).hour)


def format_duration(seconds: int) -> str:
    """Render a track length as m:ss."""
    minutes, remainder = divmod(seconds, 60)
    return f"{minutes}:{remainder:02d}"


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class RecommendationEngine:
    """Ranks music categories for a mental-state snapshot."""

    def __init__(
        self,
        catalog: TrackCatalog,
        rules: tuple[RecommendationRule, ...] = RECOMMENDATION_RULES,
    ) -> None:
        self._catalog = catalog
        self._rules = rules

    @property
    def catalog(self) -> TrackCatalog:
        return self._catalog

    def generate_recommendations(self, state: MentalState) -> list[RecommendationCategory]:
        """Return at most MAX_RECOMMENDATIONS categories, highest score first."""
        categories = [
            rule.build(self._catalog)
            for rule in self._rules
            if rule.predicate(state)
        ]
        # sorted() is stable: equal scores keep rule order
        ranked = sorted(categories, key=lambda c: c.score, reverse=True)
        top = ranked[:MAX_RECOMMENDATIONS]

        logger.debug(
            "Matched %d rules (stress=%d, mood=%s, sleep=%d, time=%s, goal=%s); returning %s",
            len(categories),
            state.stress_level,
            state.mood,
            state.sleep_quality,
            state.time_of_day,
            state.session_goal,
            [c.name for c in top],
        )
        return top

    def get_all_tracks(self) -> list[Track]:
        return list(self._catalog.tracks)

    def get_track_by_id(self, track_id: str) -> Optional[Track]:
        return self._catalog.get(track_id)


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

@lru_cache
def get_recommendation_engine() -> RecommendationEngine:
    return RecommendationEngine(get_track_catalog())
