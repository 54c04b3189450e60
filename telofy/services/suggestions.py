# services/suggestions.py
"""Corrective suggestions attached to freshly detected deviations."""

import logging
import random
from typing import Optional, Protocol

from telofy.data.suggestion_templates import GENERIC_SUBJECT, SUGGESTION_TEMPLATES
from telofy.models import Deviation, DeviationType

logger = logging.getLogger(__name__)


class SuggestionGenerator(Protocol):
    def suggest(self, deviation: Deviation) -> str:
        ...


def subject_name(deviation: Deviation) -> str:
    """Human label for whatever the deviation points at."""
    if deviation.type == DeviationType.missed_task and deviation.task is not None:
        return deviation.task.title
    if deviation.type in (DeviationType.missed_ritual, DeviationType.streak_broken) and deviation.ritual is not None:
        return deviation.ritual.name
    if deviation.type == DeviationType.metric_regressed and deviation.metric is not None:
        return deviation.metric.name
    return GENERIC_SUBJECT


class TemplateSuggestionGenerator:
    """Picks a canned suggestion for the deviation type."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def suggest(self, deviation: Deviation) -> str:
        templates = SUGGESTION_TEMPLATES.get(deviation.type)
        if not templates:
            raise ValueError(f"No suggestion templates for {deviation.type}")
        return self.rng.choice(templates).format(subject=subject_name(deviation))


default_suggestion_generator = TemplateSuggestionGenerator()
