# telofy/data/suggestion_templates.py
from typing import Dict, List

from telofy.models.deviation import DeviationType


# =====================================================================
# SUGGESTION TEMPLATE REPOSITORY
# =====================================================================

SUGGESTION_TEMPLATES: Dict[DeviationType, List[str]] = {
    DeviationType.missed_task: [
        "'{subject}' slipped past its slot. Reschedule it for your next free block, even in a shorter form.",
        "Missed '{subject}'. Try splitting it into a 10-minute first step you can do today.",
    ],
    DeviationType.missed_ritual: [
        "'{subject}' did not hit its target last period. Pick one fixed time this period and protect it.",
        "Last period fell short on '{subject}'. Lower the bar for a week and rebuild consistency.",
    ],
    DeviationType.streak_broken: [
        "Your '{subject}' streak reset. One completion today starts a new one.",
        "Streak on '{subject}' broke. Attach it to something you already do every day.",
    ],
    DeviationType.metric_regressed: [
        "'{subject}' moved the wrong way. Check what changed this week before adjusting the plan.",
        "'{subject}' regressed. Review the rituals feeding this metric and double down on one.",
    ],
}

GENERIC_SUBJECT = "this commitment"
