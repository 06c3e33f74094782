"""
Rule-based quality evaluation for generated bedtime stories.

Deterministic checks run in order:
1. Every child's exact name appears at least once
2. Children are shown acting, not merely named
3. The tone is narrative rather than instructional
4. The theme companion shows up

A failed check adds one reason to the verdict. Reasons are written in the
story language because they are fed back to the narrative service verbatim.
"""

import re
from typing import Optional

from nightstory.config import STORY_CONSTANTS
from ..themes import get_companion_keywords, get_theme
from ..types import Child, Narrative, ThemeType, Verdict

MAX_INSTRUCTIONAL_PHRASES = STORY_CONSTANTS["max_instructional_phrases"]

_ACTION_VERBS = {
    "en": (
        "went|did|said|saw|found|discovered|explored|decided|chose|helped|played|ran|"
        "jumped|flew|climbed|solved|saved|met|talked|asked|told|shared|gave|took|made|"
        "built|created"
    ),
    "fr": (
        "est|était|sera|va|fait|dit|voit|trouve|découvre|explore|décide|choisit|aide|"
        "joue|court|saute|vole|grimpe|résout|sauve|rencontre|parle|demande|raconte|"
        "partage|donne|prend|crée|construit|fabrique"
    ),
}

_INSTRUCTIONAL_PATTERNS = [
    re.compile(r"\b(learned that|learns that|learns|taught|teaches|lesson|lessons|moral|wisdom|philosophy)\b"),
    re.compile(r"\b(the story teaches|this story shows|this teaches)\b"),
    re.compile(r"\b(should remember|must remember|important to remember)\b"),
]

_REASONS = {
    "en": {
        "missing_name": "The name {name} is not used in the story",
        "passive": "The child is not the active protagonist - the story must show the child acting and participating",
        "instructional": "The tone is too instructional - the story must be narrative, not educational",
        "companion": "Theme companion ({theme}) is not present in the story",
    },
    "fr": {
        "missing_name": "Le nom {name} n'est pas utilisé dans l'histoire",
        "passive": "L'enfant n'est pas le protagoniste actif - l'histoire doit montrer l'enfant agissant et participant",
        "instructional": "Le ton est trop instructif - l'histoire doit être narrative, pas éducative",
        "companion": "Le compagnon thématique ({theme}) n'est pas présent dans l'histoire",
    },
}


def _active_patterns(name: str, language: str) -> list[re.Pattern]:
    """Patterns that show a named child doing something."""
    n = re.escape(name)
    verbs = _ACTION_VERBS.get(language, _ACTION_VERBS["en"])
    if language == "fr":
        return [
            re.compile(rf"(?<!\w){n}\s+({verbs})"),
            re.compile(rf"(?<!\w){n}\s+(a|avait|aura)\s+"),
            re.compile(rf"\bde\s+{n}(?!\w)"),
        ]
    return [
        re.compile(rf"(?<!\w){n}\s+({verbs})"),
        re.compile(rf"(?<!\w){n}\s+(was|is|has|had|will)\s+"),
        re.compile(rf"(?<!\w){n}'s\s+(adventure|journey|story|quest|mission|trip)"),
    ]


def count_mentions(text: str, name: str) -> int:
    """Word-bounded occurrences of `name` in already-lowercased `text`."""
    if not name:
        return 0
    return len(re.findall(rf"(?<!\w){re.escape(name)}(?!\w)", text))


def count_active_mentions(text: str, name: str, language: str = "en") -> int:
    """Occurrences of `name` as the subject of an action in lowercased `text`."""
    if not name:
        return 0
    return sum(len(p.findall(text)) for p in _active_patterns(name, language))


def count_instructional_phrases(text: str) -> int:
    return sum(len(p.findall(text)) for p in _INSTRUCTIONAL_PATTERNS)


def evaluate_narrative(
    narrative: Narrative,
    children: list[Child],
    theme: Optional[ThemeType],
    language: str = "en",
) -> Verdict:
    """
    Grade a narrative against the story rules.

    Args:
        narrative: The generated story
        children: Children whose exact names must appear
        theme: Character theme whose companion must appear (None to skip)
        language: "en" or "fr"; selects verb patterns and reason wording

    Returns:
        Verdict with one reason per failed check
    """
    messages = _REASONS.get(language, _REASONS["en"])
    text = narrative.full_text().lower()
    names = [c.name.strip().lower() for c in children if c.name.strip()]
    reasons = []

    # 1. Exact names
    for child in children:
        name = child.name.strip()
        if name and count_mentions(text, name.lower()) == 0:
            reasons.append(messages["missing_name"].format(name=name))

    # 2. Active protagonist
    total_mentions = sum(count_mentions(text, name) for name in names)
    active_mentions = sum(count_active_mentions(text, name, language) for name in names)
    required = 1 if total_mentions <= 3 else 2
    if total_mentions > 0 and active_mentions < required:
        reasons.append(messages["passive"])

    # 3. Narrative tone
    if count_instructional_phrases(text) > MAX_INSTRUCTIONAL_PHRASES:
        reasons.append(messages["instructional"])

    # 4. Theme companion
    keywords = get_companion_keywords(theme)
    if keywords and not any(keyword.lower() in text for keyword in keywords):
        reasons.append(messages["companion"].format(theme=get_theme(theme).label(language)))

    return Verdict(valid=not reasons, reasons=reasons)
