"""
Prompt builders for the narrative, synthesis and refinement services.
"""

import json

from .types import Child, ImageSynthesisRequest, NarrativeRequest

LANGUAGE_NAMES = {"en": "English", "fr": "French"}

STORY_SYSTEM_PROMPT = """You are a bedtime story generator. You will receive the exact names and ages of the children, the theme of the story, its length in minutes, and the characters they enjoy.

NAMES:
- Use the EXACT names provided. Never change, shorten or replace them.
- Every child listed must appear in the story by name.
- Reflect the children's ages in the vocabulary and content.

PROTAGONISTS:
- The children are the heroes. Show them acting, deciding, discovering and driving the story forward.
- Do not lecture, teach or philosophize about the children. No "learned that..." or "the story teaches..." phrasing.

THEME COMPANION:
- Include a kind, friendly, non-threatening companion matching the chosen characters, present throughout the story and interacting with the children.

Write the story in {language}. Divide it into sections with clear headlines, sized to be read aloud in the requested number of minutes.

Return ONLY valid JSON in exactly this format (no markdown, no extra text):
{{
  "title": "Story Title",
  "sections": [
    {{"headline": "Section Headline", "body": "Section body text..."}}
  ]
}}"""

REGENERATION_HEADER = "REGENERATION REQUIRED - Previous attempt failed evaluation:"
REGENERATION_FOOTER = "Please regenerate the story ensuring ALL requirements are met."


def _join_names(children: list[Child]) -> str:
    return " and ".join(c.name for c in children)


def build_story_user_prompt(request: NarrativeRequest) -> str:
    """The per-story instructions with the questionnaire values filled in."""
    children_list = " and ".join(f"{c.name} (age {c.age or 'unknown'})" for c in request.children)
    children_data = json.dumps([c.to_dict() for c in request.children], ensure_ascii=False)
    names = _join_names(request.children)
    companion = request.characters[0] if request.characters else "a friendly companion"
    who = "the child" if len(request.children) == 1 else "the children"

    return f"""Generate a bedtime story with the following details:

CHILDREN (USE THESE EXACT NAMES AS CENTRAL PROTAGONISTS): {children_list}
Children data: {children_data}

Theme: {", ".join(request.themes)}
Story length: {request.length_minutes} minutes
Preferred characters/theme: {", ".join(request.characters) if request.characters else "any"}

REQUIREMENTS:
1. {names} must be the central protagonist(s).
2. Show {who} actively doing things, making decisions and taking part in the events.
3. Do not lecture or teach; write a narrative where {who} is the active hero.
4. Include a theme-based companion: {companion}. It must be kind and interact with {who}.
5. Use the exact names {", ".join(c.name for c in request.children)} consistently. Do not use any other names for them."""


def build_regeneration_suffix(reasons: list[str]) -> str:
    """Feedback block appended to the user prompt after a failed evaluation."""
    bullets = "\n".join(f"- {reason}" for reason in reasons)
    return f"{REGENERATION_HEADER}\n{bullets}\n\n{REGENERATION_FOOTER}"


def build_story_messages(request: NarrativeRequest, prior_reasons: list[str] = None) -> list[dict]:
    """Chat messages for one narrative attempt."""
    language = LANGUAGE_NAMES.get(request.language, "English")
    user_prompt = build_story_user_prompt(request)
    if prior_reasons:
        user_prompt = f"{user_prompt}\n\n{build_regeneration_suffix(prior_reasons)}"
    return [
        {"role": "system", "content": STORY_SYSTEM_PROMPT.format(language=language)},
        {"role": "user", "content": user_prompt},
    ]


def build_synthesis_prompt(request: ImageSynthesisRequest) -> str:
    """Description of the cover for the image-synthesis service."""
    featuring = ""
    if request.child_names:
        featuring = f" The children are {' and '.join(request.child_names)}."
    if request.photo_description:
        featuring += f" {request.photo_description}."

    companion = ""
    if request.theme_companion_description:
        companion = f"\n\nCompanion: include {request.theme_companion_description}."

    avoid = "no text, letters or words anywhere in the image"
    if request.theme_negative_constraints:
        avoid = f"{request.theme_negative_constraints}, {avoid}"

    return f"""{request.style_modifiers}, 16:10 landscape cover for a children's bedtime story book.

Show {request.child_count_description}, smiling and safe, as the clear focus of the scene.{featuring}{companion}

Mood: warm, friendly and magical, with soft bedtime lighting. Style: {request.style_name}.

Avoid: {avoid}."""


def build_refinement_prompt(style_name: str, tone: str, children: list[Child]) -> str:
    """Instructions for a gentle, identity-preserving touch-up of a composited photo."""
    people = f" of {_join_names(children)}" if children else ""
    return f"""Gently enhance this photo{people} for a bedtime story cover in a {style_name} mood: {tone}.

Keep every face, person, pose and proportion exactly as they are. Do not redraw, cartoonize, crop or add people.
Keep transparent borders transparent. Add no text."""
