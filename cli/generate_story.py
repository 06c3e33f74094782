#!/usr/bin/env python3
"""
CLI for generating a bedtime story and its cover.

Usage:
    python cli/generate_story.py --child Mia:5 --child Leo:7 --character Dragons
    python cli/generate_story.py --child Mia:5 --style Cartoon --photo family.jpg
    python cli/generate_story.py --child Emma:6 --language fr --character Animaux --stdout
"""

import argparse
import asyncio
import logging
import re
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from nightstory.config import STORY_CONSTANTS, get_narrative_model_name
from nightstory.core.modules.cover_compositor import decode_image_payload
from nightstory.core.programs.story_session import ImagePhase, NarrativePhase, StorySession
from nightstory.core.themes import parse_length_minutes, parse_style, parse_theme
from nightstory.core.types import AnswerSet, Child
from nightstory.logging import configure_logging


def parse_child(value: str) -> Child:
    """Parse NAME or NAME:AGE."""
    name, _, age = value.partition(":")
    if not name.strip():
        raise argparse.ArgumentTypeError(f"Child needs a name: {value!r}")
    return Child(name=name.strip(), age=age.strip())


def build_answer_set(args: argparse.Namespace) -> AnswerSet:
    themes, custom_characters = [], []
    for label in args.character:
        theme = parse_theme(label)
        if theme is None:
            custom_characters.append(label)
        elif theme not in themes:
            themes.append(theme)

    styles, custom_styles = [], []
    for label in args.style:
        style = parse_style(label)
        if style is None:
            custom_styles.append(label)
        elif style not in styles:
            styles.append(style)

    photo = Path(args.photo).read_bytes() if args.photo else None

    return AnswerSet(
        children=args.child,
        character_themes=themes,
        custom_characters=", ".join(custom_characters),
        teaching_themes=args.theme,
        length_minutes=parse_length_minutes(args.length, STORY_CONSTANTS["default_length_minutes"]),
        include_images=bool(styles or custom_styles) and not args.no_cover,
        visual_styles=styles,
        custom_visual_style=", ".join(custom_styles),
        photo_description=args.photo_description,
        uploaded_image=photo,
        language=args.language,
    )


def main():
    parser = argparse.ArgumentParser(
        description="Generate a bedtime story starring your children, with a matching cover",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python cli/generate_story.py --child Mia:5 --child Leo:7 --character Dragons --style Cartoon
    python cli/generate_story.py --child Mia:5 --theme Kindness --length "5-10 Mins"
    python cli/generate_story.py --child Mia:5 --style Fantasy --photo mia.jpg
    python cli/generate_story.py --child Emma:6 --language fr --character Animaux --stdout
        """,
    )

    parser.add_argument(
        "--child", "-c",
        type=parse_child,
        action="append",
        required=True,
        help="Child as NAME or NAME:AGE (repeatable)",
    )

    parser.add_argument(
        "--character",
        action="append",
        default=[],
        help="Character theme, e.g. Dragons, Animals, Super-héros (repeatable)",
    )

    parser.add_argument(
        "--theme",
        action="append",
        default=[],
        help="Teaching theme, e.g. Kindness (repeatable)",
    )

    parser.add_argument(
        "--length",
        type=str,
        default=None,
        help='Story length, e.g. "5-10 Mins" (default: 5 minutes)',
    )

    parser.add_argument(
        "--style",
        action="append",
        default=[],
        help="Cover style, e.g. Cartoon, Réaliste (repeatable). A cover is made only when a style is given.",
    )

    parser.add_argument(
        "--photo",
        type=str,
        default=None,
        help="Photo to place on the cover instead of an illustration",
    )

    parser.add_argument(
        "--photo-description",
        type=str,
        default="",
        help="Short description of who is in the photo",
    )

    parser.add_argument(
        "--no-cover",
        action="store_true",
        help="Skip the cover even when a style is given",
    )

    parser.add_argument(
        "--language",
        choices=STORY_CONSTANTS["languages"],
        default="en",
        help="Story language (default: en)",
    )

    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the story to terminal instead of saving to file",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print progress information",
    )

    args = parser.parse_args()

    configure_logging(json_format=False, level=logging.INFO if args.verbose else logging.WARNING)

    session = StorySession()
    session.submit(build_answer_set(args))

    if args.verbose:
        names = " and ".join(c.name for c in args.child)
        print(f"Generating story for {names}...")
        print(f"Narrative model: {get_narrative_model_name()}")

    asyncio.run(session.start())

    if session.narrative_phase is NarrativePhase.ERROR:
        print(f"Story generation failed: {session.narrative_error}", file=sys.stderr)
        sys.exit(1)

    narrative = session.narrative
    formatted = narrative.to_markdown()

    if args.stdout:
        print(formatted)
    else:
        output_dir = Path(__file__).parent.parent / "output"
        output_dir.mkdir(exist_ok=True)

        slug = re.sub(r"[^a-z0-9]+", "_", narrative.title.lower())[:30].strip("_") or "story"
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = output_dir / f"{slug}_{timestamp}.md"
        output_path.write_text(formatted)
        print(f"Story saved to: {output_path}")

        cover = session.cover
        if cover and cover.image_reference.startswith("data:"):
            cover_path = output_dir / f"{slug}_{timestamp}_cover.png"
            cover_path.write_bytes(decode_image_payload(cover.image_reference))
            print(f"Cover saved to: {cover_path}")

    if session.image_phase is ImagePhase.ERROR:
        print(f"Cover not created: {session.image_error}", file=sys.stderr)

    # Print summary if verbose
    if args.verbose:
        verdict = session.verdict
        print("\n--- Generation Summary ---")
        print(f"Title: {narrative.title}")
        print(f"Sections: {len(narrative.sections)}")
        print(f"Word count: {narrative.word_count}")
        print(f"Attempts: {session.narrative_result.attempt_count}")
        print(f"Passed checks: {verdict.valid}")
        for reason in verdict.reasons:
            print(f"  - {reason}")
        print(f"Cover: {session.image_phase.value}")


if __name__ == "__main__":
    main()
