"""Expressive audio tags for ElevenLabs v3 narration.

Each narrated line can be prefixed with bracketed directives that the v3 model
reads as performance cues rather than text:

1. Pacing & demeanor: [slowly], [quickly], [hesitant], [whisper], [urgently], [calmly]
2. Vocal effects: [higher pitch], [lower pitch], [soft volume], [loud], [strong], [breathy]
3. Breaths & pauses: [quick breath], [sigh], [giggle], [light chuckle], [laugh], [pause], [beat]

Tags come from an ordered table of independent rules. Every rule whose trigger
holds contributes its tags, so a single line can stack cues from several
categories (an excited line that also says "careful" gets both pitch tags).
"""

import random
import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

# Picks one option out of a sequence; random.choice by default.
Chooser = Callable[[Sequence[str]], str]

LAUGH_TAGS: tuple[str, ...] = ("giggle", "light chuckle", "laugh")
LONG_LINE_CHARS = 90


@dataclass(frozen=True)
class TagRule:
    """Appends ``tags`` (or one of ``choices``) when the hint or the text matches."""

    name: str
    hint_keyword: str
    pattern: re.Pattern
    tags: tuple[str, ...] = ()
    choices: tuple[str, ...] = ()

    def matches(self, text: str, hint: str) -> bool:
        return self.hint_keyword in hint or bool(self.pattern.search(text))

    def emit(self, choose: Chooser) -> list[str]:
        if self.choices:
            return [choose(self.choices)]
        return list(self.tags)


def _rule(name: str, hint_keyword: str, pattern: str, tags: tuple[str, ...] = (), choices: tuple[str, ...] = ()) -> TagRule:
    return TagRule(name, hint_keyword, re.compile(pattern, re.IGNORECASE), tags, choices)


# Evaluation order matters: tags are emitted in this order.
TAG_RULES: tuple[TagRule, ...] = (
    # Pacing & demeanor
    _rule("excitement", "excited", r"!|let.?s go|ready|woo+|yay|hooray", ("quickly", "higher pitch")),
    _rule("seriousness", "serious", r"focus|careful|listen|danger|stay calm|steady", ("calmly", "lower pitch")),
    _rule("gentleness", "gentle", r"it.?s okay|you.?re safe|all right|we.?re here", ("slowly", "soft volume")),
    _rule("urgency", "urgent", r"hurry|quick|fast|rush", ("urgently",)),
    _rule("hesitancy", "hesitant", r"maybe|perhaps|um|uh", ("hesitant",)),
    _rule("whisper", "whisper", r"secret|quiet|shh", ("whisper",)),
    # Vocal effects
    _rule("loudness", "loud", r"shout|yell|boom|crash", ("loud", "strong")),
    _rule("breathiness", "breathy", r"wind|sigh|breath", ("breathy",)),
    _rule("softness", "soft", r"gentle|quiet|whisper", ("soft volume",)),
    # Breaths and laughter
    _rule("laughter", "laugh", r"ha|hee|hooray|yay|awesome|we did it", choices=LAUGH_TAGS),
    _rule("sigh", "sigh", r"oh|ah|wow|phew", ("sigh",)),
)


def collect_tags(
    text: str,
    hint: Optional[str],
    position: int,
    choose: Optional[Chooser] = None,
    rules: Sequence[TagRule] = TAG_RULES,
) -> list[str]:
    """Return the ordered, de-duplicated tags for one line."""
    choose = choose or random.choice
    line = text.strip()
    hint_lower = (hint or "").lower()

    tags: list[str] = []
    for rule in rules:
        if rule.matches(line, hint_lower):
            tags.extend(rule.emit(choose))

    if position == 0:
        tags.insert(0, "smiling")
    if len(line) > LONG_LINE_CHARS:
        tags.append("quick breath")
    if "?" in line:
        tags.append("beat")
    if "!" in line:
        tags.append("pause")

    return list(dict.fromkeys(tags))


def tag_line(
    text: str,
    hint: Optional[str],
    position: int,
    choose: Optional[Chooser] = None,
) -> str:
    """
    Prefix a line of narration with expressive tags.

    Args:
        text: Sentence or caption to narrate (may already carry a bracketed cue)
        hint: Free-text emotion label, matched case-insensitively; empty is fine
        position: Zero-based index of the line within its scene (0 = opening line)
        choose: Selector for the laughter tag; pass a seeded chooser for stable output

    Returns:
        ``"[tag, tag] text"``, or the stripped text when no rule fired
    """
    line = text.strip()
    tags = collect_tags(line, hint, position, choose)
    if not tags:
        return line
    return f"[{', '.join(tags)}] {line}"


def seeded_chooser(seed: int) -> Chooser:
    """Chooser backed by its own ``random.Random`` so results repeat per seed."""
    return random.Random(seed).choice
