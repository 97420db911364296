"""Narration Engine - turns written scenes into tagged narration chunks and audio."""

import re
from collections.abc import Mapping
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError

from dreamlity.core.config import Settings
from dreamlity.core.errors import NarrationInputError
from dreamlity.models.schemas import NarrationMode, Pace, StoryScene, VoiceSettings
from dreamlity.services.expressive_tags import Chooser, tag_line
from dreamlity.utils.text_utils import estimate_spoken_duration

PAUSE_MARKER = "[pause]"

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
_TAG_BOUNDARY = re.compile(r" (?=\[)")

_PACE_TAGS = {
    Pace.FAST: "quickly",
    Pace.SLOW: "slowly",
    Pace.NORMAL: "calmly",
}

SceneLike = Union[StoryScene, Mapping]


def split_sentences(text: str) -> list[str]:
    """Split prose after ., ! or ? followed by whitespace, keeping the punctuation."""
    return [sentence for sentence in _SENTENCE_BOUNDARY.split(text or "") if sentence]


def pace_tag(pace: Union[Pace, str]) -> str:
    """Global pacing tag for a pace setting; anything unrecognized reads calmly."""
    try:
        return _PACE_TAGS[Pace(pace)]
    except ValueError:
        return _PACE_TAGS[Pace.NORMAL]


def _coerce_mode(mode: Union[NarrationMode, str]) -> NarrationMode:
    try:
        return NarrationMode(mode)
    except ValueError:
        return NarrationMode.NARRATOR


def _coerce_scene(scene: Any) -> StoryScene:
    if isinstance(scene, StoryScene):
        return scene
    if isinstance(scene, Mapping):
        if "text" not in scene:
            raise NarrationInputError(f"Scene {scene.get('id', '?')!r} has no text")
        try:
            return StoryScene.model_validate(scene)
        except ValidationError as e:
            raise NarrationInputError(f"Invalid scene: {e}") from e
    raise NarrationInputError(f"Expected a scene, got {type(scene).__name__}")


def opening_line(
    scene: StoryScene,
    mode: NarrationMode,
    global_pace_tag: str,
    choose: Optional[Chooser] = None,
) -> str:
    """Caption line that opens a scene, decorated for the narration mode."""
    hint = scene.emotion_hint.lower()
    if mode is NarrationMode.PLAYFUL:
        return tag_line(f"[{global_pace_tag}, smiling] {scene.caption}", hint, 0, choose)
    if mode is NarrationMode.EPIC:
        return tag_line(f"[{global_pace_tag}, lower pitch, strong] {scene.caption}", "serious", 0, choose)
    return tag_line(f"[{global_pace_tag}] {scene.caption}", hint, 0, choose)


def sentence_line(sentence: str, hint: str, position: int, choose: Optional[Chooser] = None) -> str:
    """Tag one body sentence, letting its punctuation override the scene hint."""
    if "!" in sentence and "excited" in hint:
        return tag_line(sentence, "excited", position, choose)
    if "?" in sentence:
        return tag_line(sentence, "hesitant", position, choose)
    if "..." in sentence:
        return tag_line(sentence, "slowly", position, choose)
    return tag_line(sentence, hint or "gentle", position, choose)


def build_script(
    scenes: Iterable[SceneLike],
    mode: Union[NarrationMode, str] = NarrationMode.NARRATOR,
    pace: Union[Pace, str] = Pace.NORMAL,
    choose: Optional[Chooser] = None,
) -> list[str]:
    """
    Expand scenes into the flat list of annotated narration lines.

    Every scene contributes a ``[pause]`` page-turn marker, its opening caption
    line, then one line per body sentence.

    Args:
        scenes: Scenes in presentation order
        mode: Narration mode for the caption phrasing
        pace: Story-wide pace, mapped to one tag on every opening line
        choose: Laughter tag selector

    Returns:
        Annotated lines in story order (empty for no scenes)

    Raises:
        NarrationInputError: If an element is not a scene
    """
    narration_mode = _coerce_mode(mode)
    global_pace_tag = pace_tag(pace)

    lines: list[str] = []
    for raw_scene in scenes:
        scene = _coerce_scene(raw_scene)
        hint = scene.emotion_hint.lower()

        lines.append(PAUSE_MARKER)
        lines.append(opening_line(scene, narration_mode, global_pace_tag, choose))
        for i, sentence in enumerate(split_sentences(scene.text)):
            lines.append(sentence_line(sentence, hint, i + 1, choose))

    return lines


def split_into_chunks(lines: Iterable[str]) -> list[str]:
    """
    Cut a script into one synthesis chunk per scene.

    The script is split on its ``[pause]`` markers; every chunk after the first
    gets the marker back as a leading cue.
    """
    script = " ".join(lines)
    segments = [segment.strip() for segment in script.split(PAUSE_MARKER)]
    segments = [segment for segment in segments if segment]
    return [segment if i == 0 else f"{PAUSE_MARKER} {segment}" for i, segment in enumerate(segments)]


def _greedy_join(pieces: Iterable[str], max_chars: int) -> list[str]:
    """Join pieces with single spaces into runs no longer than max_chars.

    A single piece over the budget is emitted on its own.
    """
    runs: list[str] = []
    current: Optional[str] = None
    for piece in pieces:
        if current is None:
            current = piece
        elif len(current) + 1 + len(piece) <= max_chars:
            current = f"{current} {piece}"
        else:
            runs.append(current)
            current = piece
    if current is not None:
        runs.append(current)
    return runs


def _hard_split(chunk: str, max_chars: int) -> list[str]:
    pieces: list[str] = []
    for segment in _TAG_BOUNDARY.split(chunk):
        if len(segment) <= max_chars:
            pieces.append(segment)
            continue
        words: list[str] = []
        for word in segment.split(" "):
            # a word over the budget is cut mid-word
            words.extend(word[i : i + max_chars] for i in range(0, max(len(word), 1), max_chars))
        pieces.extend(_greedy_join(words, max_chars))
    return pieces


def pack_chunks(chunks: Iterable[str], max_chars: int = 3000) -> list[str]:
    """
    Fit chunks to a synthesis budget.

    Adjacent short chunks are merged and oversized chunks are cut at tag
    boundaries, then at word boundaries. A word longer than the budget is
    sliced, so no chunk exceeds max_chars. Otherwise joining the result with
    single spaces gives back the joined input.
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")

    pieces: list[str] = []
    for chunk in chunks:
        if len(chunk) <= max_chars:
            pieces.append(chunk)
        else:
            pieces.extend(_hard_split(chunk, max_chars))
    return _greedy_join(pieces, max_chars)


class NarrationEngine:
    """Builds the expressive narration script for a story and sends it to TTS."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        tts_client: Optional[Any] = None,
        choose: Optional[Chooser] = None,
    ):
        """
        Initialize the narration engine.

        Args:
            settings: Application settings
            logger: Logger instance
            tts_client: Client used by narrate(); created lazily when omitted
            choose: Laughter tag selector (random by default)
        """
        self.settings = settings
        self.logger = logger
        self.choose = choose
        self._tts_client = tts_client

    @property
    def tts_client(self) -> Any:
        if self._tts_client is None:
            from dreamlity.services.tts_client import TTSClient

            self._tts_client = TTSClient(self.settings, self.logger)
        return self._tts_client

    def prepare_chunks(
        self,
        scenes: Iterable[SceneLike],
        mode: Union[NarrationMode, str] = NarrationMode.NARRATOR,
        pace: Union[Pace, str] = Pace.NORMAL,
    ) -> tuple[list[str], list[str]]:
        """
        Build the annotated script and split it for synthesis.

        Returns:
            Tuple of (script lines, chunks)
        """
        lines = build_script(scenes, mode, pace, self.choose)
        chunks = split_into_chunks(lines)

        if self.settings.narration_pack_chunks:
            chunks = pack_chunks(chunks, self.settings.narration_max_chunk_chars)
        else:
            oversized = [i for i, chunk in enumerate(chunks) if len(chunk) > self.settings.narration_max_chunk_chars]
            if oversized:
                self.logger.warning(
                    f"{len(oversized)} narration chunk(s) exceed {self.settings.narration_max_chunk_chars} characters"
                )

        self.logger.info(
            f"Built narration script: {len(lines)} lines, {len(chunks)} chunks "
            f"(~{estimate_spoken_duration(' '.join(chunks))}s spoken)"
        )
        return lines, chunks

    def narrate(
        self,
        scenes: Iterable[SceneLike],
        mode: Union[NarrationMode, str],
        pace: Union[Pace, str],
        voice_id: str,
        voice_settings: Optional[VoiceSettings] = None,
    ) -> list[str]:
        """
        Synthesize the story narration.

        Returns:
            Audio URLs, one per chunk in story order; failed chunks are empty strings
        """
        _, chunks = self.prepare_chunks(scenes, mode, pace)
        if not chunks:
            self.logger.info("No narration chunks, skipping synthesis")
            return []

        results = self.tts_client.generate_batch_audio(
            chunks,
            voice_id=voice_id,
            voice_settings=voice_settings,
        )
        failed = sum(1 for result in results if not result.public_url)
        if failed:
            self.logger.warning(f"{failed}/{len(results)} narration chunks failed to synthesize")
        return [result.public_url for result in results]
