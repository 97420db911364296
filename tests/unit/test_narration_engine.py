"""Tests for narration script assembly, chunking and the narration engine."""

import pytest
from unittest.mock import MagicMock

from dreamlity.core.errors import NarrationInputError
from dreamlity.models.schemas import AudioResult, NarrationMode, Pace, StoryScene
from dreamlity.services.narration_engine import (
    PAUSE_MARKER,
    NarrationEngine,
    build_script,
    pace_tag,
    pack_chunks,
    sentence_line,
    split_into_chunks,
    split_sentences,
)


@pytest.fixture
def rescue_scene():
    """Single excited scene with an exclamatory caption."""
    return StoryScene(
        id="1",
        title="T",
        caption="Time to help!",
        text="Lights flash. Wheels roll fast!",
        emotion_hint="excited",
    )


def test_split_sentences_keeps_punctuation():
    """Sentences split after terminal punctuation and keep it."""
    assert split_sentences("One. Two! Three? Four") == ["One.", "Two!", "Three?", "Four"]


def test_split_sentences_without_terminal_punctuation():
    """Text without terminal punctuation is one sentence."""
    assert split_sentences("a lovely day at the park") == ["a lovely day at the park"]
    assert split_sentences("") == []


@pytest.mark.parametrize(
    "pace,expected",
    [(Pace.FAST, "quickly"), (Pace.SLOW, "slowly"), ("normal", "calmly"), ("warp", "calmly")],
)
def test_pace_tag(pace, expected):
    """Pace maps to one global tag, unknown values read calmly."""
    assert pace_tag(pace) == expected


def test_build_script_line_count(sample_scenes, pinned_choice):
    """Each scene adds a pause marker, an opening line and one line per sentence."""
    lines = build_script(sample_scenes, NarrationMode.NARRATOR, Pace.NORMAL, pinned_choice)

    expected = sum(2 + len(split_sentences(scene.text)) for scene in sample_scenes)
    assert len(lines) == expected
    assert lines[0] == PAUSE_MARKER
    assert lines.count(PAUSE_MARKER) == len(sample_scenes)


def test_epic_opening_line_has_lower_pitch(sample_scenes, pinned_choice):
    """Epic captions always carry lower pitch."""
    lines = build_script(sample_scenes, NarrationMode.EPIC, Pace.NORMAL, pinned_choice)

    openings = [lines[i + 1] for i, line in enumerate(lines) if line == PAUSE_MARKER]
    assert len(openings) == 2
    assert all("lower pitch" in line for line in openings)


def test_playful_opening_line_is_smiling(sample_scenes, pinned_choice):
    """Playful captions always carry smiling."""
    lines = build_script(sample_scenes, NarrationMode.PLAYFUL, Pace.SLOW, pinned_choice)

    openings = [lines[i + 1] for i, line in enumerate(lines) if line == PAUSE_MARKER]
    assert all("smiling" in line for line in openings)
    assert all("[slowly, smiling]" in line for line in openings)


def test_rescue_scene_script(rescue_scene, pinned_choice):
    """Excited narrator scene at fast pace."""
    lines = build_script([rescue_scene], "narrator", "fast", pinned_choice)

    assert lines[0] == PAUSE_MARKER
    assert lines[1] == "[smiling, quickly, higher pitch, urgently, pause] [quickly] Time to help!"
    assert "quickly, higher pitch" in lines[1]
    assert lines[2] == "[quickly, higher pitch] Lights flash."
    assert "pause" in lines[3]
    assert "quickly" in lines[3]
    assert "higher pitch" in lines[3]
    assert len(lines) == 4


def test_question_sentence_reads_hesitant():
    """A question overrides the scene hint with hesitant."""
    assert sentence_line("Where did the kite go?", "excited", 1) == "[hesitant, beat] Where did the kite go?"


def test_ellipsis_sentence_drops_scene_hint():
    """An ellipsis replaces the scene hint with slowly, which fires no rule."""
    assert sentence_line("And then...", "excited", 1) == "And then..."


def test_empty_hint_defaults_to_gentle():
    """Sentences in a scene without a hint are read gently."""
    assert sentence_line("It was late.", "", 1) == "[slowly, soft volume] It was late."


def test_unknown_mode_reads_like_narrator(sample_scenes, pinned_choice):
    """An unrecognized mode falls back to the narrator phrasing."""
    assert build_script(sample_scenes, "opera", "normal", pinned_choice) == build_script(
        sample_scenes, "narrator", "normal", pinned_choice
    )


def test_scene_with_empty_text(pinned_choice):
    """Empty prose yields only the pause marker and the opening line."""
    lines = build_script([StoryScene(id="1", caption="Hello there.", text="")], choose=pinned_choice)

    assert lines == [PAUSE_MARKER, "[smiling] [calmly] Hello there."]


def test_scenes_from_mappings(pinned_choice):
    """Plain mappings are accepted and missing hints are tolerated."""
    lines = build_script([{"id": 1, "caption": "Hello there.", "text": "The sun rose."}], choose=pinned_choice)

    assert lines == [PAUSE_MARKER, "[smiling] [calmly] Hello there.", "[slowly, soft volume] The sun rose."]


def test_scene_without_text_is_rejected():
    """A mapping without text is a programming error."""
    with pytest.raises(NarrationInputError):
        build_script([{"id": "1", "caption": "Hi."}])


def test_non_scene_is_rejected():
    """Anything that is not a scene is rejected as a ValueError."""
    with pytest.raises(ValueError):
        build_script(["just a string"])


def test_empty_story():
    """No scenes give no lines and no chunks."""
    assert build_script([]) == []
    assert split_into_chunks([]) == []


def test_two_scenes_give_two_chunks(sample_scenes, pinned_choice):
    """One chunk per scene, later chunks led by a pause cue."""
    chunks = split_into_chunks(build_script(sample_scenes, choose=pinned_choice))

    assert len(chunks) == 2
    assert not chunks[0].startswith(PAUSE_MARKER)
    assert chunks[1].startswith("[pause] ")


def test_chunks_reproduce_script(sample_scenes, pinned_choice):
    """Rejoining the chunks gives back the script in order."""
    lines = build_script(sample_scenes, NarrationMode.PLAYFUL, Pace.FAST, pinned_choice)
    chunks = split_into_chunks(lines)

    assert f"{PAUSE_MARKER} " + " ".join(chunks) == " ".join(lines)
    scene_groups = " ".join(lines).split(PAUSE_MARKER)[1:]
    assert [chunk.replace("[pause] ", "", 1) if i else chunk for i, chunk in enumerate(chunks)] == [
        group.strip() for group in scene_groups
    ]


def test_pack_chunks_merges_short_chunks():
    """Adjacent chunks are merged while they fit."""
    assert pack_chunks(["aaa", "bbb", "ccc"], max_chars=7) == ["aaa bbb", "ccc"]


def test_pack_chunks_splits_at_tags_then_words():
    """Oversized chunks are cut at tag boundaries, then between words."""
    chunk = "[slowly] one two three [pause] four"

    packed = pack_chunks([chunk], max_chars=12)

    assert packed == ["[slowly] one", "two three", "[pause] four"]
    assert " ".join(packed) == chunk


def test_pack_chunks_slices_words_over_budget():
    """A single word longer than the budget is cut into budget-sized pieces."""
    assert pack_chunks(["x" * 20], max_chars=10) == ["x" * 10, "x" * 10]
    assert pack_chunks(["[sigh] " + "y" * 25 + " ok"], max_chars=10) == ["[sigh]", "y" * 10, "y" * 10, "yyyyy ok"]


def test_pack_chunks_respects_budget(sample_scenes, pinned_choice):
    """Every packed chunk fits and the joined text is unchanged."""
    chunks = split_into_chunks(build_script(sample_scenes * 3, choose=pinned_choice))

    packed = pack_chunks(chunks, max_chars=80)

    assert all(len(chunk) <= 80 for chunk in packed)
    assert " ".join(packed) == " ".join(chunks)


def test_pack_chunks_rejects_non_positive_budget():
    """The budget must be positive."""
    with pytest.raises(ValueError):
        pack_chunks(["abc"], max_chars=0)


def test_prepare_chunks_one_per_scene(settings, logger, sample_scenes, pinned_choice):
    """By default the engine keeps one chunk per scene."""
    engine = NarrationEngine(settings, logger, choose=pinned_choice)

    lines, chunks = engine.prepare_chunks(sample_scenes, NarrationMode.NARRATOR, Pace.NORMAL)

    assert len(lines) == 8
    assert len(chunks) == 2


def test_prepare_chunks_packs_when_enabled(settings, logger, sample_scenes, pinned_choice):
    """Packing merges short scenes into one request."""
    settings.narration_pack_chunks = True
    engine = NarrationEngine(settings, logger, choose=pinned_choice)

    _, chunks = engine.prepare_chunks(sample_scenes, NarrationMode.NARRATOR, Pace.NORMAL)

    assert len(chunks) == 1
    assert "[pause] " in chunks[0]


def test_narrate_returns_urls_in_chunk_order(settings, logger, sample_scenes, pinned_choice):
    """Audio URLs come back 1:1 with chunks, failed chunks empty."""
    tts_client = MagicMock()
    tts_client.generate_batch_audio.return_value = [
        AudioResult(file_name="a.mp3", public_url="/generated/audio/a.mp3", voice_id="v", model="m"),
        AudioResult(file_name="error_1.mp3", public_url="", voice_id="v", model="m", error="quota"),
    ]
    engine = NarrationEngine(settings, logger, tts_client=tts_client, choose=pinned_choice)

    urls = engine.narrate(sample_scenes, NarrationMode.NARRATOR, Pace.NORMAL, voice_id="v")

    assert urls == ["/generated/audio/a.mp3", ""]
    texts = tts_client.generate_batch_audio.call_args.args[0]
    assert len(texts) == 2
    assert texts[1].startswith("[pause] ")


def test_narrate_skips_empty_story(settings, logger):
    """No chunks means no synthesis calls."""
    tts_client = MagicMock()
    engine = NarrationEngine(settings, logger, tts_client=tts_client)

    assert engine.narrate([], NarrationMode.NARRATOR, Pace.NORMAL, voice_id="v") == []
    tts_client.generate_batch_audio.assert_not_called()
