"""Tests for the clip job data model and its dict parsing."""

import pytest

from reelcut.models import (
    ClipRequest,
    InputViolation,
    Position,
    Speaker,
    TranscriptSegment,
    Word,
    parse_speakers,
    parse_transcript,
    speakers_by_id,
)


class TestPosition:
    @pytest.mark.parametrize("raw, expected", [
        ("left", Position.LEFT),
        ("RIGHT", Position.RIGHT),
        ("center", Position.CENTER),
        ("izquierda", Position.LEFT),
        ("derecha", Position.RIGHT),
        ("centro", Position.CENTER),
        ("desconocido", Position.UNKNOWN),
    ])
    def test_parses_labels(self, raw, expected):
        assert Position.parse(raw) is expected

    def test_unknown_label_rejected(self):
        with pytest.raises(InputViolation, match="Unknown speaker position"):
            Position.parse("upstairs")


class TestSpeaker:
    def test_from_dict(self):
        s = Speaker.from_dict(
            {"id": "orador_1", "description": "man with glasses", "position": "izquierda"}
        )
        assert s.id == "orador_1"
        assert s.position is Position.LEFT
        assert s.description == "man with glasses"

    def test_position_defaults_to_unknown(self):
        assert Speaker.from_dict({"id": "x"}).position is Position.UNKNOWN

    def test_missing_id_rejected(self):
        with pytest.raises(InputViolation, match="'id'"):
            Speaker.from_dict({"position": "left"})

    def test_duplicate_ids_rejected(self):
        with pytest.raises(InputViolation, match="Duplicate speaker id"):
            speakers_by_id([Speaker("A"), Speaker("A")])

    def test_parse_speakers_accepts_wrapped_document(self):
        speakers = parse_speakers({"speakers": [{"id": "A", "position": "right"}]})
        assert speakers == [Speaker("A", Position.RIGHT)]


class TestWord:
    def test_whisper_keys(self):
        w = Word.from_dict({"word": " Hello", "start": 1.0, "end": 1.4, "probability": 0.9})
        assert w == Word("Hello", 1.0, 1.4, 0.9)

    def test_confidence_defaults_to_one(self):
        assert Word.from_dict({"text": "hi", "start": 0, "end": 0.2}).confidence == 1.0

    def test_end_before_start_rejected(self):
        with pytest.raises(InputViolation, match="end"):
            Word("bad", 2.0, 1.0)

    def test_confidence_out_of_range_rejected(self):
        with pytest.raises(InputViolation, match="confidence"):
            Word("bad", 0.0, 1.0, confidence=1.5)

    def test_non_numeric_time_rejected(self):
        with pytest.raises(InputViolation, match="must be a number"):
            Word.from_dict({"text": "x", "start": "soon", "end": 1})


class TestTranscriptSegment:
    def test_camel_case_keys(self):
        seg = TranscriptSegment.from_dict(
            {"speakerId": "A", "text": "hi there", "startTime": 10, "endTime": 13}
        )
        assert seg.speaker_id == "A"
        assert seg.start_time == 10.0
        assert seg.end_time == 13.0
        assert seg.duration == 3.0

    def test_whisper_segment_without_speaker(self):
        seg = TranscriptSegment.from_dict({
            "id": 0, "start": 0, "end": 2, "text": " Hello World",
            "words": [
                {"word": "Hello", "start": 0, "end": 1, "probability": 1},
                {"word": "World", "start": 1, "end": 2, "probability": 1},
            ],
        })
        assert seg.speaker_id == ""
        assert seg.text == "Hello World"
        assert [w.text for w in seg.words] == ["Hello", "World"]

    def test_text_defaults_to_joined_words(self):
        seg = TranscriptSegment.from_dict({
            "speaker": "A", "start": 0, "end": 1,
            "words": [{"text": "a", "start": 0, "end": 0.5},
                      {"text": "b", "start": 0.5, "end": 1}],
        })
        assert seg.text == "a b"

    def test_empty_interval_rejected(self):
        with pytest.raises(InputViolation, match="must be > startTime"):
            TranscriptSegment("A", 5.0, 5.0)

    def test_word_outside_segment_rejected(self):
        with pytest.raises(InputViolation, match="outside its segment"):
            TranscriptSegment("A", 1.0, 2.0, words=(Word("late", 1.5, 2.5),))

    def test_word_within_tolerance_accepted(self):
        seg = TranscriptSegment("A", 1.0, 2.0, words=(Word("ok", 1.5, 2.0005),))
        assert len(seg.words) == 1

    def test_shifted_moves_segment_and_words(self):
        seg = TranscriptSegment("A", 12.0, 14.0, words=(Word("x", 12.5, 13.0),))
        moved = seg.shifted(10.0)
        assert (moved.start_time, moved.end_time) == (2.0, 4.0)
        assert (moved.words[0].start, moved.words[0].end) == (2.5, 3.0)
        # Original untouched.
        assert seg.start_time == 12.0


class TestParseTranscript:
    def test_list_of_segments(self):
        segs = parse_transcript([
            {"speakerId": "A", "startTime": 0, "endTime": 1},
            {"speakerId": "B", "startTime": 1, "endTime": 2},
        ])
        assert [s.speaker_id for s in segs] == ["A", "B"]

    def test_wrapped_document(self):
        segs = parse_transcript(
            {"titulo": "Episode", "segments": [{"start": 0, "end": 1}]}
        )
        assert len(segs) == 1

    def test_error_names_segment_index(self):
        with pytest.raises(InputViolation, match="Transcript segment 1"):
            parse_transcript([
                {"speakerId": "A", "startTime": 0, "endTime": 1},
                {"speakerId": "B", "startTime": 3, "endTime": 2},
            ])


class TestClipRequest:
    def test_duration(self):
        assert ClipRequest("in.mp4", 10.0, 20.0).duration == 10.0

    def test_end_not_after_start_rejected(self):
        with pytest.raises(InputViolation, match="must be > start"):
            ClipRequest("in.mp4", 20.0, 20.0)
