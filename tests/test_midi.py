import io
import random
import subprocess
from unittest import mock

import mido
import pytest

from groupbot.midi import (
    EarTrainingSession,
    build_midi,
    midi_to_text,
    note_name,
    octave_note,
    parse_note,
    render_wav,
    validate_timbre,
    write_midi,
)

WRONG = "C1"


def _bytes(mid):
    buf = io.BytesIO()
    mid.save(file=buf)
    return buf.getvalue()


def _notes(mid):
    return [m for m in mid.tracks[0] if m.type == "note_on"]


def test_note_name_from_table():
    assert note_name(60) == "C"
    assert note_name(61) == "Db"
    assert note_name(71 + 12) == "B"
    assert note_name(0) == "C"


def test_octave_note():
    assert octave_note(0, 5) == 60
    assert octave_note(9, 0) == 9
    assert octave_note(0, 11) == octave_note(0, 10)
    assert octave_note(11, 10) <= 127


def test_parse_note():
    assert parse_note("C") == 60
    assert parse_note("A") == 69
    assert parse_note("Db") == parse_note("C#")
    assert parse_note("C6") == parse_note("C") + 12
    assert parse_note("C 6") == parse_note("C6")


def test_validate_timbre():
    assert validate_timbre(0) == 0
    assert validate_timbre(127) == 127
    with pytest.raises(ValueError):
        validate_timbre(-1)
    with pytest.raises(ValueError):
        validate_timbre(128)


def test_build_midi_notes_and_program():
    mid = build_midi("CDE", 40)
    assert mid.ticks_per_beat == 960
    assert [m.note for m in _notes(mid)] == [60, 62, 64]
    programs = [m.program for m in mid.tracks[0] if m.type == "program_change"]
    assert programs == [40]


def test_build_midi_spaces_ignored():
    assert [m.note for m in _notes(build_midi("C D"))] == [m.note for m in _notes(build_midi("CD"))]


def test_build_midi_rest_and_lengths():
    mid = build_midi("CRD")
    ons = _notes(mid)
    assert ons[1].time == mid.ticks_per_beat
    offs = [m for m in build_midi("C<1").tracks[0] if m.type == "note_off"]
    assert offs[0].time == 2 * mid.ticks_per_beat
    offs = [m for m in build_midi("C<-1").tracks[0] if m.type == "note_off"]
    assert offs[0].time * 2 == mid.ticks_per_beat


def test_build_midi_bad_char():
    with pytest.raises(ValueError, match="第1个位置"):
        build_midi("CX")


def test_build_midi_bad_timbre():
    with pytest.raises(ValueError):
        build_midi("C", 200)


@pytest.mark.parametrize("text", ["CDE", "C<1", "CRD", "C6", "R<-1C", "Db<-2"])
def test_round_trip(text):
    assert midi_to_text(_bytes(build_midi(text)), 0) == text


def test_sharp_is_written_as_flat():
    assert midi_to_text(_bytes(build_midi("C#")), 0) == "Db"


def test_round_trip_is_stable():
    once = midi_to_text(_bytes(build_midi("CCGGAAGR FFEEDDCR")), 0)
    assert midi_to_text(_bytes(build_midi(once)), 0) == once


def test_midi_to_text_unknown_track():
    assert midi_to_text(_bytes(build_midi("C")), 3) == ""


def test_midi_to_text_invalid_data():
    with pytest.raises(ValueError):
        midi_to_text(b"not midi at all", 0)


def test_write_midi_creates_and_keeps_existing(tmp_path):
    target = tmp_path / "song.mid"
    write_midi(target, "CDE")
    assert midi_to_text(target.read_bytes(), 0) == "CDE"
    other = tmp_path / "old.mid"
    other.write_bytes(b"x")
    write_midi(other, "CDE")
    assert other.read_bytes() == b"x"


def test_render_wav_calls_timidity(tmp_path):
    midi_path = tmp_path / "a.mid"
    wav_path = tmp_path / "a.wav"
    with mock.patch("groupbot.midi.subprocess.run") as run:
        result = render_wav(midi_path, wav_path)
    assert result == wav_path
    args = run.call_args[0][0]
    assert args == ["timidity", str(midi_path), "-Ow", "-o", str(wav_path)]


def test_render_wav_failure(tmp_path):
    err = subprocess.CalledProcessError(1, "timidity")
    with mock.patch("groupbot.midi.subprocess.run", side_effect=err):
        with pytest.raises(subprocess.CalledProcessError):
            render_wav(tmp_path / "a.mid", tmp_path / "a.wav")


def test_session_question_consistent():
    s = EarTrainingSession(rng=random.Random(1))
    assert 55 <= s.target < 89
    assert parse_note(s.solution) == s.target
    assert s.solution == note_name(s.target) + str(s.target // 12)


def test_personal_scoring():
    s = EarTrainingSession(rng=random.Random(2))
    r = s.answer(7, s.solution)
    assert r.correct and r.advanced and not r.finished
    assert s.scores[7] == 1.0
    s.answer(7, WRONG)
    s.answer(7, s.solution)
    assert s.scores[7] == 1.5
    s.answer(7, WRONG)
    s.answer(7, WRONG)
    s.answer(7, s.solution)
    assert s.scores[7] == pytest.approx(1.7)


def test_personal_fails_after_three_errors():
    s = EarTrainingSession(rng=random.Random(3))
    first = s.solution
    s.answer(1, WRONG)
    r = s.answer(1, WRONG)
    assert not r.advanced and r.errors == 2
    r = s.answer(1, WRONG)
    assert r.advanced and not r.correct and r.solution == first
    assert s.scores == {}
    assert s.errors == 0


def test_team_session_finishes():
    s = EarTrainingSession(team=True, rng=random.Random(4))
    assert s.max_errors == 10
    results = [s.answer(i, s.solution) for i in range(5)]
    assert results[-1].finished
    assert not any(r.finished for r in results[:-1])
    assert s.scores == {i: 1.0 for i in range(5)}
    with pytest.raises(RuntimeError):
        s.answer(0, "C")


def test_session_rejects_non_note():
    s = EarTrainingSession(rng=random.Random(5))
    with pytest.raises(ValueError):
        s.answer(1, "H")
    assert s.errors == 0