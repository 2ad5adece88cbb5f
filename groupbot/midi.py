"""Simple note-text to MIDI conversion, MIDI to note text, and ear training."""

from __future__ import annotations

import io
import math
import random
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

import mido

NOTES = {
    "C": 60, "Db": 61, "D": 62, "Eb": 63, "E": 64, "F": 65,
    "Gb": 66, "G": 67, "Ab": 68, "A": 69, "Bb": 70, "B": 71,
}

TICKS_PER_BEAT = 960
DEFAULT_TIMBRE = 40
TEMPO_BPM = 72
VELOCITY = 120
ANSWER_PATTERN = re.compile(r"^[A-G][b|#]?\d{0,2}$")

_DIGITS = b"0123456789"


def note_name(n: int) -> str:
    """Name of the pitch class of MIDI note ``n``, flats preferred."""
    for name, value in NOTES.items():
        if value % 12 == n % 12:
            return name
    return ""


def octave_note(base: int, octave: int) -> int:
    """Place pitch class ``base`` in ``octave`` (clamped to 10), kept within 0..127 where possible."""
    if octave > 10:
        octave = 10
    if octave == 0:
        return base
    res = (base + 12 * octave) & 0xFF
    if res > 127:
        res -= 12
    return res


def parse_note(note: str) -> int:
    """MIDI number of a single note such as ``C#6``; the octave defaults to 5."""
    base = 0
    level = 0
    for ch in note.replace(" ", ""):
        if "A" <= ch <= "G":
            base = NOTES[ch] % 12
        elif ch == "b":
            base = (base - 1) & 0xFF
        elif ch == "#":
            base = (base + 1) & 0xFF
        elif ch in "0123456789":
            level = (level * 10 + int(ch)) & 0xFF
    if level == 0:
        level = 5
    return octave_note(base, level)


def validate_timbre(timbre: int) -> int:
    """Return ``timbre`` if it is a valid General MIDI program number."""
    if timbre < 0 or timbre > 127:
        raise ValueError("音色应该在0~127之间")
    return timbre


def _atoi(digits: bytes) -> int:
    text = digits.decode("ascii")
    return int(text) if re.fullmatch(r"-?[0-9]+", text) else 0


def _ticks(length: int) -> int:
    if length >= 0:
        return (TICKS_PER_BEAT << length) & 0xFFFFFFFF
    shift = -length
    if shift >= 32:
        raise ValueError(f"note length out of range: {length}")
    return TICKS_PER_BEAT // (1 << shift)


def build_midi(text: str, timbre: int = DEFAULT_TIMBRE) -> mido.MidiFile:
    """Build a one-track MIDI file from note text such as ``CCGGAAGR`` or ``C#6<-1``."""
    validate_timbre(timbre)
    track = mido.MidiTrack()
    track.append(mido.MetaMessage("time_signature", numerator=4, denominator=4, time=0))
    track.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(TEMPO_BPM), time=0))
    track.append(mido.MetaMessage("instrument_name", name="Violin", time=0))
    track.append(mido.Message("program_change", channel=0, program=timbre, time=0))

    k = text.replace(" ", "").encode("utf-8")
    n = len(k)
    delay = 0
    i = 0
    while i < n:
        base = 0
        level = 0
        rest = False
        length_digits = bytearray()
        while True:
            c = k[i]
            if c == ord("R"):
                rest = True
                i += 1
            elif ord("A") <= c <= ord("G"):
                base = NOTES[chr(c)] % 12
                i += 1
            elif c == ord("b"):
                base = (base - 1) & 0xFF
                i += 1
            elif c == ord("#"):
                base = (base + 1) & 0xFF
                i += 1
            elif c in _DIGITS:
                level = (level * 10 + c - ord("0")) & 0xFF
                i += 1
            elif c == ord("<"):
                i += 1
                while i < n and (k[i] == ord("-") or k[i] in _DIGITS):
                    length_digits.append(k[i])
                    i += 1
            else:
                raise ValueError(f"无法解析第{i}个位置的{chr(c)}字符")
            if i >= n or ord("A") <= k[i] <= ord("G") or k[i] == ord("R"):
                break
        ticks = _ticks(_atoi(bytes(length_digits)))
        if rest:
            delay = ticks
            continue
        if level == 0:
            level = 5
        key = octave_note(base, level) & 0x7F
        track.append(mido.Message("note_on", channel=0, note=key, velocity=VELOCITY, time=delay))
        track.append(mido.Message("note_off", channel=0, note=key, velocity=0, time=ticks))
        delay = 0
    track.append(mido.MetaMessage("end_of_track", time=0))

    mid = mido.MidiFile(type=0, ticks_per_beat=TICKS_PER_BEAT)
    mid.tracks.append(track)
    return mid


def write_midi(path, text: str, timbre: int = DEFAULT_TIMBRE) -> Path:
    """Write the MIDI for ``text`` to ``path`` unless the file already exists."""
    target = Path(path)
    if target.exists():
        return target
    build_midi(text, timbre).save(str(target))
    return target


def _go_round(x: float) -> float:
    return math.floor(x + 0.5) if x >= 0 else -math.floor(-x + 0.5)


def _power(length: float) -> int | None:
    if length <= 0:
        return None
    return int(_go_round(math.log2(length)))


def midi_to_text(data: bytes, track_no: int) -> str:
    """Note text for one track of a MIDI file; unknown tracks give an empty string."""
    try:
        mid = mido.MidiFile(file=io.BytesIO(data))
    except (OSError, EOFError, ValueError, KeyError, IndexError) as err:
        raise ValueError(f"invalid midi data: {err}") from err
    if not 0 <= track_no < len(mid.tracks):
        return ""
    parts: list[str] = []
    abs_ticks = 0
    start = end = 0.0
    start_note = end_note = 0
    for msg in mid.tracks[track_no]:
        abs_ticks += msg.time
        if msg.is_meta:
            continue
        on = msg.type == "note_on" and msg.velocity > 0
        off = msg.type == "note_off" or (msg.type == "note_on" and msg.velocity == 0)
        if on:
            start = float(abs_ticks)
            start_note = msg.note
        if off:
            end = float(abs_ticks)
            end_note = msg.note
            if start_note == end_note:
                parts.append(note_name(msg.note))
                level = msg.note // 12
                if level != 5:
                    parts.append(str(level))
                power = _power((end - start) / TICKS_PER_BEAT)
                if power is not None and power >= -4 and power != 0:
                    parts.append(f"<{power}")
                start_note = end_note = 0
        if on and start > end:
            power = _power((start - end) / TICKS_PER_BEAT)
            if power == 0:
                parts.append("R")
            elif power is not None and power >= -4:
                parts.append(f"R<{power}")
    return "".join(parts)


def render_wav(midi_path, wav_path) -> Path:
    """Render a MIDI file to WAV with timidity."""
    subprocess.run(
        ["timidity", str(midi_path), "-Ow", "-o", str(wav_path)],
        check=True,
    )
    return Path(wav_path)


@dataclass
class AnswerResult:
    """Outcome of one answer in an ear-training session."""

    correct: bool
    solution: str
    errors: int
    advanced: bool
    finished: bool


class EarTrainingSession:
    """Five questions of naming a played note, alone or as a team."""

    ROUNDS = 5

    def __init__(self, team: bool = False, rng: random.Random | None = None):
        self.team = team
        self.rng = rng or random.Random()
        self.max_errors = 10 if team else 3
        self.round = 1
        self.errors = 0
        self.scores: dict[int, float] = {}
        self.target = 0
        self.solution = ""
        self._new_question()

    def _new_question(self) -> None:
        self.target = 55 + self.rng.randrange(34)
        self.solution = note_name(self.target) + str(self.target // 12)

    @property
    def finished(self) -> bool:
        return self.round > self.ROUNDS

    def answer(self, user: int, text: str) -> AnswerResult:
        """Judge ``user``'s answer to the current question."""
        if self.finished:
            raise RuntimeError("session already finished")
        if not ANSWER_PATTERN.match(text):
            raise ValueError(f"not a note: {text!r}")
        solution = self.solution
        correct = parse_note(text) == self.target
        if not correct:
            self.errors += 1
        errors = self.errors
        advanced = correct or self.errors == self.max_errors
        if advanced:
            if self.team:
                if self.errors != self.max_errors:
                    self.scores[user] = self.scores.get(user, 0.0) + 1.0
            else:
                bonus = {0: 1.0, 1: 0.5, 2: 0.2}.get(self.errors)
                if bonus is not None:
                    self.scores[user] = self.scores.get(user, 0.0) + bonus
            self.round += 1
            if not self.finished:
                self.errors = 0
                self._new_question()
        return AnswerResult(correct, solution, errors, advanced, self.finished)