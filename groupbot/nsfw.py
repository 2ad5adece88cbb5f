"""Verdicts on image classification scores."""

from __future__ import annotations

from dataclasses import dataclass

THRESHOLD = 0.3


@dataclass(frozen=True)
class Scores:
    """Class probabilities of one picture."""

    drawings: float = 0.0
    hentai: float = 0.0
    neutral: float = 0.0
    porn: float = 0.0
    sexy: float = 0.0


def _tags(scores: Scores) -> list[str]:
    tags = []
    if scores.hentai > THRESHOLD:
        tags.append(" hentai")
    if scores.porn > THRESHOLD:
        tags.append(" porn")
    if scores.sexy > THRESHOLD:
        tags.append(" hso")
    return tags


def judge(scores: Scores) -> str:
    """Verdict given when a user asks for a rating."""
    if scores.neutral > THRESHOLD:
        return "普通哦"
    if scores.drawings > THRESHOLD or scores.neutral < THRESHOLD:
        kind = "二次元"
    else:
        kind = "三次元"
    return kind + "".join(_tags(scores))


def auto_judge(scores: Scores) -> str | None:
    """Verdict for automatic review, or None when nothing needs saying."""
    if scores.neutral > THRESHOLD:
        return None
    kind = "二次元" if scores.drawings > THRESHOLD else "三次元"
    tags = _tags(scores)
    if not tags:
        return None
    return kind + "".join(tags)