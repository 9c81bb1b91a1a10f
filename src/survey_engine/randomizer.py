"""OptionRandomizer — shuffles option order once per session.

Only questions flagged ``randomize`` are touched.  Each question gets its
own RNG seeded from ``(seed, question.id)``, so the order depends solely on
the session seed: the same session (including after a resume) sees the same
order, and adding or removing another question does not reshuffle this one.

The controller applies the randomizer once, when a session's questions are
loaded.  Rendering never reshuffles.
"""

from __future__ import annotations

import random

from survey_engine.models.question import Question


class OptionRandomizer:
    """Deterministic per-session option shuffler."""

    def __init__(self, seed: str) -> None:
        self._seed = seed

    def apply(self, questions: list[Question]) -> list[Question]:
        """Return ``questions`` with options of ``randomize`` questions shuffled.

        Non-randomized questions are returned as the same objects.
        """
        return [self.shuffle(q) for q in questions]

    def shuffle(self, question: Question) -> Question:
        """Return a copy of ``question`` with its options in session order."""
        if not question.randomize or not question.options or len(question.options) < 2:
            return question
        rng = random.Random(f"{self._seed}:{question.id}")
        options = list(question.options)
        rng.shuffle(options)
        return question.model_copy(update={"options": options})
