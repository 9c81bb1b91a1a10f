"""CatalogStore — loads the question catalog from ``v1/catalog/`` into typed models.

This is the single source of truth for question definitions at runtime on
the server.  The store is loaded once at startup; each new session freezes
the role's question list from it.

The catalog file groups questions by section::

    - section: Practice
      section_order: 1
      questions:
        - id: q_years
          external_id: N1
          text: How many years have you practised?
          type: slider
          ...

Usage::

    store = CatalogStore()          # defaults to v1/catalog relative to repo root
    store.load()
    questions = store.questions_for_role("nurse")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from survey_engine.constants import ROLES, SHARED_ROLE
from survey_engine.models.question import Question

logger = logging.getLogger(__name__)

CATALOG_FILE = "questions.yaml"


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# CatalogStore
# ---------------------------------------------------------------------------

class CatalogStore:
    """Loads the catalog YAML and provides typed, ordered lookup.

    Attributes populated after :meth:`load`:

        questions — dict[id, Question] in catalog order
    """

    def __init__(self, catalog_dir: str | Path | None = None) -> None:
        if catalog_dir is None:
            catalog_dir = find_repo_root() / "v1" / "catalog"
        self._base = Path(catalog_dir)
        self.questions: dict[str, Question] = {}

    def load(self) -> None:
        """Parse the catalog file into typed models.

        Raises ``FileNotFoundError`` if the file is missing and
        ``ValueError`` for duplicate ids or dangling condition references.
        """
        raw_sections = load_yaml(self._base / CATALOG_FILE) or []
        parsed: dict[str, Question] = {}
        for raw_section in raw_sections:
            section = raw_section["section"]
            section_order = raw_section.get("section_order", 0)
            for position, q_dict in enumerate(raw_section.get("questions", []), start=1):
                q = Question(
                    **{
                        "section": section,
                        "section_order": section_order,
                        "order": position,
                        **q_dict,
                    }
                )
                if q.id in parsed:
                    raise ValueError(f"Duplicate question id '{q.id}' in catalog")
                parsed[q.id] = q

        self._check_references(parsed.values())
        self.questions = parsed
        logger.info(
            "CatalogStore loaded: %d questions in %d sections",
            len(self.questions),
            len({q.section for q in self.questions.values()}),
        )

    @staticmethod
    def _check_references(questions) -> None:
        """Every external id is unique and every condition points at one."""
        external_ids: set[str] = set()
        for q in questions:
            if q.external_id in external_ids:
                raise ValueError(f"Duplicate external_id '{q.external_id}' in catalog")
            external_ids.add(q.external_id)
        for q in questions:
            for cond in q.conditions:
                if cond.question_external_id not in external_ids:
                    raise ValueError(
                        f"Question '{q.id}' has a condition on unknown "
                        f"external_id '{cond.question_external_id}'"
                    )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_question(self, question_id: str) -> Question:
        """Return one question by id.  Raises ``KeyError`` if unknown."""
        try:
            return self.questions[question_id]
        except KeyError:
            raise KeyError(f"Unknown question id: {question_id}") from None

    def questions_for_role(self, role: str) -> list[Question]:
        """Questions shown to ``role`` (its own plus shared), in survey order.

        Ordered by ``(section_order, order)``.
        """
        if role not in ROLES:
            raise ValueError(f"Invalid role: {role!r}")
        selected = [
            q for q in self.questions.values() if q.role in (role, SHARED_ROLE)
        ]
        return sorted(selected, key=lambda q: (q.section_order, q.order))
