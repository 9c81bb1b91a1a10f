#!/usr/bin/env python3
"""Respondent simulation against a live survey server.

Drives ``SessionPhaseController`` end to end over HTTP: participant entry,
role selection, random valid answers for every visible question, and
completion.  Connectivity is randomly dropped and restored along the way so
the durable queue and sync driver are exercised; after each run the script
checks that no answer was left unsynced.

Usage::

    # Install deps (first time only)
    uv pip install -e . rich

    # Quick smoke run (1 nurse, verbose)
    uv run python scripts/simulate_respondents.py --role nurse -n 1 -v

    # 10 runs per role with 30% offline answers, reproducible
    uv run python scripts/simulate_respondents.py -n 10 --offline-rate 0.3 --seed 42
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
import tempfile
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
from rich.console import Console
from rich.table import Table

from survey_engine.client import HttpSessionClient
from survey_engine.constants import OTHER_OPTION, ROLES
from survey_engine.controller import SessionPhaseController, SurveyContext
from survey_engine.identity import device_fingerprint
from survey_engine.local.store import LocalStore
from survey_engine.models.question import Question
from survey_engine.models.session import Phase
from survey_engine.sync import ConnectivityMonitor

FREE_TEXT_POOL = [
    "Mostly fine",
    "Staffing is the main issue",
    "Not sure",
    "It varies week to week",
    "Better than last year",
]


# ---------------------------------------------------------------------------
# AnswerGenerator: random valid answers per question type
# ---------------------------------------------------------------------------

class AnswerGenerator:
    """Produces answers that pass local validation."""

    def __init__(self, rng: random.Random) -> None:
        self._rng = rng

    def answer(self, q: Question) -> Any:
        cfg = q.config
        if q.type == "choice":
            choice = self._rng.choice(q.options)
            if choice == OTHER_OPTION:
                return {"selected": OTHER_OPTION, "other_text": self._rng.choice(FREE_TEXT_POOL)}
            return choice
        if q.type == "multi-choice":
            limit = cfg.max_selections if cfg and cfg.max_selections else len(q.options)
            picked = self._rng.sample(q.options, self._rng.randint(1, min(limit, len(q.options))))
            if OTHER_OPTION in picked:
                return {"selected": picked, "other_text": self._rng.choice(FREE_TEXT_POOL)}
            return picked
        if q.type == "boolean":
            return self._rng.random() < 0.5
        if q.type == "likert":
            lo = int(cfg.min) if cfg and cfg.min is not None else 1
            hi = int(cfg.max) if cfg and cfg.max is not None else 5
            return self._rng.randint(lo, hi)
        if q.type == "slider":
            lo = cfg.min if cfg and cfg.min is not None else 0
            hi = cfg.max if cfg and cfg.max is not None else 100
            return int(self._rng.uniform(lo, hi))
        return self._rng.choice(FREE_TEXT_POOL)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

@dataclass
class RunResult:
    """Outcome of one simulated respondent."""

    role: str
    session_id: str | None = None
    answered: int = 0
    offline_answers: int = 0
    unsynced: int = 0
    completed_remotely: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and self.unsynced == 0


class RespondentRunner:
    """Runs one respondent through the controller."""

    def __init__(
        self,
        base_url: str,
        local_dir: Path,
        answers: AnswerGenerator,
        rng: random.Random,
        offline_rate: float,
        console: Console,
        verbose: bool,
    ) -> None:
        self._base_url = base_url
        self._local_dir = local_dir
        self._answers = answers
        self._rng = rng
        self._offline_rate = offline_rate
        self._console = console
        self._verbose = verbose

    async def run(self, role: str) -> RunResult:
        result = RunResult(role=role)
        store = LocalStore(self._local_dir / f"{uuid.uuid4().hex}.db")
        connectivity = ConnectivityMonitor(online=True)
        context = SurveyContext(
            fingerprint=device_fingerprint({"agent": "simulator", "run": uuid.uuid4().hex}),
            source_code="simulator",
        )

        async with HttpSessionClient(self._base_url) as backend:
            ctl = SessionPhaseController(
                backend, store, context=context, connectivity=connectivity,
            )
            ctl.start()
            name = f"Respondent {self._rng.randint(1000, 9999)}"
            phone = f"555-{self._rng.randint(1000000, 9999999)}"
            view = await ctl.submit_participant(name, phone)
            if view.phase != Phase.ROLE_SELECTION:
                result.errors.append(f"unexpected phase after entry: {view.phase.value}")
                return result

            view = await ctl.select_role(role)
            result.session_id = view.session_id

            while view.phase == Phase.SURVEY:
                q = view.question
                if q.takes_answer:
                    offline = self._rng.random() < self._offline_rate
                    await connectivity.set_online(not offline)
                    value = self._answers.answer(q)
                    view = await ctl.answer(value)
                    result.answered += 1
                    result.offline_answers += int(offline)
                    if self._verbose:
                        tag = "[yellow]offline[/]" if offline else "[green]online[/]"
                        self._console.print(f"    {tag} {q.id}: {value!r}")
                # Come back online before finishing so the final flush can run
                if view.is_last:
                    await connectivity.set_online(True)
                view = await ctl.next()

            outcome = ctl.last_completion
            result.completed_remotely = bool(outcome and outcome.completed)
            result.unsynced = ctl.queue.pending_count(result.session_id)
            if view.phase != Phase.COMPLETED:
                result.errors.append(f"ended in phase {view.phase.value}")
        store.close()
        return result


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate survey respondents")
    parser.add_argument("--base-url", default="http://localhost:8080")
    parser.add_argument("--role", choices=ROLES, default=None,
                        help="Only simulate this role (default: all roles)")
    parser.add_argument("-n", "--runs", type=int, default=3,
                        help="Respondents per role (default: 3)")
    parser.add_argument("--offline-rate", type=float, default=0.2,
                        help="Probability an answer is given while offline")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args()


def print_summary(console: Console, results: list[RunResult]) -> None:
    table = Table(title="Simulated respondents")
    table.add_column("Role")
    table.add_column("Session")
    table.add_column("Answered", justify="right")
    table.add_column("Offline", justify="right")
    table.add_column("Unsynced", justify="right")
    table.add_column("Completed")
    table.add_column("Status")
    for r in results:
        table.add_row(
            r.role,
            (r.session_id or "-")[:8],
            str(r.answered),
            str(r.offline_answers),
            str(r.unsynced),
            "yes" if r.completed_remotely else "fallback",
            "[green]ok[/]" if r.ok else f"[red]{'; '.join(r.errors) or 'unsynced'}[/]",
        )
    console.print(table)


async def main() -> None:
    args = parse_args()
    console = Console()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    seed = args.seed if args.seed is not None else int(time.time())
    rng = random.Random(seed)
    console.print(f"[dim]RNG seed: {seed}[/]")

    try:
        health = httpx.get(f"{args.base_url}/health", timeout=5.0)
        health.raise_for_status()
    except httpx.HTTPError as exc:
        console.print(f"[red]Server at {args.base_url} is not reachable:[/] {exc}")
        sys.exit(1)

    roles = [args.role] if args.role else list(ROLES)
    results: list[RunResult] = []
    with tempfile.TemporaryDirectory() as tmp:
        runner = RespondentRunner(
            args.base_url, Path(tmp), AnswerGenerator(rng), rng,
            args.offline_rate, console, args.verbose,
        )
        for role in roles:
            for i in range(1, args.runs + 1):
                console.print(f"[bold]{role}[/] run {i}/{args.runs}")
                results.append(await runner.run(role))

    print_summary(console, results)
    if any(not r.ok for r in results):
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
