"""Shared fixtures for the finseed test suite."""

from pathlib import Path
from typing import List, Tuple

import pytest

from finseed.generator import EntityFactory
from finseed.models import EntityKind, GenerationConfig, Record
from finseed.output.sink import Sink


class RecordingSink(Sink):
    """In-memory sink that records every lifecycle call and batch."""

    name = "recording"

    def __init__(self):
        self.events: List[object] = []
        self.batches: List[Tuple[EntityKind, List[Record]]] = []

    def open(self) -> None:
        self.events.append("open")

    def write_batch(self, kind, records) -> None:
        self.batches.append((kind, list(records)))

    def end_phase(self, kind) -> None:
        self.events.append(("end_phase", kind))

    def finish(self) -> None:
        self.events.append("finish")

    def abort(self) -> None:
        self.events.append("abort")

    def records(self, kind: EntityKind) -> List[Record]:
        return [r for k, batch in self.batches if k == kind for r in batch]


class ExplodingLoanFactory(EntityFactory):
    """Fails as soon as the loan phase starts."""

    def make_loan(self, loan_id, user_id):
        raise RuntimeError("loan generator exploded")


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def exploding_loan_factory():
    return ExplodingLoanFactory


@pytest.fixture
def make_config(tmp_path: Path):
    """Factory for small, quiet file-sink configurations."""

    def _make(**overrides) -> GenerationConfig:
        values = {
            "sink": "file",
            "output_file": tmp_path / "out.sql",
            "users": 5,
            "show_progress": False,
        }
        values.update(overrides)
        return GenerationConfig(**values)

    return _make
