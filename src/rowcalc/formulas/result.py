"""Evaluation results and the per-evaluation result cache."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from rowcalc.formulas.errors import ErrorKind


class EvaluationResult(BaseModel):
    """Outcome of evaluating one syntax-tree node: a value or an error."""

    model_config = ConfigDict(frozen=True)

    value: Any = None
    error: str | None = None
    kind: ErrorKind | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


def ok(value: Any) -> EvaluationResult:
    return EvaluationResult(value=value)


def err(kind: ErrorKind, message: str) -> EvaluationResult:
    return EvaluationResult(error=message, kind=kind)


class ResultCache:
    """Results of already-evaluated nodes, keyed by node identity.

    Parse trees compare equal by structure, so two textually identical
    subtrees (``c1 + c1``) would collide in a plain dict.  Entries are keyed
    on ``id(node)`` and hold a reference to the node so the id stays unique
    for the cache's lifetime.
    """

    def __init__(self) -> None:
        self._entries: dict[int, tuple[Any, EvaluationResult]] = {}

    def get(self, node: Any) -> EvaluationResult:
        """Return the result recorded for *node*.

        Raises:
            KeyError: If *node* has not been evaluated yet.  The driver
                evaluates children before parents, so this is a bug in the
                caller rather than a formula error.
        """
        try:
            return self._entries[id(node)][1]
        except KeyError:
            raise KeyError(f"No result recorded for node {node!r}") from None

    def set(self, node: Any, result: EvaluationResult) -> None:
        """Record the result for *node*.  Each node is written once."""
        key = id(node)
        if key in self._entries:
            raise ValueError(f"Result already recorded for node {node!r}")
        self._entries[key] = (node, result)

    def values(self) -> list[EvaluationResult]:
        """All recorded results, in insertion order."""
        return [result for _, result in self._entries.values()]

    def __contains__(self, node: Any) -> bool:
        return id(node) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
