"""Transitive fragment resolution for operations."""

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

from rapidfuzz.distance import Levenshtein

from . import utils
from .definitions import Definition, DefinitionTable, Fragment, Operation
from .errors import (
    AddError,
    CompileError,
    fragment_cycle_error,
    multiple_root_operations_error,
    unknown_fragment_error,
)

logger = logging.getLogger(__name__)

# Suggestions further away than this are noise rather than typos
DEFAULT_SUGGESTION_MAX_DISTANCE = 10


@dataclass
class Resolution:
    """Outcome of resolving one operation's fragment spreads."""

    operation: Operation
    fragment_names: list[str] = field(default_factory=list)
    errors: list[CompileError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class FragmentResolver:
    """
    Resolves the fragments each operation transitively needs.

    The closure of every successfully resolved fragment is cached in
    ``closures`` for the lifetime of the resolver (one compile pass), so a
    fragment shared by many operations is walked once.
    """

    def __init__(self, table: DefinitionTable, suggestion_max_distance: int = DEFAULT_SUGGESTION_MAX_DISTANCE):
        self.table = table
        self.suggestion_max_distance = suggestion_max_distance
        self.closures: dict[str, list[str]] = {}
        self.claimed: dict[str, Operation] = {}
        self.conflicted_paths: set[str] = set()
        self._fragment_names = table.fragment_names()

    def resolve_operations(self, add_error: AddError) -> Iterator[Resolution]:
        """
        Resolve every operation of the table, in discovery order.

        Emits multiple-root-operations, unknown-fragment and fragment-cycle
        errors through ``add_error`` and yields only clean resolutions.
        """
        for operation in self.table.operations:
            other = self.claimed.get(operation.file_path)
            if other is not None:
                add_error(multiple_root_operations_error(operation, other))
                self.conflicted_paths.add(operation.file_path)
                continue
            self.claimed[operation.file_path] = operation

            resolution = self.resolve(operation)
            if not resolution.ok:
                for error in resolution.errors:
                    add_error(error)
                logger.info(
                    "Dropped %s in %s: %d unresolved fragment spread(s)",
                    operation.name,
                    operation.file_path,
                    len(resolution.errors),
                )
                continue
            yield resolution

    def resolve(self, operation: Operation) -> Resolution:
        """Compute the ordered, deduplicated fragment names ``operation`` needs."""
        errors: list[CompileError] = []
        names = self._walk(operation, errors)
        if names is None:
            return Resolution(operation=operation, errors=errors)
        return Resolution(operation=operation, fragment_names=names)

    def fragments_for(self, resolution: Resolution) -> list[Fragment]:
        return [self.table.get(name) for name in resolution.fragment_names]

    def closest_fragment(self, name: str) -> Optional[str]:
        """Known fragment name with the smallest edit distance to ``name``, if close enough."""
        best, best_distance = None, self.suggestion_max_distance
        for candidate in self._fragment_names:
            distance = Levenshtein.distance(name, candidate)
            if distance < best_distance:
                best, best_distance = candidate, distance
        return best

    def _walk(self, operation: Operation, errors: list[CompileError]) -> Optional[list[str]]:
        """
        Depth-first walk over the operation's spreads with an explicit work stack.

        Each frame is a definition whose spreads are being consumed. A fragment
        gets a frame of its own unless its closure is already known, and its
        name stays in ``in_progress`` while that frame is open, which is how
        cycles are detected. Keeps going after a failure so that every bad
        spread gets reported.

        Returns:
            Ordered fragment names, or None if any spread failed
        """
        visited: dict[str, Optional[list[str]]] = {}
        path: list[str] = []
        in_progress: set[str] = set()
        stack = [_Frame(operation)]

        while True:
            frame = stack[-1]
            spread = next(frame.spreads, None)

            if spread is None:
                stack.pop()
                closure = list(frame.names) if frame.ok else None
                if frame.name is None:
                    return closure
                path.pop()
                in_progress.discard(frame.name)
                visited[frame.name] = closure
                if closure is not None:
                    self.closures[frame.name] = closure
                stack[-1].absorb(frame.name, closure)
                continue

            name = spread.name.value
            if name in in_progress:
                cycle = path[path.index(name):] + [name]
                errors.append(fragment_cycle_error(operation, spread, frame.definition, cycle))
                frame.ok = False
                continue

            if name in self.closures:
                frame.absorb(name, self.closures[name])
                continue
            if name in visited:
                frame.absorb(name, visited[name])
                continue

            fragment = self.table.get(name)
            if fragment is None:
                errors.append(unknown_fragment_error(operation, spread, frame.definition, self.closest_fragment(name)))
                frame.ok = False
                continue

            path.append(name)
            in_progress.add(name)
            stack.append(_Frame(fragment, name))


class _Frame:
    """A definition on the resolver's work stack, and what its spreads resolved to so far."""

    def __init__(self, definition: Definition, name: Optional[str] = None):
        self.definition = definition
        self.name = name
        self.spreads = utils.iter_fragment_spreads(definition.node)
        self.names: dict[str, None] = {}
        self.ok = True

    def absorb(self, name: str, closure: Optional[list[str]]) -> None:
        if closure is None:
            self.ok = False
            return
        self.names[name] = None
        self.names.update(dict.fromkeys(closure))
