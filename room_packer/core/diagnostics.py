"""
Run reports and diagnostic records for room generation.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class DiagnosticKind(str, Enum):
    CONFIGURATION_MISSING = "configuration_missing"
    PLACEMENT_REJECTED = "placement_rejected"
    PLACEMENT_DEFERRED = "placement_deferred"
    ASSET_UNRESOLVED = "asset_unresolved"


@dataclass
class Diagnostic:
    """
    One reported event.

    Attributes:
        kind: Category of the event
        message: Human-readable description
        cell: Grid cell the event refers to, if any
    """

    kind: DiagnosticKind
    message: str
    cell: Optional[Tuple[int, int]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "cell": list(self.cell) if self.cell is not None else None,
        }


@dataclass
class GenerationReport:
    """
    Summary of one regeneration request.

    Attributes:
        room: Room name
        seed: Seed the run used
        completed: False if the run aborted before touching the grid
        placements: Emitted placements per source pass
        deferred: Random-pass attempts left for gap filling
        draws: Random stream draws consumed
        diagnostics: Warning-level events, plus deferred placements
    """

    room: str
    seed: int
    completed: bool = False
    placements: Dict[str, int] = field(default_factory=dict)
    deferred: int = 0
    draws: int = 0
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def warn(self, kind: DiagnosticKind, message: str, cell=None):
        """Record a diagnostic and log it as a warning"""
        self.diagnostics.append(Diagnostic(kind, message, cell))
        logger.warning(message)

    def defer(self, message: str, cell=None):
        """Record a deferred placement; expected contention, logged at debug"""
        self.deferred += 1
        self.diagnostics.append(Diagnostic(DiagnosticKind.PLACEMENT_DEFERRED, message, cell))
        logger.debug(message)

    def count_placement(self, source: str):
        self.placements[source] = self.placements.get(source, 0) + 1

    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.kind != DiagnosticKind.PLACEMENT_DEFERRED]

    @property
    def total_placements(self) -> int:
        return sum(self.placements.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room": self.room,
            "seed": self.seed,
            "completed": self.completed,
            "placements": dict(self.placements),
            "total_placements": self.total_placements,
            "deferred": self.deferred,
            "draws": self.draws,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
