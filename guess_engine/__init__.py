"""
Adaptive guessing engine

Single entry point for the guess_engine package:
- models/: EngineConfig, Item, question descriptors, GuessSession, turn results
- stages/: candidate_pool, scoring, answer_processing, selection, orchestrator
- services/: CatalogProvider and SessionRepository ports with in-memory/JSON adapters
- simulation: batch self-play against known targets
"""

from .errors import (
    ContractViolation,
    DegenerateWeightsError,
    EmptyCatalogError,
    GuessEngineError,
    InvalidAnswerGradeError,
    InvalidSessionStateError,
    RollbackTargetUnavailableError,
    SessionNotFoundError,
    UnknownQuestionKindError,
)
from .models.config import DEFAULT_CONFIG, EngineConfig, load_config, resolve_config
from .models.item import Classification, GateChoice, Item, SummaryGroup, Tag, TagRef, TagType
from .models.question import AnswerGrade, ExploreTag, HardConfirm, HardConfirmType, SoftConfirm
from .models.session import GuessSession, SessionPhase
from .models.turn import RankedCandidate, RollbackResult, TurnResult
from .services.catalog_provider import CatalogProvider, InMemoryCatalogProvider, JsonCatalogProvider
from .services.session_repository import (
    InMemorySessionRepository,
    JsonSessionRepository,
    SessionRepository,
)
from .simulation import SimulationReport, run_simulation, simulate_session
from .stages.orchestrator import GuessEngine
from .utils.randomness import ScriptedRandomSource, SeededRandomSource, SystemRandomSource

__all__ = [
    "AnswerGrade",
    "CatalogProvider",
    "Classification",
    "ContractViolation",
    "DEFAULT_CONFIG",
    "DegenerateWeightsError",
    "EmptyCatalogError",
    "EngineConfig",
    "ExploreTag",
    "GateChoice",
    "GuessEngine",
    "GuessEngineError",
    "GuessSession",
    "HardConfirm",
    "HardConfirmType",
    "InMemoryCatalogProvider",
    "InMemorySessionRepository",
    "InvalidAnswerGradeError",
    "InvalidSessionStateError",
    "Item",
    "JsonCatalogProvider",
    "JsonSessionRepository",
    "RankedCandidate",
    "RollbackResult",
    "RollbackTargetUnavailableError",
    "ScriptedRandomSource",
    "SeededRandomSource",
    "SessionNotFoundError",
    "SessionPhase",
    "SessionRepository",
    "SimulationReport",
    "SoftConfirm",
    "SummaryGroup",
    "SystemRandomSource",
    "Tag",
    "TagRef",
    "TagType",
    "TurnResult",
    "UnknownQuestionKindError",
    "load_config",
    "resolve_config",
    "run_simulation",
    "simulate_session",
]
