"""
Error kinds raised by the guessing engine.

EmptyCatalogError and DegenerateWeightsError are fatal for the session.
ContractViolation subclasses signal caller bugs (bad descriptor, bad grade,
operation in the wrong phase). "No question available" is not an error: the
selector returns None and the state machine forces a reveal instead.
"""


class GuessEngineError(Exception):
    """Base class for all engine errors."""


class EmptyCatalogError(GuessEngineError):
    """No items survive the gate filter, so there is nothing to guess."""


class DegenerateWeightsError(GuessEngineError):
    """Weight vector sums to zero (or is empty) and cannot be normalized."""


class SessionNotFoundError(GuessEngineError):
    """Unknown session id."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class RollbackTargetUnavailableError(GuessEngineError):
    """No weight snapshot exists at or below the requested question index."""

    def __init__(self, session_id: str, q_index: int):
        super().__init__(
            f"No snapshot at or below question {q_index} for session {session_id}"
        )
        self.session_id = session_id
        self.q_index = q_index


class ContractViolation(GuessEngineError):
    """Caller passed something the engine contract does not allow."""


class UnknownQuestionKindError(ContractViolation):
    """Question descriptor has a kind the answer processor does not know."""


class InvalidAnswerGradeError(ContractViolation):
    """Answer grade outside the known enumeration."""


class InvalidSessionStateError(ContractViolation):
    """Operation not allowed in the session's current phase."""

    def __init__(self, session_id: str, phase: str, operation: str):
        super().__init__(
            f"Cannot {operation} session {session_id} in phase {phase}"
        )
        self.session_id = session_id
        self.phase = phase
        self.operation = operation
