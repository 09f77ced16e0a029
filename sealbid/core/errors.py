"""
Engine errors.

Every rejected operation raises one of these. The engine applies each
operation inside a store transaction, so a raise leaves no partial effect.
"""


class EngineError(Exception):
    """Base class for all rule violations reported by the engine."""

    code = "engine_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class NotFound(EngineError):
    """Unknown RFP or record."""
    code = "not_found"


class NoProposal(NotFound):
    """Vendor has no revealed proposal for the RFP."""
    code = "no_proposal"


class NotAuthorized(EngineError):
    """Caller is not the requester, vendor or admin the operation requires."""
    code = "not_authorized"


class BadTiming(EngineError):
    """Operation attempted outside its permitted window."""
    code = "bad_timing"


class DuplicateSubmission(EngineError):
    """A record that may only be written once already exists."""
    code = "duplicate_submission"


class AlreadyCommitted(DuplicateSubmission):
    code = "already_committed"


class AlreadyRevealed(DuplicateSubmission):
    code = "already_revealed"


class AlreadyVoted(DuplicateSubmission):
    code = "already_voted"


class AlreadyReleased(DuplicateSubmission):
    code = "already_released"


class NoCommitment(EngineError):
    """Reveal without a prior seal."""
    code = "no_commitment"


class HashMismatch(EngineError):
    """Reveal or final deliverable does not match its commitment."""
    code = "hash_mismatch"


class NotInEvaluationPhase(EngineError):
    code = "not_in_evaluation_phase"


class NotApprovedEvaluator(EngineError):
    code = "not_approved_evaluator"


class NoReveals(EngineError):
    """Finalize found no candidate with a tally."""
    code = "no_reveals"


class NotWinner(EngineError):
    code = "not_winner"


class BadArgument(EngineError):
    """Malformed input: score out of range, bad deadlines, wrong hash size."""
    code = "bad_argument"


class MilestoneMismatch(EngineError):
    code = "milestone_mismatch"


class PayoutFailed(EngineError):
    """The disbursement collaborator refused or failed the transfer."""
    code = "payout_failed"


def raise_if_invalid(result) -> None:
    """Turn a validator's (is_valid, error_message) result into BadArgument."""
    valid, err = result
    if not valid:
        raise BadArgument(err)


__all__ = [
    "raise_if_invalid",
    "EngineError",
    "NotFound",
    "NoProposal",
    "NotAuthorized",
    "BadTiming",
    "DuplicateSubmission",
    "AlreadyCommitted",
    "AlreadyRevealed",
    "AlreadyVoted",
    "AlreadyReleased",
    "NoCommitment",
    "HashMismatch",
    "NotInEvaluationPhase",
    "NotApprovedEvaluator",
    "NoReveals",
    "NotWinner",
    "BadArgument",
    "MilestoneMismatch",
    "PayoutFailed",
]
