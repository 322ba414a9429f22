"""
Exception hierarchy for SkillSwap business rules.

All exceptions inherit from SkillSwapError and carry the HTTP status the
API layer answers with. Infrastructure failures are not wrapped here;
they propagate as-is and become 500s.
"""


class SkillSwapError(Exception):
    """Base exception for all SkillSwap business errors."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(SkillSwapError):
    """Referenced entity does not exist."""
    status_code = 404


class AuthenticationError(SkillSwapError):
    """Missing, invalid or outdated credentials."""
    status_code = 401


class ForbiddenError(SkillSwapError):
    """Caller is not a permitted party for the action."""
    status_code = 403


class InvalidStateError(SkillSwapError):
    """Action is not valid for the swap's current status."""
    status_code = 400


class ValidationError(SkillSwapError):
    """Malformed input, such as a blank skill name or an out-of-range rating."""
    status_code = 400


class ConflictError(SkillSwapError):
    """Request collides with existing state."""
    status_code = 409


class AlreadySubmittedError(ConflictError):
    """Feedback for this side of the swap was already recorded."""
    pass


class ConcurrentModificationError(ConflictError):
    """Another request changed the same record first."""
    pass
