from typing import Optional


class EngineError(Exception):
    """Base class for every rule failure raised by the engine."""

    def __init__(self, message: str, *, reference: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reference = reference

    def __str__(self) -> str:
        return self.message


class PreconditionViolation(EngineError):
    """An action was attempted without its preconditions holding."""


class PhaseViolation(PreconditionViolation):
    """The action is not valid in the current phase."""


class GameFinished(PhaseViolation):
    """The game already has a winner."""


class ReinforcementsRemaining(PreconditionViolation):
    """The active player still has armies to place."""


class FortifyAlreadyUsed(PreconditionViolation):
    """Only one fortify action is allowed per turn."""


class NotYourTurn(PreconditionViolation):
    pass


class InsufficientArmies(PreconditionViolation):
    pass


class InsufficientAttackerForce(InsufficientArmies):
    """Attacker needs at least 2 armies so that 1 stays behind."""


class InsufficientDefenderForce(InsufficientArmies):
    pass


class InvalidReference(EngineError):
    """Unknown territory or player id."""


class NotAdjacent(EngineError):
    pass


class NotConnected(EngineError):
    pass
