"""Engine error classes.

Every failure aborts the calling operation with no state change. Errors are
grouped by the layer that raises them so callers can catch a whole family.
"""


class AMMError(Exception):
    """Base error for all engine operations."""

    pass


# =============================================================================
# Arithmetic kernel
# =============================================================================


class MathError(AMMError, ArithmeticError):
    """Base class for checked arithmetic and solver errors."""

    pass


class ArithmeticOverflow(MathError):
    """Result exceeds the uint256 maximum."""

    pass


class ArithmeticUnderflow(MathError):
    """Subtraction would produce a negative result."""

    pass


class DivisionByZero(MathError):
    """Division or modulo by zero."""

    pass


class ConvergenceFailure(MathError):
    """Newton-Raphson iteration did not converge within the iteration bound."""

    pass


# =============================================================================
# Pool operations
# =============================================================================


class PoolError(AMMError):
    """Base error for pool operations."""

    pass


class InsufficientInitialLiquidity(PoolError):
    """First deposit would mint zero shares."""

    pass


class RatioMismatch(PoolError):
    """Deposit deviates from the reserve ratio beyond the caller's tolerance."""

    pass


class InsufficientShares(PoolError):
    """Provider holds fewer shares than requested."""

    pass


class InsufficientLiquidity(PoolError):
    """Pool cannot serve the operation with its current reserves."""

    pass


class ZeroAmount(PoolError):
    """Operation amount (input or resulting output) is zero."""

    pass


class SlippageExceeded(PoolError):
    """Result is worse than the caller's minimum."""

    pass


class ReentrancyBlocked(PoolError):
    """Nested call into a pool while it is executing an operation."""

    pass


class InvariantViolation(PoolError):
    """Pricing invariant decreased after an operation."""

    pass


class UnknownToken(PoolError, ValueError):
    """Token is not one of the pool's two assets."""

    pass


class InvalidPoolParameters(PoolError, ValueError):
    """Fee rate or amplification outside the accepted range."""

    pass


# =============================================================================
# Token interface
# =============================================================================


class TokenError(AMMError):
    """Base error for failures reported by the token interface."""

    pass


class InsufficientBalance(TokenError):
    """Transfer amount exceeds the sender's balance."""

    pass


class InsufficientAllowance(TokenError):
    """Transfer amount exceeds the spender's allowance."""

    pass


class TransferFailed(TokenError):
    """Token reported an unsuccessful transfer."""

    pass


# =============================================================================
# Factory / registry
# =============================================================================


class RegistryError(AMMError):
    """Base error for pair registry operations."""

    pass


class PairAlreadyExists(RegistryError):
    """A pool for the canonical token pair is already registered."""

    pass


class IdenticalTokens(RegistryError):
    """Both sides of the pair are the same token."""

    pass


class PoolNotFound(RegistryError, LookupError):
    """No pool is registered for the token pair."""

    pass
