"""Error types raised by the Fusion client."""


class FusionError(Exception):
    """Base class for every error raised by this package."""


class PreconditionError(FusionError, ValueError):
    """Raised when caller input is rejected before any network call."""


class EncodingError(FusionError, ValueError):
    """Raised when bytes cannot be encoded or decoded as the program expects."""


class DerivationError(FusionError):
    """Raised when no bump seed yields an off-curve program address."""


class NetworkError(FusionError):
    """Raised when an RPC request or broadcast fails."""


class UserRejection(FusionError):
    """Raised when the signer declines to approve a transaction."""
