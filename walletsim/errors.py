# walletsim/errors.py


class WalletError(Exception):
    """Base exception for every wallet simulation error."""
    pass


class InvalidAmount(WalletError):
    """Amount text is unparsable, non-finite, or not strictly positive."""
    pass


class InsufficientBalance(WalletError):
    """Requested amount exceeds the balance of the source asset."""
    pass


class InvalidAssetPair(WalletError):
    """Swap source equals destination, or one of the ids is unknown."""
    pass


class MissingAddress(WalletError):
    """Withdrawal destination address is empty."""
    pass


class UnknownAsset(WalletError):
    pass


class InvalidPaymentMethod(WalletError):
    pass


class OperationInProgress(WalletError):
    """A surface already has an operation in the PROCESSING state."""
    pass


class FeedUnavailable(WalletError):
    """The pricing feed could not produce quotes for this tick."""
    pass
