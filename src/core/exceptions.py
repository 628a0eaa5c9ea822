class VaultError(Exception):
    """Base class for every rejected vault operation.

    A VaultError always means the whole operation was reverted: the ledger,
    the event log and the adapter balances are left as they were before the
    call.
    """

    error_code = "vault_error"
    status_code = 400

    def __init__(self, error_message: str | None = None):
        self.error_message = error_message or self.error_code
        super().__init__(self.error_message)


class InvalidAmount(VaultError):
    error_code = "invalid_amount"


class InvalidAddress(VaultError):
    error_code = "invalid_address"


class Unauthorized(VaultError):
    error_code = "unauthorized"
    status_code = 403


class NotActive(VaultError):
    error_code = "not_active"


class AlreadyPaused(VaultError):
    error_code = "already_paused"


class AlreadyRetired(AlreadyPaused):
    error_code = "already_retired"


class NotPaused(VaultError):
    error_code = "not_paused"


class UnsafeRecovery(VaultError):
    error_code = "unsafe_recovery"


class SettingsOutOfBounds(VaultError):
    error_code = "settings_out_of_bounds"


class SlippageExceeded(VaultError):
    error_code = "slippage_exceeded"


class InvalidMigration(VaultError):
    error_code = "invalid_migration"


class InsufficientBalance(VaultError):
    error_code = "insufficient_balance"


class VaultNotFound(VaultError):
    error_code = "vault_not_found"
    status_code = 404
