"""
Error taxonomy shared by ingestion, administration and reporting
"""


class NamaValidationError(ValueError):
    """Rejected input: nothing was written to the ledger"""
    pass


class UnlinkedAccountError(NamaValidationError):
    """User tried to submit against an account they may not use"""

    def __init__(self, user_id: int, account_id: int, reason: str = "not linked"):
        self.user_id = user_id
        self.account_id = account_id
        self.reason = reason
        super().__init__(
            f"Nama Bank #{account_id} is {reason} for user #{user_id}; "
            f"ask a moderator to link it before offering Namas"
        )


class NotFoundError(NamaValidationError):
    """Referenced user or account does not exist"""
    pass


class StoreUnavailableError(RuntimeError):
    """The ledger store failed; the operation may or may not have applied"""
    pass
