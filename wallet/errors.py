class LedgerError(Exception):
    pass


class InvalidAmountError(LedgerError, ValueError):
    pass


class InsufficientBalanceError(LedgerError):
    def __init__(self, user_id: str, requested: int, available: int):
        super().__init__(f"Insufficient balance for {user_id}: need {requested}, have {available}")
        self.user_id = user_id
        self.requested = requested
        self.available = available


class AccountAlreadyExistsError(LedgerError):
    pass


class SelfTransferError(LedgerError):
    pass


class TransferNotFoundError(LedgerError):
    pass
