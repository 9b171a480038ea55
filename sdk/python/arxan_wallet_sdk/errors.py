"""
Exceptions raised by the wallet client
"""

from typing import Dict, Optional, Type

# Envelope codes that mean success
SUCCESS_CODES = (0, 200)

# Ledger code for a transfer that spends more than the unspent balance
CODE_INSUFFICIENT_FUNDS = 8003


class WalletError(Exception):
    """
    Base class for every error raised by the SDK.

    Attributes:
        code: Service envelope code or HTTP status
        message: Human readable message from the service
        status: HTTP status of the response, if one was received
    """

    def __init__(self, message: str, code: int = 0, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    def __str__(self):
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class InvalidInputError(WalletError):
    """Malformed or missing request fields"""


class NotFoundError(WalletError):
    """Unknown wallet, POE or asset identifier"""


class InsufficientFundsError(WalletError):
    """Transfer exceeds the unspent balance of the sender"""


class UnauthorizedError(WalletError):
    """Signature or credentials rejected by the service"""


class WalletTimeoutError(WalletError):
    """
    The request did not complete in time.

    In synchronous invoking mode the mutation may still have been accepted
    by the service. Treat the outcome as unknown and poll the query APIs.
    """


class ServiceError(WalletError):
    """Non-success response or a body that could not be decoded"""


class TransportError(ServiceError):
    """The service could not be reached"""


_CODE_ERRORS: Dict[int, Type[WalletError]] = {
    400: InvalidInputError,
    401: UnauthorizedError,
    402: InsufficientFundsError,
    403: UnauthorizedError,
    404: NotFoundError,
    408: WalletTimeoutError,
    504: WalletTimeoutError,
    CODE_INSUFFICIENT_FUNDS: InsufficientFundsError,
}


def error_from_code(code: int, message: str = '', status: Optional[int] = None) -> WalletError:
    """
    Build the typed error for a service code.

    Args:
        code: Envelope code, or the HTTP status when the body carries none
        message: Message reported by the service
        status: HTTP status of the response

    Returns:
        WalletError subclass instance (ServiceError for unknown codes)
    """
    cls = _CODE_ERRORS.get(code)
    if cls is None and status is not None:
        cls = _CODE_ERRORS.get(status)
    if cls is None:
        cls = ServiceError
    return cls(message or f"wallet service returned code {code}", code=code, status=status)
