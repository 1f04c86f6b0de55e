"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class AccountNotFoundError(DomainException):
    """No bank account exists for the user or IBAN"""

    pass


class InsufficientFundsError(DomainException):
    """Cached balance does not cover the requested amount"""

    pass


class BalanceUpdateError(DomainException):
    """Balance write was rejected (would go negative) or failed"""

    pass


class RecipientNotFoundError(DomainException):
    """Saved recipient does not exist or belongs to another user"""

    pass


class InvalidOperationError(DomainException):
    """Request is well-formed but cannot be carried out"""

    pass


class CardNotFoundError(DomainException):
    """Virtual card does not exist or belongs to another user"""

    pass


class AgentNotFoundError(DomainException):
    """Agent or agent transaction does not exist"""

    pass


class InvalidVerificationCodeError(DomainException):
    """No unused verification code matches"""

    pass


class VerificationCodeExpiredError(DomainException):
    """Verification code matched but is past its expiry"""

    pass


class KYCRequiredError(DomainException):
    """Operation is gated behind an approved KYC submission"""

    pass


class EventDeliveryError(DomainException):
    """Outbound event could not be delivered after all retries"""

    pass


class TransactionNotFoundError(DomainException):
    """Transaction does not exist or is not of the expected kind"""

    pass


class SubmissionNotFoundError(DomainException):
    """KYC submission does not exist"""

    pass


class DocumentNotFoundError(DomainException):
    """Document does not exist or belongs to another user"""

    pass
