"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidRecordError(DomainException):
    """A single disclosure record or rate quote is malformed"""

    pass


class EmptyInputError(DomainException):
    """No disclosure records or no usable rate quotes to analyse"""

    pass


class AnomalousRateWarning(UserWarning):
    """Disclosed rate falls outside the expected percentage range but is still used"""

    def __init__(self, lender: str, rate: float):
        super().__init__(f"Unusually high disclosed rate {rate} for {lender or 'unknown lender'}")
        self.lender = lender
        self.rate = rate
