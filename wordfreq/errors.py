"""
Exceptions shared across the token frequency job
"""


class ConfigurationError(ValueError):
    """Raised at startup when the job cannot be configured (never retried)"""


class CountOverflowError(ArithmeticError):
    """Raised when a token total no longer fits a signed 64-bit counter"""
