"""Exceptions raised by the retrospective engine."""


class DivisionUndefinedError(ArithmeticError):
    """Percentage change requested against a zero baseline."""


class UnknownHealthPolicyError(ValueError):
    """No health score policy is registered under the given name."""


class InvalidActionItemError(ValueError):
    """Action item payload is missing required data."""
