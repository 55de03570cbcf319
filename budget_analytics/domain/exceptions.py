"""Domain-specific exceptions

Degenerate input (short series, zero averages, missing history) is never
raised: it is encoded in the result objects instead.
"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ContractViolationError(DomainException):
    """Caller supplied malformed parameters (non-positive months, bad percentages, ...)"""

    pass


class InvalidScenarioError(DomainException):
    """Scenario has no finite outcome, e.g. a goal with non-positive monthly savings"""

    pass


class AggregateProviderError(DomainException):
    """Aggregate provider returned an error or is unavailable"""

    pass
