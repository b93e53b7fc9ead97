"""Exception classes for FinancePal."""


class FinancePalError(Exception):
    """Base exception for FinancePal."""
    pass


class ExpenseValidationError(FinancePalError):
    """A new or edited expense failed validation."""
    pass


class NotAuthenticatedError(FinancePalError):
    """A store write was attempted without a user."""
    pass


class InvalidViewModeError(FinancePalError, ValueError):
    """An unknown analysis view mode was requested."""
    pass


class BudgetValidationError(FinancePalError):
    """A new or edited budget failed validation."""
    pass


class DuplicateBudgetError(BudgetValidationError):
    """A budget already exists for the category and month."""
    pass
