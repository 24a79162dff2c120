class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class ItemUnresolvedError(AppError):
    def __init__(self, barcode: str, message: str | None = None):
        super().__init__(message or f"Item not found for barcode '{barcode}'.")
        self.barcode = barcode


class BudgetExceededError(AppError):
    def __init__(self, budget: float, projected_total: float):
        super().__init__(f"Budget limit reached: {projected_total:.2f} > {budget:.2f}.")
        self.budget = budget
        self.projected_total = projected_total


class InsufficientCashTenderedError(AppError):
    def __init__(self, amount_due: float, tendered: float):
        super().__init__(f"Insufficient cash: tendered {tendered:.2f}, due {amount_due:.2f}.")
        self.amount_due = amount_due
        self.tendered = tendered


class PersistenceWriteError(AppError):
    pass


class FeatureUnavailableError(AppError):
    pass


class AuthorizationError(AppError):
    pass


class NavigationError(AppError):
    pass
