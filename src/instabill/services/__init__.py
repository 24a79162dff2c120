from .alert_service import AlertService
from .auth_service import AdminAuthService
from .budget_guard import BudgetGuard
from .cart_service import CartEngine
from .catalog_service import Catalog
from .customer_service import CustomerRegistry, Session, SignupRequest
from .excel_service import ExcelService
from .identification_service import IdentificationService
from .ledger_service import TransactionLedger
from .payment_service import PaymentService
from .reporting_service import ReportingService
from .scan_gate import ScanGate

__all__ = [
    "AlertService",
    "AdminAuthService",
    "BudgetGuard",
    "CartEngine",
    "Catalog",
    "CustomerRegistry",
    "Session",
    "SignupRequest",
    "ExcelService",
    "IdentificationService",
    "TransactionLedger",
    "PaymentService",
    "ReportingService",
    "ScanGate",
]
