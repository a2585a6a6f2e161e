from models.app_config import AppConfig
from models.audit_log import AuditLog
from models.vehicles import Vehicle
from models.users import User, UserRole, UserStatus
from models.customers import Customer
from models.companies import Company
from models.banks import Bank
from models.total_capital import TotalCapital
from models.expenses import Expense, ExpenseType
from models.cash_to_bank import CashToBank
from models.transactions import Transaction, TransactionType, Unit
from models.payments import Payment
from models.borrowed_money import BorrowedMoney
from models.notifications import Notification

__all__ = [
    'AppConfig', 'AuditLog', 'Bank', 'BorrowedMoney', 'CashToBank', 'Company', 'Customer',
    'Expense', 'ExpenseType', 'Notification', 'Payment', 'TotalCapital', 'Transaction',
    'TransactionType', 'Unit', 'User', 'UserRole', 'UserStatus', 'Vehicle',
]
