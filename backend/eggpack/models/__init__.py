from .catalog import Supplier, Customer, RawMaterial, Product, ProductRecipe
from .purchasing import Purchase, PurchaseItem
from .production import ProductionBatch, ProductionInput, ProductionOutput
from .finance import FinancialTransaction
from .banking import BankAccount, BankTransaction, PettyCashEntry
from .sales import Sale, SaleItem, CreditSale, CreditPayment

__all__ = [
    'Supplier', 'Customer', 'RawMaterial', 'Product', 'ProductRecipe',
    'Purchase', 'PurchaseItem',
    'ProductionBatch', 'ProductionInput', 'ProductionOutput',
    'FinancialTransaction',
    'BankAccount', 'BankTransaction', 'PettyCashEntry',
    'Sale', 'SaleItem', 'CreditSale', 'CreditPayment',
]
