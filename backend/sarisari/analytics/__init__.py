from .reports import ReportGenerator
from .export import inventory_csv, inventory_pdf

__all__ = ['ReportGenerator', 'inventory_csv', 'inventory_pdf']
