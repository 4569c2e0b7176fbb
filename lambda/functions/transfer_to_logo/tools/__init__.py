"""
Transfer Tools
==============

Document mapping and receipt reconciliation for the Logo transfer.
"""

from .document_mapper import map_to_document, format_logo_date, make_fiche_no
from .reconciliation import ReconciliationWriter

__all__ = [
    "map_to_document",
    "format_logo_date",
    "make_fiche_no",
    "ReconciliationWriter",
]
