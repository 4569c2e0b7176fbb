"""
Logo Document Mapper
====================

Builds the Logo expense voucher body from a receipt and the user's
expense / settlement account selection. Pure: no I/O, no clock.
"""

import os
from datetime import date
from typing import Optional

from models import DEFAULT_VAT_RATE, Receipt

# Logo document constants
DOC_TYPE_EXPENSE_VOUCHER = 52
LINE_TYPE_SERVICE = 4
PAYMENT_TYPE_CASH = 1
UNIT_CODE = "ADET"
FICHE_NO_PREFIX = "GF-"

# Renders 2026-02-15 as 2026.02.15; set LOGO_DATE_FORMAT=%d.%m.%Y for day-first
LOGO_DATE_FORMAT = os.environ.get("LOGO_DATE_FORMAT", "%Y.%m.%d")


def format_logo_date(value: date, date_format: str = LOGO_DATE_FORMAT) -> str:
    """Render a receipt date in Logo's dotted format."""
    return value.strftime(date_format)


def make_fiche_no(receipt_id: str) -> str:
    """Human-readable document number from the last 8 chars of the receipt id."""
    return f"{FICHE_NO_PREFIX}{receipt_id[-8:].upper()}"


def map_to_document(
    receipt: Receipt,
    expense_code: str,
    cash_account_code: str,
    description: Optional[str] = None,
    project_code: Optional[str] = None,
    date_format: str = LOGO_DATE_FORMAT,
) -> dict:
    """
    Map a receipt to a Logo expense voucher payload.

    Args:
        receipt: Receipt to transfer (must have a date)
        expense_code: Logo service card code, used as item and auxiliary code
        cash_account_code: Cash/bank account the expense was paid from
        description: Override for the document description
        project_code: Optional Logo project code
        date_format: strftime format for document dates

    Returns:
        Document body for POST /purchaseInvoices
    """
    if receipt.date is None:
        raise ValueError(f"Receipt {receipt.id} has no date")

    doc_date = format_logo_date(receipt.date, date_format)
    text = description or receipt.description or receipt.merchant_name
    gross = round(receipt.amount, 2)
    vat_amount = round(receipt.kdv_amount or 0.0, 2)
    vat_rate = receipt.kdv_rate if receipt.kdv_rate is not None else DEFAULT_VAT_RATE

    line = {
        "TYPE": LINE_TYPE_SERVICE,
        "MASTER_CODE": expense_code,
        "QUANTITY": 1,
        "PRICE": round(gross - vat_amount, 2),
        "VAT_RATE": vat_rate,
        "VAT_AMOUNT": vat_amount,
        "TOTAL": gross,
        "UNIT_CODE": UNIT_CODE,
        "AUXIL_CODE": expense_code,
        "DESCRIPTION": text,
    }

    payment = {
        "PAYMENT_TYPE": PAYMENT_TYPE_CASH,
        "ACCOUNT_CODE": cash_account_code,
        "AMOUNT": gross,
        "CURRENCY_CODE": receipt.currency,
        "DATE": doc_date,
    }

    document = {
        "DOC_TYPE": DOC_TYPE_EXPENSE_VOUCHER,
        "DATE": doc_date,
        "FICHENO": make_fiche_no(receipt.id),
        "AUXIL_CODE": expense_code,
        "DESCRIPTION": text,
        "TRANSACTIONS": {"items": [line]},
        "PAYMENT_LIST": {"items": [payment]},
    }

    if project_code:
        document["PROJECT_CODE"] = project_code
        line["PROJECT_CODE"] = project_code

    return document
