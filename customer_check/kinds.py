"""Business document kinds.

A kind says what a document *is* for the checklist (a business license, a
utility bill, ...), independent of its file format.
"""

from __future__ import annotations

BUSINESS_LICENSE = "business_license"
EVN_BILL = "evn_bill"
LAND_CERTIFICATE = "land_certificate"
ID_CHECK = "id_check"
FINANCIAL_STATEMENT = "financial_statement"
SITE_VISIT_PHOTOS = "site_visit_photos"
CIC_REPORT = "cic_report"
UNKNOWN = "unknown"

DOCUMENT_KINDS: frozenset[str] = frozenset(
    {
        BUSINESS_LICENSE,
        EVN_BILL,
        LAND_CERTIFICATE,
        ID_CHECK,
        FINANCIAL_STATEMENT,
        SITE_VISIT_PHOTOS,
        CIC_REPORT,
        UNKNOWN,
    }
)


def is_known_kind(kind: str) -> bool:
    return kind in DOCUMENT_KINDS
