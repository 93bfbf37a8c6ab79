"""Merge one document's extracted fields into the customer-check record.

Each field is checked and converted on its own: a value with the wrong JSON
type, or an enumerated answer outside the known set, is ignored while the
remaining fields of the same document are still applied.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Collection, Mapping
from datetime import date, datetime
from typing import Any

from customer_check import kinds
from customer_check.models import (
    CLIENT_TYPE_VALUES,
    CUSTOMER_TYPE_VALUES,
    DEBT_CLASSIFICATION_VALUES,
    LAND_SITUATION_VALUES,
    LOAN_TYPE_VALUES,
    MATCH_SOURCE_EXTRACTED,
    NA,
    NO,
    PERIOD_COUNT,
    SIGNBOARD_VALUES,
    YES,
    CorporateInfo,
    CustomerCheck,
    EVNInformation,
    FinancialInfo,
    LandOwnershipInformation,
    LoanInfo,
    OwnershipInfo,
    SiteVisit,
)

logger = logging.getLogger(__name__)

_TRUTHY = {"yes", "true", "1"}
_FALSY = {"no", "false", "0"}
_NULL_DATE = "0000-00-00"


# ---------------------------------------------------------------------------
# Field coercion helpers
# ---------------------------------------------------------------------------


def _str(data: Mapping[str, Any], key: str) -> str | None:
    v = data.get(key)
    return v if isinstance(v, str) else None


def _number(value: Any) -> float | None:
    # bool is an int subclass; a JSON true is never an amount
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    n = float(value)
    return n if math.isfinite(n) else None


def _money(data: Mapping[str, Any], key: str) -> int | None:
    n = _number(data.get(key))
    return int(n) if n is not None else None


def _date(value: Any) -> date | None:
    if not isinstance(value, str) or not value or value == _NULL_DATE:
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


def _yes_no(value: str, *, extra_yes: Collection[str] = (), extra_no: Collection[str] = ()) -> str | None:
    v = value.strip().lower()
    if v in _TRUTHY or v in extra_yes:
        return YES
    if v in _FALSY or v in extra_no:
        return NO
    return None


def _enum(value: str | None, allowed: frozenset[str]) -> str | None:
    if value is None:
        return None
    v = value.strip().lower()
    return v if v in allowed else None


def _series(data: Mapping[str, Any], key: str, target: list[int]) -> None:
    values = data.get(key)
    if not isinstance(values, list) or len(values) != PERIOD_COUNT:
        return
    for i, v in enumerate(values):
        n = _number(v)
        if n is not None:
            target[i] = int(n)


# ---------------------------------------------------------------------------
# Per-kind merge rules
# ---------------------------------------------------------------------------


def _update_from_business_license(info: CorporateInfo, data: Mapping[str, Any]) -> None:
    general = info.general

    if (v := _str(data, "client_name")) is not None:
        general.client_name = v
    if (v := _enum(_str(data, "client_type"), CLIENT_TYPE_VALUES)) is not None:
        general.client_type = v
    if (v := _str(data, "tax_code_mst")) is not None:
        general.tax_code_mst = v
    if (v := _str(data, "business_license_gpkd")) is not None:
        licence = v.strip().lower()
        if licence in (YES, NO):
            general.business_license_gpkd = licence
        elif licence in ("na", "n/a"):
            general.business_license_gpkd = NA
    if (v := _str(data, "business_address")) is not None:
        general.business_address = v
    if (m := _money(data, "registered_share_capital")) is not None:
        general.registered_share_capital = m
    if (v := _str(data, "business_operations")) is not None:
        general.business_operations = v
    if (v := _enum(_str(data, "customer_type"), CUSTOMER_TYPE_VALUES)) is not None:
        general.customer_type = v

    if (d := _date(data.get("incorporation_date"))) is not None:
        info.history.incorporation_date = d

    if (v := _str(data, "owners_name")) is not None:
        info.ownership.owners_name = v
    if (v := _str(data, "ownership_category")) is not None:
        category = {
            "100": "100",
            "gt_50": "gt_50",
            ">50%": "gt_50",
            "lt_50": "lt_50",
            "<50%": "lt_50",
            "na": NA,
            "n/a": NA,
        }.get(v.strip().lower())
        if category is not None:
            info.ownership.ownership_category = category
    if (v := _str(data, "key_decision_maker")) is not None:
        info.ownership.key_decision_maker = v


def _update_from_evn_bill(info: EVNInformation, data: Mapping[str, Any]) -> None:
    if (v := _str(data, "billing_address")) is not None:
        info.billing_address = v
    if (v := _str(data, "billing_address_matches_client")) is not None:
        # Provisional: the post-join address cross-check overrides this.
        info.billing_address_matches_client = _yes_no(v) or NO
        info.billing_address_match_source = MATCH_SOURCE_EXTRACTED
    if (m := _money(data, "billing_amount")) is not None:
        info.billing_amount = m
    if (v := _str(data, "billed_amounts_match_expenses")) is not None:
        info.billed_amounts_match_expenses = (
            _yes_no(
                v,
                extra_yes={"match", "matches"},
                extra_no={"does not match", "doesn't match"},
            )
            or NO
        )


def _update_from_land_certificate(info: LandOwnershipInformation, data: Mapping[str, Any]) -> None:
    info.situation = _enum(_str(data, "situation"), LAND_SITUATION_VALUES) or "unknown"

    if (v := _str(data, "landowner_is_signatory")) is not None:
        info.landowner_is_signatory = _yes_no(v)
    if (v := _str(data, "documentation_complete")) is not None:
        info.owned_docs_complete = _yes_no(v, extra_yes={"complete"}, extra_no={"incomplete"})
    if (d := _date(data.get("lease_expiration_date"))) is not None:
        info.lease_expiration_date = d


def _update_from_id_check(info: OwnershipInfo, data: Mapping[str, Any]) -> None:
    if (v := _str(data, "company_director_name")) is not None:
        info.company_director_name = v
    if (v := _str(data, "key_decision_maker")) is not None:
        info.key_decision_maker = v


def _update_from_site_visit(info: SiteVisit, data: Mapping[str, Any]) -> None:
    if (v := _enum(_str(data, "company_signboard"), SIGNBOARD_VALUES)) is not None:
        info.company_signboard = v


def _update_from_financial_statement(info: FinancialInfo, data: Mapping[str, Any]) -> None:
    if (d := _date(data.get("financial_statement_date"))) is not None:
        info.financial_statement_date = d

    _series(data, "total_revenues", info.pl.total_revenues)
    _series(data, "total_costs", info.pl.total_costs)
    _series(data, "total_energy_costs", info.pl.total_energy_costs)
    _series(data, "total_assets", info.balance_sheet.total_assets)
    _series(data, "total_debt", info.balance_sheet.total_debt)


def _loan_from_map(loan: Mapping[str, Any]) -> LoanInfo:
    info = LoanInfo()
    if (v := _str(loan, "payment_history")) is not None:
        info.payment_history = v
    if (v := _enum(_str(loan, "loan_type"), LOAN_TYPE_VALUES)) is not None:
        info.loan_type = v
    if (v := _enum(_str(loan, "debt_classification"), DEBT_CLASSIFICATION_VALUES)) is not None:
        info.debt_classification = v
    for key in ("outstanding_amount", "annual_interest_cost", "annual_amortization"):
        m = _money(loan, key)
        if m is not None and m > 0:
            setattr(info, key, m)
    if (d := _date(loan.get("maturity"))) is not None:
        info.maturity = d
    return info


def _update_from_cic_report(info: FinancialInfo, data: Mapping[str, Any]) -> None:
    loans = data.get("loans")
    if not isinstance(loans, list):
        return
    for loan in loans:
        if isinstance(loan, Mapping):
            info.loans.append(_loan_from_map(loan))


_MERGERS: dict[str, Callable[[CustomerCheck, Mapping[str, Any]], None]] = {
    kinds.BUSINESS_LICENSE: lambda c, d: _update_from_business_license(c.corporate, d),
    kinds.EVN_BILL: lambda c, d: _update_from_evn_bill(c.land.evn, d),
    kinds.LAND_CERTIFICATE: lambda c, d: _update_from_land_certificate(c.land.ownership, d),
    kinds.ID_CHECK: lambda c, d: _update_from_id_check(c.corporate.ownership, d),
    kinds.SITE_VISIT_PHOTOS: lambda c, d: _update_from_site_visit(c.additional.site_visit, d),
    kinds.FINANCIAL_STATEMENT: lambda c, d: _update_from_financial_statement(c.financial, d),
    kinds.CIC_REPORT: lambda c, d: _update_from_cic_report(c.financial, d),
}


def merge_fields(check: CustomerCheck, kind: str, fields: Mapping[str, Any]) -> bool:
    """Apply ``fields`` to the section(s) mapped to ``kind``.

    Returns False when ``kind`` writes to no section (e.g. ``unknown``).
    Not thread-safe on its own; ``Aggregator.merge`` serializes callers.
    """
    merger = _MERGERS.get(kind)
    if merger is None:
        logger.debug("No merge rule for document kind %r; %d fields ignored", kind, len(fields))
        return False
    merger(check, fields)
    return True
