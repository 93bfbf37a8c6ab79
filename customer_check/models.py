"""Pydantic schema of the customer-check aggregate record.

One ``CustomerCheck`` accumulates every field extracted across all files of a
batch. Enumerated answers are stored as their canonical string values (see
the ``*_VALUES`` sets below); money is whole VND.
"""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

# -- Enumerated answers -------------------------------------------------------

YES = "yes"
NO = "no"
NA = "na"

CLIENT_TYPE_VALUES = frozenset({"corporate_entity", "private_individual"})

CUSTOMER_TYPE_VALUES = frozenset(
    {
        "na_private_individual",
        "manufacturing_production",
        "trading_commercial",
        "construction_real_estate",
        "services",
        "agriculture_forestry_fishery",
        "technology_it_software",
        "energy_utilities",
        "finance_insurance_banking",
        "healthcare_pharmaceuticals",
        "media_entertainment",
    }
)

LAND_SITUATION_VALUES = frozenset({"land_owner", "rental_agreement", "unknown"})

SIGNBOARD_VALUES = frozenset(
    {
        "available_matches_client_info",
        "available_does_not_match_client_info",
        "not_available_or_not_checked",
    }
)

LOAN_TYPE_VALUES = frozenset(
    {
        "short_term_loan",
        "medium_term_loan",
        "long_term_loan",
        "credit_card",
        "overdrafts",
        "guarantee",
        "financial_leasing",
        "factoring",
        "consumer_loan",
        "other_credit_facility",
    }
)

DEBT_CLASSIFICATION_VALUES = frozenset(
    {
        "group_1_current_debt",
        "group_2_special_mention_debt",
        "group_3_substandard_debt",
        "group_4_doubtful_debt",
        "group_5_loss_debt",
    }
)

# Which step decided land.evn.billing_address_matches_client.
MATCH_SOURCE_EXTRACTED = "extracted"
MATCH_SOURCE_GEMINI = "gemini"
MATCH_SOURCE_HEURISTIC = "heuristic"

# Reporting periods: 30/06/25, 31/12/24, 30/06/24, 31/12/23, 30/06/23
PERIOD_COUNT = 5


def _periods() -> list[int]:
    return [0] * PERIOD_COUNT


# -- Corporate ----------------------------------------------------------------


class GeneralCorporateInfo(BaseModel):
    client_name: str | None = None
    client_type: str | None = None
    tax_code_mst: str | None = None
    business_license_gpkd: str | None = None
    business_address: str | None = None
    registered_share_capital: int | None = None
    customer_type: str | None = None
    business_operations: str | None = None


class CorporateHistory(BaseModel):
    incorporation_date: date | None = None
    history_description: str | None = None


class OwnershipInfo(BaseModel):
    owners_name: str | None = None
    ownership_category: str | None = None
    company_director_name: str | None = None
    key_decision_maker: str | None = None


class CorporateInfo(BaseModel):
    general: GeneralCorporateInfo = Field(default_factory=GeneralCorporateInfo)
    history: CorporateHistory = Field(default_factory=CorporateHistory)
    ownership: OwnershipInfo = Field(default_factory=OwnershipInfo)


# -- Land ---------------------------------------------------------------------


class EVNInformation(BaseModel):
    billing_address: str | None = None
    billing_address_matches_client: str | None = None
    billing_address_match_source: str | None = None
    billing_amount: int | None = None
    billed_amounts_match_expenses: str | None = None


class LandOwnershipInformation(BaseModel):
    situation: str | None = None
    landowner_is_signatory: str | None = None
    lease_expiration_date: date | None = None
    owned_docs_complete: str | None = None


class LandInfo(BaseModel):
    evn: EVNInformation = Field(default_factory=EVNInformation)
    ownership: LandOwnershipInformation = Field(default_factory=LandOwnershipInformation)


# -- Financial ----------------------------------------------------------------


class PLInfo(BaseModel):
    total_revenues: list[int] = Field(default_factory=_periods)
    total_costs: list[int] = Field(default_factory=_periods)
    total_energy_costs: list[int] = Field(default_factory=_periods)


class BalanceSheetInfo(BaseModel):
    total_assets: list[int] = Field(default_factory=_periods)
    total_debt: list[int] = Field(default_factory=_periods)


class LoanInfo(BaseModel):
    loan_type: str = "other_credit_facility"
    debt_classification: str = "group_1_current_debt"
    outstanding_amount: int = 0
    annual_interest_cost: int = 0
    annual_amortization: int = 0
    maturity: date | None = None
    payment_history: str = "No payment history found"


class FinancialInfo(BaseModel):
    financial_statement_date: date | None = None
    pl: PLInfo = Field(default_factory=PLInfo)
    balance_sheet: BalanceSheetInfo = Field(default_factory=BalanceSheetInfo)
    loans: list[LoanInfo] = Field(default_factory=list)


# -- Additional / Site visit --------------------------------------------------


class SiteVisit(BaseModel):
    company_signboard: str | None = None


class AdditionalInfo(BaseModel):
    site_visit: SiteVisit = Field(default_factory=SiteVisit)


# -- Root aggregate -----------------------------------------------------------


class CustomerCheck(BaseModel):
    check_completed_at: datetime | None = None
    corporate: CorporateInfo = Field(default_factory=CorporateInfo)
    land: LandInfo = Field(default_factory=LandInfo)
    financial: FinancialInfo = Field(default_factory=FinancialInfo)
    additional: AdditionalInfo = Field(default_factory=AdditionalInfo)
