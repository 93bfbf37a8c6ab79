"""Instruction templates for structured field extraction, keyed by document kind.

The field names listed here are the contract with ``updater.merge_fields``.
"""

from __future__ import annotations

from customer_check import kinds

SYSTEM_PREAMBLE = "You are an AI assistant that extracts structured information from documents.\n\n"

_BASE = (
    "Please analyze the following document text and extract the relevant information "
    "in JSON format. The document is a {kind}.\n\nDocument text:\n{text}\n\n"
)

_FIELDS: dict[str, str] = {
    kinds.BUSINESS_LICENSE: """Please extract the following fields in JSON format:
{
  "client_name": "The name of the business entity",
  "client_type": "Either 'corporate_entity' or 'private_individual'",
  "tax_code_mst": "The tax code or business registration number",
  "business_license_gpkd": "Whether a business license exists (yes/no/na)",
  "business_address": "The registered business address",
  "registered_share_capital": "The registered share capital in VND (numeric value only)",
  "business_operations": "Description of the business operations",
  "customer_type": "One of: manufacturing_production, trading_commercial, construction_real_estate, services, agriculture_forestry_fishery, technology_it_software, energy_utilities, finance_insurance_banking, healthcare_pharmaceuticals, media_entertainment, na_private_individual",
  "incorporation_date": "The date of incorporation in YYYY-MM-DD format",
  "owners_name": "The name of the primary owner or major shareholder",
  "ownership_category": "Ownership percentage category (100, gt_50, lt_50, or na)",
  "key_decision_maker": "The person with the largest ownership percentage"
}""",
    kinds.EVN_BILL: """Please extract the following fields in JSON format:
{
  "billing_address": "The address the electricity bill is issued for",
  "billing_address_matches_client": "Whether the billing address matches the client's business address (yes/no)",
  "billing_amount": "The total billed amount in VND (numeric value only)",
  "billed_amounts_match_expenses": "Whether billed amounts match reported energy expenses (yes/no)"
}""",
    kinds.LAND_CERTIFICATE: """Please extract the following fields in JSON format:
{
  "situation": "One of: land_owner, rental_agreement, unknown",
  "landowner_is_signatory": "Whether the landowner is the signatory (yes/no)",
  "documentation_complete": "Whether the ownership documentation is complete (yes/no)",
  "lease_expiration_date": "Lease expiration date in YYYY-MM-DD format, or 0000-00-00 if not applicable"
}""",
    kinds.ID_CHECK: """Please extract the following fields in JSON format:
{
  "company_director_name": "The full name of the company director",
  "key_decision_maker": "The full name of the key decision maker"
}""",
    kinds.FINANCIAL_STATEMENT: """Please extract the following fields in JSON format.
Every series has exactly 5 numeric VND values for the periods
30/06/25, 31/12/24, 30/06/24, 31/12/23, 30/06/23 (use 0 when unknown):
{
  "financial_statement_date": "Statement date in YYYY-MM-DD format",
  "total_revenues": [0, 0, 0, 0, 0],
  "total_costs": [0, 0, 0, 0, 0],
  "total_energy_costs": [0, 0, 0, 0, 0],
  "total_assets": [0, 0, 0, 0, 0],
  "total_debt": [0, 0, 0, 0, 0]
}""",
    kinds.SITE_VISIT_PHOTOS: """Please extract the following fields in JSON format:
{
  "company_signboard": "One of: available_matches_client_info, available_does_not_match_client_info, not_available_or_not_checked"
}""",
    kinds.CIC_REPORT: """Please extract every credit facility in JSON format:
{
  "loans": [
    {
      "loan_type": "One of: short_term_loan, medium_term_loan, long_term_loan, credit_card, overdrafts, guarantee, financial_leasing, factoring, consumer_loan, other_credit_facility",
      "debt_classification": "One of: group_1_current_debt, group_2_special_mention_debt, group_3_substandard_debt, group_4_doubtful_debt, group_5_loss_debt",
      "outstanding_amount": 0,
      "annual_interest_cost": 0,
      "annual_amortization": 0,
      "maturity": "YYYY-MM-DD or 0000-00-00",
      "payment_history": "Short description of the repayment history"
    }
  ]
}""",
}

_GENERIC = "Please extract all key facts as a flat JSON object of field name to value."


def build_prompt(text: str, kind: str) -> str:
    return _BASE.format(kind=kind, text=text) + _FIELDS.get(kind, _GENERIC)


def address_comparison_prompt(address_1: str, address_2: str) -> str:
    return f"""Compare these two addresses and determine if they refer to the same location:

Address 1: "{address_1}"
Address 2: "{address_2}"

Rules:
- BE GENEROUS in matching
- Ignore minor differences in formatting, abbreviations, punctuation, word order
- Consider these as MATCHES: "Street" vs "St", "District" vs "Dist", "Ward" vs "W", "Ho Chi Minh City" vs "HCMC"
- Only answer "no" if the addresses clearly refer to different locations

Return ONLY this JSON object: {{"addresses_match": "yes"}} or {{"addresses_match": "no"}}"""
