# This project was developed with assistance from AI tools.
"""Required-document checklists per loan project type.

Pure lookup tables plus the completion arithmetic used by the document
progress monitor. Slot ids and categories are the values stored in
``documents.category`` by the upload flow.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class DocumentRequirement:
    slot: str
    label: str
    description: str
    required: bool
    category: str


@dataclass(frozen=True)
class ChecklistProgress:
    completed: int
    total: int
    percentage: int

    @property
    def is_complete(self) -> bool:
        return self.total > 0 and self.completed == self.total


INDIVIDUAL_PROJECT_TYPES: dict[str, str] = {
    "achat_residence_principale": "Primary residence purchase",
    "achat_residence_secondaire": "Secondary residence purchase",
    "investissement_locatif": "Rental investment",
    "construction": "Construction",
    "renovation": "Renovation",
}

BUSINESS_PROJECT_TYPES: dict[str, str] = {
    "achat_locaux_commerciaux": "Commercial premises purchase",
    "investissement_locatif_pro": "Professional rental investment",
    "construction_pro": "Professional construction",
    "renovation_pro": "Professional renovation",
}

PROJECT_TYPES: dict[str, str] = {**INDIVIDUAL_PROJECT_TYPES, **BUSINESS_PROJECT_TYPES}

DOCUMENT_CATEGORIES: dict[str, str] = {
    "identite": "Identity",
    "fiscal": "Tax",
    "revenus": "Income",
    "bancaire": "Banking",
    "bien": "Property",
    "assurance": "Insurance",
    "entreprise": "Company",
}

# Personal slots a co-borrower must provide as well
COBORROWER_REQUIRED_SLOTS: frozenset[str] = frozenset(
    {
        "id_card",
        "proof_of_address",
        "tax_notice",
        "payslips",
        "employment_contract",
        "bank_statements",
    }
)


def _req(slot, label, description, category, required=True) -> DocumentRequirement:
    return DocumentRequirement(slot, label, description, required, category)


_INDIVIDUAL_BASE = (
    _req("id_card", "Identity document", "Valid ID card, passport or residence permit", "identite"),
    _req("proof_of_address", "Proof of address", "Utility bill less than 3 months old", "identite"),
    _req("tax_notice", "Tax notice", "Last 2 income tax notices", "fiscal"),
    _req("payslips", "Payslips", "Last 3 payslips", "revenus"),
    _req("employment_contract", "Employment contract", "Or employer certificate", "revenus"),
    _req("bank_statements", "Bank statements", "Last 3 months of account statements", "bancaire"),
)

_BUSINESS_BASE = (
    _req("kbis", "Kbis extract", "Company registration extract less than 3 months old", "entreprise"),
    _req("statuts", "Articles of association", "Signed, up-to-date articles", "entreprise"),
    _req("bilans", "Balance sheets", "Last 3 certified balance sheets", "fiscal"),
    _req("liasses_fiscales", "Tax returns", "Last 3 corporate tax returns", "fiscal"),
    _req("id_card_dirigeant", "Director identity document", "ID card or passport of the director", "identite"),
    _req(
        "bank_statements_pro",
        "Business bank statements",
        "Last 6 months of business account statements",
        "bancaire",
    ),
)

_SALE_AGREEMENT = _req("compromise", "Sale agreement", "Signed by both parties", "bien")
_DIAGNOSTICS = _req("property_diagnostics", "Property diagnostics", "Energy, asbestos, lead reports", "bien")

_PROJECT_SPECIFIC: dict[str, tuple[DocumentRequirement, ...]] = {
    "achat_residence_principale": (_SALE_AGREEMENT, _DIAGNOSTICS),
    "achat_residence_secondaire": (
        _SALE_AGREEMENT,
        _DIAGNOSTICS,
        _req("primary_residence_proof", "Primary residence proof", "Property tax notice or lease", "bien"),
    ),
    "investissement_locatif": (
        _SALE_AGREEMENT,
        _DIAGNOSTICS,
        _req("rental_estimation", "Rental estimate", "Assessment of the expected rent", "bien"),
        _req("existing_rentals", "Existing leases", "If other properties are let", "revenus", required=False),
    ),
    "construction": (
        _req("land_compromise", "Land sale agreement", "Or title deed for the land", "bien"),
        _req("building_permit", "Building permit", "Or permit application", "bien"),
        _req("construction_contract", "Construction contract", "Builder or architect contract", "bien"),
        _req("construction_plans", "House plans", "Plans and technical description", "bien"),
        _req("insurance_dommage", "Builder's risk insurance", "Insurance certificate", "assurance"),
    ),
    "renovation": (
        _req("property_title", "Title deed", "Deed of the property", "bien"),
        _req("renovation_quotes", "Works quotes", "Detailed contractor quotes", "bien"),
        _req("renovation_plans", "Works plans", "Description of the planned works", "bien", required=False),
    ),
    "achat_locaux_commerciaux": (
        _req("compromise_pro", "Sale agreement", "Signed by both parties (company)", "bien"),
        _req("property_diagnostics_pro", "Property diagnostics", "Energy, asbestos, accessibility", "bien"),
        _req("bail_commercial", "Existing commercial lease", "If the premises are let", "bien", required=False),
    ),
    "investissement_locatif_pro": (
        _req("compromise_pro", "Sale agreement", "Signed by both parties (company)", "bien"),
        _req("property_diagnostics_pro", "Property diagnostics", "Energy, asbestos, lead reports", "bien"),
        _req("rental_estimation_pro", "Rental estimate", "Assessment of the expected business rent", "bien"),
        _req(
            "existing_baux_pro", "Existing commercial leases", "If other properties are let", "revenus",
            required=False,
        ),
    ),
    "construction_pro": (
        _req("land_compromise_pro", "Land sale agreement", "Or title deed for the land", "bien"),
        _req("building_permit_pro", "Building permit", "Professional building permit", "bien"),
        _req("construction_contract_pro", "Construction contract", "Builder or architect contract", "bien"),
        _req("construction_plans_pro", "Premises plans", "Plans and technical description", "bien"),
        _req("insurance_dommage_pro", "Builder's risk insurance", "Professional insurance certificate", "assurance"),
    ),
    "renovation_pro": (
        _req("property_title_pro", "Title deed", "Deed of the business property", "bien"),
        _req("renovation_quotes_pro", "Works quotes", "Detailed contractor quotes", "bien"),
        _req(
            "renovation_plans_pro", "Works plans", "Description of the planned works", "bien",
            required=False,
        ),
    ),
}


def is_business_project_type(project_type: str | None) -> bool:
    return project_type in BUSINESS_PROJECT_TYPES


def get_document_checklist(project_type: str | None) -> list[DocumentRequirement]:
    """Base set for the borrower kind plus the project's own documents.

    Unknown or missing project types get the individual base set only.
    """
    base = _BUSINESS_BASE if is_business_project_type(project_type) else _INDIVIDUAL_BASE
    return [*base, *_PROJECT_SPECIFIC.get(project_type or "", ())]


def coborrower_checklist(checklist: list[DocumentRequirement]) -> list[DocumentRequirement]:
    return [req for req in checklist if req.slot in COBORROWER_REQUIRED_SLOTS]


def calculate_progress(checklist, documents) -> ChecklistProgress:
    """Count required slots covered by at least one document.

    A document covers a slot when its category contains the slot id or the
    slot's category, case-insensitively.
    """
    required = [req for req in checklist if req.required]
    categories = [
        doc.category.lower() for doc in documents if getattr(doc, "category", None)
    ]

    completed = sum(
        1
        for req in required
        if any(req.slot.lower() in cat or req.category.lower() in cat for cat in categories)
    )
    total = len(required)
    # half-up rounding
    percentage = math.floor(completed * 100 / total + 0.5) if total else 0
    return ChecklistProgress(completed=completed, total=total, percentage=percentage)
