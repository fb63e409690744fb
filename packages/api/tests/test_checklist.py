# This project was developed with assistance from AI tools.
"""Tests for project-type checklists and progress arithmetic."""

import pytest
from factories import make_document

from portal_api.services.checklist import (
    BUSINESS_PROJECT_TYPES,
    COBORROWER_REQUIRED_SLOTS,
    DOCUMENT_CATEGORIES,
    PROJECT_TYPES,
    ChecklistProgress,
    calculate_progress,
    coborrower_checklist,
    get_document_checklist,
    is_business_project_type,
)

INDIVIDUAL_BASE = [
    "id_card",
    "proof_of_address",
    "tax_notice",
    "payslips",
    "employment_contract",
    "bank_statements",
]


def _slots(checklist):
    return [req.slot for req in checklist]


def test_primary_residence_checklist():
    assert _slots(get_document_checklist("achat_residence_principale")) == [
        *INDIVIDUAL_BASE,
        "compromise",
        "property_diagnostics",
    ]


def test_business_project_uses_business_base_set():
    slots = _slots(get_document_checklist("construction_pro"))
    assert slots[:6] == [
        "kbis",
        "statuts",
        "bilans",
        "liasses_fiscales",
        "id_card_dirigeant",
        "bank_statements_pro",
    ]
    assert "insurance_dommage_pro" in slots


@pytest.mark.parametrize("project_type", [None, "", "yacht_purchase"])
def test_unknown_project_type_gets_base_set_only(project_type):
    assert _slots(get_document_checklist(project_type)) == INDIVIDUAL_BASE


def test_every_project_type_has_a_checklist():
    for project_type in PROJECT_TYPES:
        assert len(get_document_checklist(project_type)) > 6
    assert all(is_business_project_type(p) for p in BUSINESS_PROJECT_TYPES)
    assert not is_business_project_type("renovation")


def test_coborrower_checklist_is_personal_subset():
    checklist = get_document_checklist("investissement_locatif")
    assert set(_slots(coborrower_checklist(checklist))) == COBORROWER_REQUIRED_SLOTS


def test_progress_counts_only_required_slots():
    checklist = get_document_checklist("renovation")
    progress = calculate_progress(checklist, [])
    # renovation_plans is optional
    assert progress.total == 8
    assert progress.completed == 0
    assert progress.percentage == 0


def test_progress_matches_slot_id_or_category_case_insensitively():
    checklist = get_document_checklist(None)
    documents = [
        make_document(category="ID_CARD"),
        make_document(category="revenus"),
        make_document(category=None),
    ]
    progress = calculate_progress(checklist, documents)
    # id_card by slot id; payslips and employment_contract by the "revenus" category
    assert progress.completed == 3
    assert progress.total == 6
    assert progress.percentage == 50


def test_progress_rounds_half_up():
    checklist = get_document_checklist("renovation")
    progress = calculate_progress(checklist, [make_document(category="id_card")])
    # 1/8 = 12.5%
    assert progress.percentage == 13


def test_progress_partial_investment_file():
    checklist = get_document_checklist("investissement_locatif")
    docs = [make_document(category=slot) for slot in ("id_card", "tax_notice", "payslips", "bank_statements")]
    docs.append(make_document(category="compromise"))
    progress = calculate_progress(checklist, docs)
    assert (progress.completed, progress.total, progress.percentage) == (5, 9, 56)


def test_empty_checklist_is_zero_percent():
    progress = calculate_progress([], [make_document(category="id_card")])
    assert (progress.completed, progress.total, progress.percentage) == (0, 0, 0)
    assert progress.is_complete is False


def test_category_match_completes_whole_category():
    checklist = get_document_checklist(None)
    docs = [make_document(category=c) for c in ("identite", "fiscal", "revenus", "bancaire")]
    progress = calculate_progress(checklist, docs)
    assert progress.is_complete


def test_rounded_percentage_is_not_completion():
    progress = ChecklistProgress(completed=199, total=200, percentage=100)
    assert progress.is_complete is False


def test_every_slot_category_has_a_label():
    categories = {req.category for pt in PROJECT_TYPES for req in get_document_checklist(pt)}
    assert categories <= set(DOCUMENT_CATEGORIES)
