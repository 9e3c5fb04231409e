import pytest

from leadfunnel.schemas import FormData
from leadfunnel.steps import Step
from leadfunnel.suggestions import apply_suggestion


def test_business_info_sets_role():
    assert apply_suggestion(Step.BUSINESS_INFO, FormData(role="CEO"), "Head of Data") == {"role": "Head of Data"}


@pytest.mark.parametrize(
    "step, field",
    [(Step.INDUSTRY, "industries"), (Step.CHALLENGES, "challenges"), (Step.SOLUTIONS, "solutions")],
)
def test_toggle_twice_restores_list(step, field):
    form = FormData(**{field: ["a", "b", "c"]})

    removed = apply_suggestion(step, form, "b")
    assert removed == {field: ["a", "c"]}

    restored = apply_suggestion(step, form.merged(removed), "b")
    assert restored == {field: ["a", "c", "b"]}

    added = apply_suggestion(step, form, "d")
    assert apply_suggestion(step, form.merged(added), "d") == {field: ["a", "b", "c"]}


def test_department_domain_toggles_comma_joined_text():
    empty = FormData()
    patch = apply_suggestion(Step.DEPARTMENT_DOMAIN, empty, "Logistics")
    assert patch == {"other_business_domain": "Logistics"}

    form = empty.merged(patch)
    patch = apply_suggestion(Step.DEPARTMENT_DOMAIN, form, "Legal")
    assert patch == {"other_business_domain": "Logistics, Legal"}

    form = form.merged(patch)
    assert apply_suggestion(Step.DEPARTMENT_DOMAIN, form, "Logistics") == {"other_business_domain": "Legal"}


def test_ai_maturity_appends_bullets():
    first = apply_suggestion(Step.AI_MATURITY, FormData(), "Chatbot for support")
    assert first == {"ai_use_case": "- Chatbot for support"}

    form = FormData().merged(first)
    second = apply_suggestion(Step.AI_MATURITY, form, "Invoice OCR")
    assert second == {"ai_use_case": "- Chatbot for support\n- Invoice OCR"}


@pytest.mark.parametrize(
    "suggestion, patch",
    [
        ("ASAP", {"timeline": "ASAP"}),
        ("Within 6 months", {"timeline": "Within 6 months"}),
        ("Next year", {"timeline": "Next year"}),
        ("€50,000", {"budget": "50000"}),
        ("$ 12.500", {"budget": "12500"}),
    ],
)
def test_timing_budget_classification(suggestion, patch):
    assert apply_suggestion(Step.TIMING_BUDGET, FormData(), suggestion) == patch


@pytest.mark.parametrize(
    "step", [Step.COMPANY_PROFILE, Step.SUMMARY, Step.PAYMENT, Step.CONFIRMATION]
)
def test_steps_without_suggestions_return_empty_patch(step):
    assert apply_suggestion(step, FormData(), "anything") == {}
