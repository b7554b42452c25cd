import pytest
from demogen.core.errors import ContentMergeError
from demogen.providers.base import ComponentVariant, GenerationResult, NarrativeContent, Usage
from demogen.stages.merger import merge


def _narrative(**kw):
    values = dict(
        title="Smart Loan Advisor",
        category="Process Automation",
        description="Automates loan review",
        capabilities=["Credit scoring"],
        executive_summary="Faster loans.",
        sample_data={"users": [{"id": "USR-1"}]},
        confidence=0.9,
        provider="azure-openai",
        usage=Usage(provider="azure-openai", prompt_tokens=1000, completion_tokens=500, cost=0.06),
    )
    values.update(kw)
    return NarrativeContent(**values)


def _result(*variants):
    return GenerationResult(
        variants=list(variants),
        use_case="Smart Loan Advisor",
        generated_at="2026-01-01T00:00:00+00:00",
        provider="v0",
        usage=Usage(provider="v0", cost=0.15),
    )


def test_picks_first_successful_variant():
    result = _result(
        ComponentVariant(id="a", code="", status="error", error_message="boom"),
        ComponentVariant(id="b", code="export default function B() {}"),
        ComponentVariant(id="c", code="export default function C() {}"),
    )
    payload = merge(_narrative(), result)
    assert payload.component_id == "b"
    assert payload.component_source == "export default function B() {}"
    assert payload.metadata["variantCount"] == 3


def test_no_successful_variant_surfaces_first_error():
    result = _result(
        ComponentVariant(id="a", code="", status="error", error_message="first failure"),
        ComponentVariant(id="b", code="", status="error", error_message="second failure"),
    )
    with pytest.raises(ContentMergeError) as exc:
        merge(_narrative(), result)
    assert "first failure" in exc.value.message


def test_empty_variant_list_is_a_merge_failure():
    with pytest.raises(ContentMergeError):
        merge(_narrative(), _result())


def test_merge_is_deterministic():
    result = _result(ComponentVariant(id="a", code="const x = useState(0);"))
    narrative = _narrative()
    assert merge(narrative, result) == merge(narrative, result)
    assert merge(narrative, result).to_dict() == merge(narrative, result).to_dict()


def test_costs_and_metadata():
    payload = merge(_narrative(), _result(ComponentVariant(id="a", code="<div />")))
    assert payload.costs == {"azureOpenAI": 0.06, "v0": 0.15, "total": 0.21}
    assert payload.metadata["generatedBy"] == {"narrative": "azure-openai", "component": "v0"}
    assert payload.metadata["complexity"] == "simple"
    assert payload.demo_script == "Faster loans."
    assert payload.synthetic_data == {"users": [{"id": "USR-1"}]}
    assert "usage" not in payload.narrative


def test_missing_usage_counts_as_zero_cost():
    payload = merge(_narrative(usage=None), _result(ComponentVariant(id="a", code="<div />")))
    assert payload.costs["azureOpenAI"] == 0.0
    assert payload.costs["total"] == 0.15


def test_non_mapping_sample_data_becomes_empty():
    payload = merge(_narrative(sample_data=["a", "b"]), _result(ComponentVariant(id="a", code="export default 1")))
    assert payload.synthetic_data == {}
