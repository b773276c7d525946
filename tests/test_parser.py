import pytest

from gamedesigner.workflow.parser import (
    FeatureProposal,
    NeedsWork,
    ParseError,
    Satisfied,
    parse_feature_proposal,
    parse_review_verdict,
)


@pytest.mark.parametrize("text", ["SATISFIED", "satisfied", "  Satisfied \n", "\tSATISFIED"])
def test_verdict_satisfied(text: str) -> None:
    """Trimmed, case-insensitive exact match accepts the feature."""
    assert parse_review_verdict(text) == Satisfied(text)


@pytest.mark.parametrize(
    "text",
    ["Please add tests", "SATISFIED.", "Not SATISFIED", "SATISFIED but add tests", ""],
)
def test_verdict_needs_work(text: str) -> None:
    assert parse_review_verdict(text) == NeedsWork(text)


def test_proposal_plain_json() -> None:
    result = parse_feature_proposal('{"name":"Jump","description":"Implement jump"}')
    assert result == FeatureProposal(name="Jump", description="Implement jump")


def test_proposal_in_code_fence_with_prose() -> None:
    """Fences and commentary around the object are tolerated."""
    text = (
        "Here is the next feature:\n"
        "```json\n"
        '{\n  "name": " Double Jump ",\n  "description": "Allow a second jump"\n}\n'
        "```\n"
        "Good luck!"
    )
    result = parse_feature_proposal(text)
    assert result == FeatureProposal(name="Double Jump", description="Allow a second jump")


def test_proposal_trailing_prose_with_braces() -> None:
    text = '{"name":"Jump","description":"Implement jump"}\nUse a dict like {} for state.'
    assert parse_feature_proposal(text) == FeatureProposal(name="Jump", description="Implement jump")


def test_proposal_first_of_two_objects_wins() -> None:
    text = (
        '{"name":"Jump","description":"Implement jump"}\n'
        'Alternatively: {"name":"Dash","description":"Implement dash"}'
    )
    assert parse_feature_proposal(text) == FeatureProposal(name="Jump", description="Implement jump")


def test_proposal_skips_braces_in_leading_prose() -> None:
    text = 'Keep {state} small. {"name":"Jump","description":"Implement jump"}'
    assert parse_feature_proposal(text) == FeatureProposal(name="Jump", description="Implement jump")


def test_proposal_extra_fields_ignored() -> None:
    result = parse_feature_proposal(
        '{"name": "Jump", "description": "Implement jump", "priority": 1}'
    )
    assert isinstance(result, FeatureProposal)


def test_proposal_no_json() -> None:
    result = parse_feature_proposal("I think you should add jumping.")
    assert isinstance(result, ParseError)
    assert result.raw == "I think you should add jumping."
    assert "no JSON object" in result.reason


def test_proposal_invalid_json() -> None:
    result = parse_feature_proposal("{name: Jump}")
    assert isinstance(result, ParseError)
    assert "invalid JSON" in result.reason


@pytest.mark.parametrize(
    "text, field",
    [
        ('{"name": "Jump"}', "description"),
        ('{"description": "Implement jump"}', "name"),
        ('{"name": "", "description": "x"}', "name"),
        ('{"name": 3, "description": "x"}', "name"),
        ('{"name": "Jump", "description": null}', "description"),
    ],
)
def test_proposal_missing_fields(text: str, field: str) -> None:
    result = parse_feature_proposal(text)
    assert isinstance(result, ParseError)
    assert field in result.reason
    assert result.raw == text
