"""Parsing of designer LLM replies into tagged results.

Two reply shapes are understood:

* feature proposals, a JSON object ``{"name": ..., "description": ...}``
  possibly wrapped in a code fence or surrounded by prose;
* review verdicts, where the literal token ``SATISFIED`` (trimmed,
  case-insensitive) accepts the feature and anything else is feedback.
"""

import json
from dataclasses import dataclass
from typing import Union

SATISFIED_TOKEN = "SATISFIED"

_DECODER = json.JSONDecoder()


@dataclass(frozen=True)
class Satisfied:
    text: str


@dataclass(frozen=True)
class NeedsWork:
    feedback: str


@dataclass(frozen=True)
class FeatureProposal:
    name: str
    description: str


@dataclass(frozen=True)
class ParseError:
    raw: str
    reason: str


ReviewVerdict = Union[Satisfied, NeedsWork]
ProposalResult = Union[FeatureProposal, ParseError]


def parse_review_verdict(text: str) -> ReviewVerdict:
    if text.strip().upper() == SATISFIED_TOKEN:
        return Satisfied(text)
    return NeedsWork(text)


def parse_feature_proposal(text: str) -> ProposalResult:
    """Extract the `{name, description}` object from a planner reply."""
    start = text.find("{")
    if start == -1:
        return ParseError(text, "no JSON object found")
    first_error = None
    data = None
    # The first brace that opens a complete object wins; text after it is ignored.
    while start != -1:
        try:
            data, _ = _DECODER.raw_decode(text, start)
            break
        except json.JSONDecodeError as e:
            first_error = first_error or e
        start = text.find("{", start + 1)
    if data is None:
        return ParseError(text, f"invalid JSON: {first_error}")

    name = data.get("name")
    description = data.get("description")
    if not isinstance(name, str) or not name.strip():
        return ParseError(text, "missing or empty 'name' field")
    if not isinstance(description, str) or not description.strip():
        return ParseError(text, "missing or empty 'description' field")
    return FeatureProposal(name=name.strip(), description=description)
