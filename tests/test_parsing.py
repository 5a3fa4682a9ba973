import json

import pytest

from cord.parsing import (
    FALLBACK_EXPECTED_CHANGE,
    build_steps,
    classify_judgment,
    parse_plan,
)
from fakes import plan_json


def test_structured_plan_with_surrounding_text():
    parsed = parse_plan(plan_json(4))
    assert parsed.kind == "structured"
    assert len(parsed.steps) == 4
    assert parsed.steps[0].target_element == "Button 1"
    assert parsed.steps[3].expected_change == "Page 4 opens"


def test_structured_plan_accepts_snake_case_and_strings():
    text = json.dumps([{"instruction": "Open settings", "target_element": "Gear"}, "Click save"])
    parsed = parse_plan(text)
    assert parsed.kind == "structured"
    assert parsed.steps[0].target_element == "Gear"
    assert parsed.steps[1].instruction == "Click save"


def test_invalid_json_falls_back_to_lines():
    text = "1. Open the menu\n\n2. Click [Sign up\n3) Enter your email"
    parsed = parse_plan(text)
    assert parsed.kind == "fallback"
    assert [s.instruction for s in parsed.steps] == ["Open the menu", "Click [Sign up", ") Enter your email"]
    assert parsed.steps[0].description == "Step 1"
    assert parsed.steps[0].target_element == ""
    assert parsed.steps[0].expected_change == FALLBACK_EXPECTED_CHANGE


def test_empty_json_array_falls_back():
    parsed = parse_plan("[]")
    assert parsed.kind == "fallback"
    assert len(parsed.steps) == 1


@pytest.mark.parametrize("text", [
    "Just click the blue button.",
    "a\nb\nc\nd\ne\nf\ng\nh",
    "   leading spaces\n\n\n trailing   \n",
    "{\"not\": \"a list\"}",
    "[1, 2, 3]",
])
def test_any_prose_yields_one_to_five_steps(text):
    parsed = parse_plan(text)
    assert parsed.usable
    assert 1 <= len(parsed.steps) <= 5


@pytest.mark.parametrize("text", ["", "   ", "\n\n"])
def test_blank_is_unparseable(text):
    parsed = parse_plan(text)
    assert parsed.kind == "unparseable"
    assert not parsed.usable


def test_build_steps_assigns_ids_and_defaults():
    parsed = parse_plan(json.dumps([{}, {"description": "Only a description"}]))
    steps = build_steps(parsed.steps)
    assert [s.id for s in steps] == ["step-0", "step-1"]
    assert steps[0].description == "Step 1"
    assert steps[0].instruction == "Complete this step"
    assert steps[0].expected_change == "Screen should update"
    assert steps[1].instruction == "Only a description"
    assert not any(s.completed or s.verified for s in steps)


def test_judgment_completed():
    j = classify_judgment("COMPLETED: the confirmation page is visible")
    assert j.completed
    assert j.explanation == "the confirmation page is visible"


def test_judgment_not_completed_wins():
    j = classify_judgment("NOT_COMPLETED: button not yet visible")
    assert not j.completed
    assert j.explanation == "button not yet visible"

    # both markers present -> incomplete
    assert not classify_judgment("COMPLETED: partly. NOT_COMPLETED: form not sent").completed


def test_judgment_without_marker_is_incomplete():
    j = classify_judgment("I can see a login form.")
    assert not j.completed
    assert j.explanation == "I can see a login form."


def test_judgment_is_case_insensitive():
    assert classify_judgment("completed: yes").completed
