import asyncio

import pytest

from cord.errors import PlanningFailed, ProviderEmptyResponse
from cord.planner import StepPlanner
from fakes import FakeVision, plan_json, snap


def plan(vision, goal="sign up for a newsletter"):
    return asyncio.run(StepPlanner(vision).plan_steps(goal, snap("0")))


def test_structured_plan():
    vision = FakeVision(plans=[plan_json(4)], ocr="Newsletter  Subscribe")
    steps = plan(vision)
    assert [s.id for s in steps] == ["step-0", "step-1", "step-2", "step-3"]
    assert steps[2].target_element == "Button 3"
    assert not any(s.completed for s in steps)

    prompt = vision.prompts[0]
    assert '"sign up for a newsletter"' in prompt
    assert "Newsletter  Subscribe" in prompt
    assert "Provide 3-7 steps maximum." in prompt


def test_prose_plan_is_recovered():
    steps = plan(FakeVision(plans=["1. Open the menu\n2. Click Subscribe\n3. Enter your email"]))
    assert [s.instruction for s in steps] == ["Open the menu", "Click Subscribe", "Enter your email"]
    assert steps[0].expected_change == "Screen should update to reflect the action"


def test_provider_error_fails_planning():
    with pytest.raises(PlanningFailed) as info:
        plan(FakeVision(plans=[ProviderEmptyResponse()]))
    assert isinstance(info.value.__cause__, ProviderEmptyResponse)
    assert str(info.value) == ProviderEmptyResponse.user_message


def test_blank_plan_fails():
    with pytest.raises(PlanningFailed):
        plan(FakeVision(plans=["   "]))
