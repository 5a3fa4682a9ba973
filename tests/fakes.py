"""Test doubles shared by the test modules (no network, no display)."""
import asyncio
import base64
import json
from types import SimpleNamespace

from cord.schemas import Snapshot


def snap(tag: str) -> Snapshot:
    """A tiny snapshot whose data differs per tag."""
    return Snapshot(
        data="data:image/jpeg;base64," + base64.b64encode(tag.encode()).decode(),
        width=10,
        height=10,
    )


def plan_json(n: int) -> str:
    steps = [
        {
            "description": f"Do thing {i + 1}",
            "instruction": f"Click button {i + 1}",
            "targetElement": f"Button {i + 1}",
            "expectedChange": f"Page {i + 1} opens",
        }
        for i in range(n)
    ]
    return "Here is your plan:\n```json\n" + json.dumps(steps) + "\n```"


class FakeVision:
    """Scripted stand-in for VisionClient.

    ``plans`` and ``verdicts`` are consumed in order; an Exception entry is raised.
    Set ``gate`` (``plan_gate``) to an asyncio.Event to hold verification (planning)
    calls until it is set.
    """

    def __init__(self, plans=(), verdicts=(), guidance="Look at the top right corner.", ocr="Sign up"):
        self.plans = list(plans)
        self.verdicts = list(verdicts)
        self.guidance = guidance
        self.ocr = ocr
        self.calls = []
        self.prompts = []
        self.gate = None
        self.plan_gate = None

    async def extract_text(self, snapshot):
        return self.ocr

    async def analyze(self, snapshot, prompt, context=None):
        if "step-by-step plan" in prompt:
            kind = "plan"
        elif "verify if the following step" in prompt:
            kind = "verify"
        else:
            kind = "guidance"
        self.calls.append(kind)
        self.prompts.append(prompt)

        if kind == "plan" and self.plan_gate is not None:
            await self.plan_gate.wait()
        if kind == "verify" and self.gate is not None:
            await self.gate.wait()

        if kind == "plan":
            outcome = self.plans.pop(0)
        elif kind == "verify":
            outcome = self.verdicts.pop(0)
        else:
            outcome = self.guidance
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeCompletions:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=outcome))])


class FakeOpenAI:
    """Minimal AsyncOpenAI look-alike: only chat.completions.create."""

    def __init__(self, outcomes):
        self.completions = FakeCompletions(outcomes)
        self.chat = SimpleNamespace(completions=self.completions)


class FakeShot:
    def __init__(self, width=4, height=3, fill=128):
        self.width = width
        self.height = height
        self.rgb = bytes([fill % 256]) * (width * height * 3)


class FakeSct:
    """mss.mss() look-alike. ``script`` entries are returned (or raised) per grab,
    after that every grab returns a frame with a new fill colour."""

    def __init__(self, script=(), monitors=None):
        self.script = list(script)
        self.monitors = monitors if monitors is not None else [
            {"left": 0, "top": 0, "width": 4, "height": 3},
            {"left": 0, "top": 0, "width": 4, "height": 3},
        ]
        self.grabs = 0
        self.closed = False

    def grab(self, monitor):
        self.grabs += 1
        if self.script:
            outcome = self.script.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return FakeShot(fill=self.grabs * 40)

    def close(self):
        self.closed = True


async def spin(until, attempts=50):
    """Yield to the loop until ``until()`` is true."""
    for _ in range(attempts):
        if until():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")
