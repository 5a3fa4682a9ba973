import asyncio

import pytest

from cord import cli
from cord.auth import ALREADY_REGISTERED
from cord.cli import parse_args, render_progress, run_auth
from cord.schemas import AuthResult, GuidanceProgress, Step


def steps(n, completed=0):
    return [
        Step(
            id=f"step-{i}",
            description=f"Do thing {i + 1}",
            instruction=f"Click button {i + 1}",
            target_element="Blue button" if i == completed else "",
            completed=i < completed,
            verified=i < completed,
        )
        for i in range(n)
    ]


def test_modes_are_exclusive_and_required():
    args = parse_args(["--goal", "create an account", "--interval", "2", "--detect"])
    assert args.goal == "create an account"
    assert args.interval == 2.0
    assert args.detect and not args.track_mouse

    with pytest.raises(SystemExit):
        parse_args([])
    with pytest.raises(SystemExit):
        parse_args(["--goal", "x", "--chat"])


def test_render_in_progress():
    progress = GuidanceProgress(goal="sign up", state="awaiting_change", current_index=1, completed=1, total=3, steps=steps(3, 1))
    text = render_progress(progress)
    assert "[x] Do thing 1" in text
    assert "[>] Do thing 2" in text
    assert "      Click button 2" in text
    assert "      Target: Blue button" in text
    assert "[ ] Do thing 3" in text
    assert "Progress: 1 / 3 completed" in text
    assert "All steps completed!" not in text


def test_render_completed_paused_and_error():
    done = GuidanceProgress(goal="sign up", state="completed", current_index=2, completed=2, total=2, steps=steps(2, 2))
    assert "All steps completed!" in render_progress(done)

    stuck = GuidanceProgress(goal="sign up", state="uninitialized", paused=True, error="Failed to initialize steps.")
    text = render_progress(stuck)
    assert "! Failed to initialize steps." in text
    assert "Guidance paused" in text
    assert "Progress:" not in text


class RecordingAuth:
    def __init__(self, result, signin_url="https://hooks.example.test/in", signup_url="https://hooks.example.test/up"):
        self.result = result
        self.signin_url = signin_url
        self.signup_url = signup_url
        self.calls = []

    def sign_in(self, email, password):
        self.calls.append(("in", email, password))
        return self.result

    def sign_up(self, name, email, password):
        self.calls.append(("up", name, email, password))
        return self.result


def test_sign_up_defaults_name_from_email(capsys):
    auth = RecordingAuth(AuthResult(success=True, message="Account created successfully!"))
    args = parse_args(["--sign-up", "jo@example.test"])
    assert run_auth(args, auth=auth, password="pw") == 0
    assert auth.calls == [("up", "jo", "jo@example.test", "pw")]
    assert "Account created successfully!" in capsys.readouterr().out


def test_sign_in_failure_is_reported(capsys):
    auth = RecordingAuth(AuthResult(success=False, error=ALREADY_REGISTERED))
    args = parse_args(["--sign-in", "jo@example.test"])
    assert run_auth(args, auth=auth, password="pw") == 1
    assert f"! {ALREADY_REGISTERED}" in capsys.readouterr().out


def test_missing_webhook_is_reported_without_prompting(capsys):
    auth = RecordingAuth(AuthResult(success=True), signin_url="")
    args = parse_args(["--sign-in", "jo@example.test"])
    assert run_auth(args, auth=auth) == 1
    assert auth.calls == []
    assert "CORD_SIGNIN_WEBHOOK" in capsys.readouterr().out


def test_main_dispatches_auth_modes(monkeypatch, capsys):
    auth = RecordingAuth(AuthResult(success=True, message="Signed in successfully!"))
    monkeypatch.setattr(cli, "WebhookAuth", lambda: auth)
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt="": "secret")

    assert asyncio.run(cli.main(["--sign-in", "jo@example.test"])) == 0
    assert auth.calls == [("in", "jo@example.test", "secret")]
    assert "Signed in successfully!" in capsys.readouterr().out
