from dotenv import load_dotenv, find_dotenv
load_dotenv(find_dotenv(usecwd=True))

import argparse
import asyncio
import getpass
import logging
from typing import Optional

from cord import config
from cord.auth import WebhookAuth
from cord.capture import FrameCapturer
from cord.context import ContextCollector
from cord.detector import UIElementDetector
from cord.errors import CaptureError, CordError, ProviderError
from cord.guide import Guide
from cord.observers.mouse import MouseTracker
from cord.schemas import GuidanceProgress
from cord.vision import ChatHistory, VisionClient

EXIT_WORDS = {"exit", "quit", ":q"}


def parse_args(argv: Optional[list] = None):
    parser = argparse.ArgumentParser(description='Cord - step-by-step screen guidance')

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument('--goal', '-g', type=str, help='Guide me step by step toward this goal')
    mode.add_argument('--ask', '-a', type=str, help='Analyze the current screen once for this question')
    mode.add_argument('--chat', action='store_true', help='Text chat with the assistant')
    mode.add_argument('--check', action='store_true', help='Check that the vision API is reachable and exit')
    mode.add_argument('--sign-in', metavar='EMAIL', help='Sign in to your account through the auth webhook')
    mode.add_argument('--sign-up', metavar='EMAIL', help='Create an account through the auth webhook')

    parser.add_argument('--name', type=str, help='Full name for --sign-up (defaults to the part of the email before @)')
    parser.add_argument('--model', '-m', type=str, help='Model to use')
    parser.add_argument('--interval', '-i', type=float, help=f'Seconds between screen captures (default: {config.CAPTURE_INTERVAL_SEC})')
    parser.add_argument('--monitor', type=int, help=f'Monitor to capture, 0 = all (default: {config.MONITOR_INDEX})')
    parser.add_argument('--min-verify-interval', type=float, help='Minimum seconds between automatic step checks')
    parser.add_argument('--detect', action='store_true', help='Add UI element detection to prompts (needs ROBOFLOW_API_KEY)')
    parser.add_argument('--track-mouse', action='store_true', help='Add recent mouse activity to prompts')
    parser.add_argument('--no-keys', action='store_true', help='Disable keyboard shortcuts (p pause, v verify, r reset)')
    parser.add_argument('--debug', action='store_true', help='Verbose logging')

    return parser.parse_args(argv)


def render_progress(progress: GuidanceProgress) -> str:
    """Plain-text rendering of a guidance session for the terminal."""
    lines = [f"Goal: {progress.goal}"]

    if progress.state == "planning":
        lines.append("Analyzing your screen and creating step-by-step guidance...")
    if progress.error:
        lines.append(f"! {progress.error}")
    if progress.paused:
        lines.append("Guidance paused. Press p to resume automatic verification.")

    for idx, step in enumerate(progress.steps):
        if step.completed:
            marker = "[x]"
        elif idx == progress.current_index:
            marker = "[>]"
        else:
            marker = "[ ]"
        lines.append(f"{marker} {step.description}")
        if idx == progress.current_index:
            lines.extend(f"      {line}" for line in step.instruction.splitlines())
            if step.target_element:
                lines.append(f"      Target: {step.target_element}")

    if progress.total:
        lines.append(f"Progress: {progress.completed} / {progress.total} completed")
    if progress.state == "completed":
        lines.append("All steps completed!")
    return "\n".join(lines)


class ProgressPrinter:
    """on_update listener that prints only when the rendering changed."""

    def __init__(self) -> None:
        self._last = ""

    def __call__(self, progress: GuidanceProgress) -> None:
        text = render_progress(progress)
        if text != self._last:
            self._last = text
            print("\n" + "-" * 80 + "\n" + text)


def build_collector(args) -> ContextCollector:
    detector = UIElementDetector() if args.detect else None
    tracker = MouseTracker() if args.track_mouse else None
    return ContextCollector(detector=detector, tracker=tracker)


async def run_guide(args, vision: VisionClient) -> None:
    collector = build_collector(args)
    interval = args.interval or config.CAPTURE_INTERVAL_SEC
    min_verify = args.min_verify_interval if args.min_verify_interval is not None else config.MIN_VERIFY_INTERVAL_SEC
    monitor = args.monitor if args.monitor is not None else config.MONITOR_INDEX

    guide = Guide(
        args.goal,
        vision=vision,
        capturer=FrameCapturer(monitor=monitor),
        detector=collector.detector,
        tracker=collector.tracker,
        capture_interval=interval,
        min_verify_interval=min_verify,
        on_update=ProgressPrinter(),
        debug=args.debug,
    )

    print(f"Guiding toward: {args.goal} (model {vision.model_name}, capture every {interval}s)")
    async with guide:
        listener = None
        if not args.no_keys:
            from cord.key_listener import get_key_listener
            listener = get_key_listener(guide, asyncio.get_running_loop())
            listener.start()
            print("Keys: p = pause/resume, v = check step now, r = reset")
        try:
            done = await guide.run_until_done()
        finally:
            if listener is not None:
                listener.stop()

    print("Goal reached." if done else "Screen sharing ended before the goal was reached.")


async def run_ask(args, vision: VisionClient) -> None:
    capturer = FrameCapturer(monitor=args.monitor if args.monitor is not None else config.MONITOR_INDEX)
    capturer.start()
    try:
        snapshot = capturer.capture_frame()
    finally:
        capturer.stop()

    collector = build_collector(args)
    ocr_text = await vision.extract_text(snapshot)
    context = await collector.gather(snapshot, ocr_text)
    print(await vision.analyze(snapshot, args.ask, context))


async def run_chat(vision: VisionClient) -> None:
    history = ChatHistory()
    print("Chat with Cord (type 'exit' to quit)")
    while True:
        message = (await asyncio.to_thread(input, "you> ")).strip()
        if message.lower() in EXIT_WORDS:
            return
        if not message:
            continue
        try:
            reply = await vision.continue_chat(history, message)
        except ProviderError as exc:
            print(f"! {exc.user_message}")
            continue
        history.add("user", message)
        history.add("assistant", reply)
        print(f"cord> {reply}")


def run_auth(args, auth: Optional[WebhookAuth] = None, password: Optional[str] = None) -> int:
    """Sign in or sign up through the webhooks and print the outcome."""
    auth = auth or WebhookAuth()
    email = args.sign_in or args.sign_up
    if not (auth.signin_url if args.sign_in else auth.signup_url):
        env = "CORD_SIGNIN_WEBHOOK" if args.sign_in else "CORD_SIGNUP_WEBHOOK"
        print(f"! No webhook configured, set {env}")
        return 1
    if password is None:
        password = getpass.getpass("Password: ")

    if args.sign_in:
        result = auth.sign_in(email, password)
    else:
        result = auth.sign_up(args.name or email.split("@")[0], email, password)

    if not result.success:
        print(f"! {result.error}")
        return 1
    print(result.message)
    return 0


async def main(argv: Optional[list] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.debug else logging.WARNING,
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.sign_in or args.sign_up:
        return run_auth(args)

    model = args.model or config.DEFAULT_MODEL
    vision = VisionClient(model_name=model)

    try:
        if args.check:
            ok = await vision.test_connection()
            print(f"Vision API ({model}): {'connected' if ok else 'unreachable'}")
            return 0 if ok else 1
        if args.chat:
            await run_chat(vision)
        elif args.ask is not None:
            await run_ask(args, vision)
        else:
            await run_guide(args, vision)
    except (CaptureError, ProviderError) as exc:
        print(f"! {exc.user_message}")
        return 1
    except CordError as exc:
        print(f"! {exc}")
        return 1
    return 0


def cli():
    raise SystemExit(asyncio.run(main()))


if __name__ == '__main__':
    cli()
