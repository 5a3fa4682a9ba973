from pathlib import Path

from cord.data import IMAGE_PLACEHOLDER, redact_messages, save_to_file


def test_redact_replaces_only_images():
    messages = [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": [
            {"type": "text", "text": "what now?"},
            {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,AAAA"}},
        ]},
    ]
    redacted = redact_messages(messages)
    assert redacted[0] == messages[0]
    assert redacted[1]["content"] == [
        {"type": "text", "text": "what now?"},
        {"type": "text", "text": IMAGE_PLACEHOLDER},
    ]
    # input untouched
    assert messages[1]["content"][1]["type"] == "image_url"


def test_save_to_file(tmp_path):
    assert save_to_file("x", "a.txt", Path("sub"), base=None) is None

    path = save_to_file("hello", "2026-[OCR]-SND.txt", Path("2026-[OCR]"), base=tmp_path)
    assert path == tmp_path / "2026-OCR" / "2026-OCR-SND.txt"
    assert path.read_text(encoding="utf-8") == "hello"
