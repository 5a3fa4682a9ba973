# Optional traffic log for provider calls, central file handler
# Only the text parts of a request are written; images are replaced by a placeholder
from pathlib import Path
from typing import Any, Dict, List, Optional

IMAGE_PLACEHOLDER = "<image omitted>"


def _clean(name: str) -> str:
    return name.replace(" ", "").replace("[", "").replace("]", "")


def redact_messages(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Copy of a chat message list with every image part swapped for a placeholder."""
    redacted = []
    for msg in messages:
        content = msg.get("content")
        if isinstance(content, list):
            parts = [
                {"type": "text", "text": IMAGE_PLACEHOLDER} if part.get("type") == "image_url" else part
                for part in content
            ]
            redacted.append({**msg, "content": parts})
        else:
            redacted.append(dict(msg))
    return redacted


def save_to_file(
    text: str,
    filename: str,
    subfolder: Path,
    base: Optional[Path],
) -> Optional[Path]:
    if base is None:
        return None

    folder = Path(base) / subfolder.parent / _clean(subfolder.name)
    folder.mkdir(parents=True, exist_ok=True)  # create if not exists

    filepath = folder / _clean(filename)
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(text)

    return filepath
