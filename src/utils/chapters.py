"""Chapter markers parsed from YouTube video descriptions."""

import re

_TIME = r"(\d{1,2}:\d{2}(?::\d{2})?)"
_DASH = r"\s*[-–—]\s*"

# "12:34 - Topic" / "1:02:03 - Topic", any dash style
_TIME_FIRST = re.compile(rf"^\s*{_TIME}{_DASH}(.+?)\s*$")
# "Topic - 12:34"
_TOPIC_FIRST = re.compile(rf"^\s*(.+?){_DASH}{_TIME}\s*$")


def normalize_time(value: str) -> str:
    """Normalize MM:SS or H:MM:SS to HH:MM:SS."""
    parts = [int(p) for p in value.split(":")]
    if len(parts) == 2:
        parts.insert(0, 0)
    hours, minutes, seconds = parts
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def to_seconds(value: str) -> int:
    total = 0
    for part in value.split(":"):
        total = total * 60 + int(part)
    return total


def parse_chapters(description: str | None) -> list[dict[str, str]]:
    """Extract ``{"time", "topic"}`` entries from a description, sorted by time.

    Each line is matched at most once, so a line like "00:00 - Intro" is not
    also read as a topic-first entry.
    """
    if not description:
        return []

    chapters = []
    for line in description.splitlines():
        match = _TIME_FIRST.match(line)
        if match:
            time_str, topic = match.groups()
        else:
            match = _TOPIC_FIRST.match(line)
            if not match:
                continue
            topic, time_str = match.groups()

        topic = topic.strip()
        if topic:
            chapters.append({"time": normalize_time(time_str), "topic": topic})

    chapters.sort(key=lambda c: to_seconds(c["time"]))
    return chapters
