from __future__ import annotations

import datetime as dt
import html as html_lib
import math
import re
from typing import Optional

LIST_MARKER_RE = re.compile(r"^(?P<indent>[ \t]*)(?:[-+*]|\d+[.)])\s+")
FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(`{3,}|~{3,})")
DOUBLE_QUOTE_RE = re.compile(r"^(?P<indent>[ \t]*)>>(?!>)(?P<rest>.*)$")
FILENAME_RE = re.compile(r"^(?P<date>\d{4}-\d{2}-\d{2})-(?P<slug>.+)$")
PARAGRAPH_RE = re.compile(r"<p>(.*?)</p>", re.DOTALL)
TAG_RE = re.compile(r"<[^>]+>")
WHITESPACE_RE = re.compile(r"\s+")

LIST_KEYS = {"categories", "tags", "keywords"}
DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
)


def slugify(text: str) -> str:
    text = text.lower()
    text = re.sub(r"[^\w]+", "-", text, flags=re.UNICODE)
    text = text.strip("-_").replace("_", "-")
    return text or "post"


def unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def parse_list(value: str) -> list[str]:
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        inner = value[1:-1]
        items = [item.strip().strip("'\"") for item in inner.split(",")]
    else:
        items = [item.strip() for item in value.split(",")]
    return [item for item in items if item]


def parse_front_matter(text: str) -> tuple[dict, str]:
    """Split ``text`` into its front matter mapping and Markdown body.

    A document that does not open with ``---`` has no front matter. An opening
    delimiter without a closing one raises ``ValueError``.
    """
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, clean_text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end = i
            break
    if end is None:
        raise ValueError("front matter block is not closed with '---'")

    meta: dict = {}
    list_key = None
    for line in lines[1:end]:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line == "-" or line.startswith("- "):
            if list_key is None:
                raise ValueError(f"list item outside of a list field: {line!r}")
            item = unquote(line[1:].strip())
            if item:
                meta[list_key].append(item)
            continue
        if ":" not in line:
            raise ValueError(f"expected 'key: value', got {line!r}")
        key, value = line.split(":", 1)
        key = key.strip().lower()
        value = value.strip()
        list_key = None
        if key in LIST_KEYS:
            meta[key] = parse_list(value)
            if not value:
                list_key = key
        else:
            meta[key] = unquote(value)
    body = "\n".join(lines[end + 1 :])
    return meta, body


def to_utc_naive(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(dt.timezone.utc).replace(tzinfo=None)


def parse_timestamp(value: str) -> dt.datetime:
    value = value.strip()
    try:
        return to_utc_naive(dt.datetime.fromisoformat(value))
    except ValueError:
        pass
    for fmt in DATETIME_FORMATS:
        try:
            return to_utc_naive(dt.datetime.strptime(value, fmt))
        except ValueError:
            continue
    raise ValueError(f"unrecognized date {value!r}")


def split_filename(stem: str) -> tuple[Optional[str], str]:
    match = FILENAME_RE.match(stem)
    if not match:
        return None, stem
    return match.group("date"), match.group("slug")


def parse_date(meta: dict, stem: str) -> Optional[dt.datetime]:
    date_value = (meta.get("date") or "").strip()
    if date_value:
        return parse_timestamp(date_value)
    file_date, _ = split_filename(stem)
    if file_date:
        return parse_timestamp(file_date)
    return None


def parse_updated(meta: dict) -> Optional[dt.datetime]:
    value = (meta.get("last_modified_at") or meta.get("updated") or "").strip()
    if not value:
        return None
    return parse_timestamp(value)


def unique(items: list[str]) -> tuple[str, ...]:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return tuple(out)


def get_categories(meta: dict) -> tuple[str, ...]:
    if meta.get("categories"):
        return unique(meta["categories"])
    if meta.get("category"):
        return (meta["category"],)
    return ()


def get_tags(meta: dict) -> tuple[str, ...]:
    return unique(meta.get("tags") or [])


def normalize_list_spacing(text: str) -> str:
    lines = text.splitlines()
    out: list[str] = []
    in_fence = False
    fence_marker = ""
    for line in lines:
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(2)
            if not in_fence:
                in_fence = True
                fence_marker = marker
            elif marker == fence_marker:
                in_fence = False
                fence_marker = ""
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue
        quote_match = DOUBLE_QUOTE_RE.match(line)
        if quote_match:
            rest = quote_match.group("rest").lstrip()
            if rest:
                line = f'{quote_match.group("indent")}> {rest}'
            else:
                line = f'{quote_match.group("indent")}>'
        list_match = LIST_MARKER_RE.match(line)
        if list_match:
            if not list_match.group("indent"):
                if out and out[-1].strip() and not LIST_MARKER_RE.match(out[-1]):
                    out.append("")
        out.append(line)
    return "\n".join(out)


def plain_text(html_text: str) -> str:
    return html_lib.unescape(TAG_RE.sub("", html_text))


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text).strip()


def extract_excerpt(html_text: str) -> str:
    match = PARAGRAPH_RE.search(html_text)
    if not match:
        return ""
    return collapse_whitespace(plain_text(match.group(1)))


def count_words(text: str) -> int:
    return len(text.split())


def reading_time(words: int, words_per_minute: int) -> int:
    if words_per_minute <= 0:
        return 0
    return math.ceil(words / words_per_minute)
