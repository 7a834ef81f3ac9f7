"""
Lenient JSON extraction for LLM output.

Models wrap JSON in prose and markdown fences, leave trailing commas and get
cut off mid-object when they hit a token limit. These helpers recover what
can be recovered:

- strip_code_fences: unwrap ```json ... ``` blocks (terminated or not)
- extract_json_object / extract_json_array: slice out the outermost container
- repair_json: close unterminated strings, drop trailing commas, append the
  missing closers in stack order, and if the result still does not parse,
  cut back to earlier commas until it does
- load_json_lenient: strict first, repaired second
"""

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"```[A-Za-z]*[ \t]*\n?(.*?)```", re.DOTALL)
_OPEN_FENCE_RE = re.compile(r"^```[A-Za-z]*[ \t]*\n?")
_CLOSER_FOR = {"{": "}", "[": "]"}

# Upper bound on cut-back attempts for badly truncated payloads
MAX_REPAIR_ATTEMPTS = 50


def strip_code_fences(text: str) -> str:
    """Return the contents of the first fenced block, or the text unfenced."""
    if not text:
        return ""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return _OPEN_FENCE_RE.sub("", text.strip())


def _extract_container(text: str, opener: str, closer: str) -> str | None:
    body = strip_code_fences(text)
    start = body.find(opener)
    end = body.rfind(closer)
    if start == -1 or end <= start:
        return None
    return body[start : end + 1]


def extract_json_object(text: str) -> str | None:
    """Slice from the first '{' to the last '}' (None if there is no object)."""
    return _extract_container(text, "{", "}")


def extract_json_array(text: str) -> str | None:
    """Slice from the first '[' to the last ']' (None if there is no array)."""
    return _extract_container(text, "[", "]")


def _drop_trailing_comma(out: list[str]) -> None:
    i = len(out) - 1
    while i >= 0 and out[i].isspace():
        i -= 1
    if i >= 0 and out[i] == ",":
        del out[i]


def _finish(out: list[str], stack: list[str], in_string: bool, escaped: bool) -> str:
    text = "".join(out)
    if in_string:
        if escaped:
            text = text[:-1]
        text += '"'
    text = text.rstrip()
    while text.endswith(","):
        text = text[:-1].rstrip()
    if text.endswith(":"):
        text += " null"
    return text + "".join(_CLOSER_FOR[c] for c in reversed(stack))


def _parses(candidate: str) -> bool:
    try:
        json.loads(candidate)
    except ValueError:
        return False
    return True


def repair_json(text: str, opener: str = "{") -> str | None:
    """
    Attempt to turn malformed or truncated JSON into valid JSON.

    Args:
        text: Raw model output (fences and leading prose are tolerated)
        opener: '{' to repair an object, '[' to repair an array

    Returns:
        A string that ``json.loads`` accepts, or None if nothing was salvageable
    """
    body = strip_code_fences(text)
    start = body.find(opener)
    if start == -1:
        return None

    out: list[str] = []
    stack: list[str] = []
    cut_points: list[tuple[int, tuple[str, ...]]] = []
    in_string = False
    escaped = False

    for ch in body[start:]:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
        elif ch in _CLOSER_FOR:
            stack.append(ch)
            out.append(ch)
        elif ch in "}]":
            if not stack or _CLOSER_FOR[stack[-1]] != ch:
                continue  # stray closer
            _drop_trailing_comma(out)
            cut_points = [c for c in cut_points if c[0] < len(out)]
            stack.pop()
            out.append(ch)
            if not stack:
                break
        elif ch == ",":
            cut_points.append((len(out), tuple(stack)))
            out.append(ch)
        else:
            out.append(ch)

    candidate = _finish(out, stack, in_string, escaped)
    if _parses(candidate):
        return candidate

    for position, snapshot in list(reversed(cut_points))[:MAX_REPAIR_ATTEMPTS]:
        candidate = _finish(out[:position], list(snapshot), False, False)
        if _parses(candidate):
            return candidate
    return None


def load_json_lenient(text: str, opener: str = "{") -> tuple[Any, bool] | None:
    """
    Parse JSON from model output.

    Returns:
        (data, repaired) where ``repaired`` tells whether auto-repair was
        needed, or None when neither strict parsing nor repair worked
    """
    if not text:
        return None

    closer = _CLOSER_FOR[opener]
    sliced = _extract_container(text, opener, closer)
    if sliced is not None:
        try:
            return json.loads(sliced), False
        except ValueError:
            pass

    repaired = repair_json(text, opener)
    if repaired is None:
        return None
    return json.loads(repaired), True
