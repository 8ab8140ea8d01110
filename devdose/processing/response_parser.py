"""Turn raw model text into a validated ``ProcessingOutput``."""

from __future__ import annotations

import json
import re

from pydantic import ValidationError

from devdose.models import ProcessingOutput

_JSON_FENCE_RE = re.compile(r"```json\s*\n(.*?)\n\s*```", re.DOTALL)

# Models like to escape markdown characters, which JSON rejects.
_MARKDOWN_ESCAPE_RE = re.compile(r"(?<!\\)\\([_()\[\]{}])")


class InvalidOutputError(ValueError):
    """Model output could not be parsed or failed validation."""


def extract_json_text(response: str) -> str:
    """A ```json fence if present, otherwise the outermost ``{...}`` span."""
    fenced = _JSON_FENCE_RE.search(response)
    if fenced:
        return fenced.group(1).strip()

    start = response.find("{")
    end = response.rfind("}")
    if start == -1 or end <= start:
        raise InvalidOutputError("No JSON object found in model response")
    return response[start : end + 1]


def sanitize_json_text(text: str) -> str:
    return _MARKDOWN_ESCAPE_RE.sub(r"\1", text)


def parse_processing_output(response: str) -> ProcessingOutput:
    text = sanitize_json_text(extract_json_text(response))
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidOutputError(f"Malformed JSON from model: {exc}") from exc
    if not isinstance(payload, dict):
        raise InvalidOutputError("Model response JSON is not an object")

    try:
        return ProcessingOutput.model_validate(payload)
    except ValidationError as exc:
        raise InvalidOutputError(f"Model output failed validation: {exc}") from exc
