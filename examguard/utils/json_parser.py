"""
JSON Parser utility for extracting JSON from LLM responses.
"""
import json
import logging
import re
from typing import Any, Dict

logger = logging.getLogger(__name__)

_decoder = json.JSONDecoder()


class JSONParser:
    """Helper class to extract clean JSON from LLM responses."""

    @staticmethod
    def extract_json(text: str) -> Dict[str, Any]:
        """Attempts to extract a JSON object from text.

        Tries, in order: the whole text, a fenced ```json block, and the first
        balanced ``{...}`` span. Returns an empty dict when nothing parses.
        """
        if not text:
            return {}
        try:
            parsed = json.loads(text)
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

        match = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", text, re.DOTALL)
        if match:
            try:
                parsed = json.loads(match.group(1))
                if isinstance(parsed, dict):
                    return parsed
            except json.JSONDecodeError:
                pass

        found = JSONParser.extract_first_object(text)
        if found is not None:
            return found

        logger.warning("JSONParser: Could not extract JSON from text, returning empty dict")
        return {}

    @staticmethod
    def extract_first_object(text: str) -> Dict[str, Any] | None:
        """Return the first JSON object embedded in free text, or None."""
        start = text.find("{")
        while start != -1:
            try:
                parsed, _ = _decoder.raw_decode(text, start)
            except json.JSONDecodeError:
                start = text.find("{", start + 1)
                continue
            if isinstance(parsed, dict):
                return parsed
            start = text.find("{", start + 1)
        return None
