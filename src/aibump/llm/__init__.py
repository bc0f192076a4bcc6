"""Generative classifier: client, prompts and credentials."""

from aibump.llm.client import AnthropicClassifier, TextClassifier, normalise_kind
from aibump.llm.credentials import resolve_api_key
from aibump.llm.prompts import build_classification_prompt, build_summary_prompt

__all__ = [
    "AnthropicClassifier",
    "TextClassifier",
    "build_classification_prompt",
    "build_summary_prompt",
    "normalise_kind",
    "resolve_api_key",
]
