"""
LLM integration for Synthora.

This package provides the language-model capability used for intent
classification and specification extraction. Supports Anthropic and OpenAI.
"""

from .api_client import LanguageModel, LLMAPIClient, LLMProvider, Turn, normalize_turns
from .models import ClassifierOutput, SpecExtraction, UseCaseExtraction
from .parsing import parse_json_object

__all__ = [
    "LanguageModel",
    "LLMAPIClient",
    "LLMProvider",
    "Turn",
    "normalize_turns",
    "ClassifierOutput",
    "SpecExtraction",
    "UseCaseExtraction",
    "parse_json_object",
]
