"""Generation client, prompts and response parsing."""

from agentboard.ai.client import GenerationClient, GenerationResponse
from agentboard.ai.parser import extract_json_object, parse_json_object

__all__ = [
    "GenerationClient",
    "GenerationResponse",
    "extract_json_object",
    "parse_json_object",
]
