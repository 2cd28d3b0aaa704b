"""Implementations of the external ``generate`` collaborator."""

from .gemini import GeminiGenerator, build_generate_config, map_finish_reason

__all__ = ["GeminiGenerator", "build_generate_config", "map_finish_reason"]
