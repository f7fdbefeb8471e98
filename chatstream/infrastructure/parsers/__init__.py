"""Chunk parser implementations."""

from .openai_compatible import OpenAIChunkParser

__all__ = ["OpenAIChunkParser"]
