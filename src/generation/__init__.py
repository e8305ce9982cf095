"""
Generation module for attorney documents.

Provides AI section drafting, document assembly and the session-gated
generation pipeline.
"""

from src.generation.assembler import DocumentAssembler, GeneratedDocument, GeneratedSection
from src.generation.drafting import DraftingClient, OpenAIDraftingClient
from src.generation.generator import DocumentGenerator
from src.generation.prompts import get_system_prompt
from src.generation.section_generator import AISectionGenerator, SectionDraft, placeholder_for

__all__ = [
    "AISectionGenerator",
    "DocumentAssembler",
    "DocumentGenerator",
    "DraftingClient",
    "GeneratedDocument",
    "GeneratedSection",
    "OpenAIDraftingClient",
    "SectionDraft",
    "get_system_prompt",
    "placeholder_for",
]
