from __future__ import annotations

from dataclasses import dataclass

from resumind.config import Settings
from resumind.core.documents import DocumentPipeline
from resumind.core.job_import import JobPageFetcher
from resumind.core.latex import LatexCompiler
from resumind.llm.client import AIClient
from resumind.llm.generator import StructuredGenerator


@dataclass(slots=True)
class AppContext:
    """Process-wide collaborators, built once at startup and shared by handlers."""

    settings: Settings
    ai: AIClient
    generator: StructuredGenerator
    documents: DocumentPipeline
    latex: LatexCompiler
    jobs: JobPageFetcher

    @classmethod
    def from_settings(cls, settings: Settings) -> AppContext:
        ai = AIClient.from_settings(settings)
        return cls(
            settings=settings,
            ai=ai,
            generator=StructuredGenerator(ai, long_timeout_sec=settings.ai_long_timeout_sec),
            documents=DocumentPipeline.from_settings(settings),
            latex=LatexCompiler(settings.latex_compile_url, timeout_sec=settings.latex_compile_timeout_sec),
            jobs=JobPageFetcher.from_settings(settings),
        )
