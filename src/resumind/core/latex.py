from __future__ import annotations

import asyncio
import logging

import requests

from resumind.core.deadline import race_deadline
from resumind.errors import CompileUnavailableError, InputValidationError, LatexCompileError

logger = logging.getLogger(__name__)


def validate_latex(latex: str) -> None:
    if "\\documentclass" not in latex:
        raise InputValidationError("Missing \\documentclass")
    if "\\begin{document}" not in latex or "\\end{document}" not in latex:
        raise InputValidationError("Missing document environment")


class LatexCompiler:
    """Thin client for a remote pdflatex service. Returns PDF bytes."""

    def __init__(self, compile_url: str, *, timeout_sec: float = 15.0):
        self.compile_url = compile_url
        self.timeout_sec = timeout_sec

    async def compile(self, latex: str) -> bytes:
        validate_latex(latex)
        return await race_deadline(
            asyncio.to_thread(self._compile_sync, latex),
            self.timeout_sec,
            self._timed_out,
        )

    def _timed_out(self) -> CompileUnavailableError:
        logger.warning("LaTeX compile exceeded %.1fs deadline", self.timeout_sec)
        return CompileUnavailableError("Compilation timed out")

    def _compile_sync(self, latex: str) -> bytes:
        try:
            response = requests.get(
                self.compile_url,
                params={"text": latex, "command": "pdflatex"},
                timeout=self.timeout_sec,
            )
        except requests.Timeout as exc:
            raise CompileUnavailableError("Compilation timed out") from exc
        except requests.RequestException as exc:
            logger.warning("LaTeX compile service unreachable: %s", exc)
            raise CompileUnavailableError() from exc

        if not response.ok:
            logger.info("LaTeX compile failed status=%s", response.status_code)
            raise LatexCompileError(details=response.text)
        return response.content
