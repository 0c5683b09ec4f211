"""
Compile Solidity sources read from a project directory.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from .settings import HelperSettings
from .solc_manager import ImportCallback, SolcCompiler, default_compiler

logger = logging.getLogger(__name__)


class CompilationError(Exception):
    """Raised when the compiler output carries an ``errors`` list."""

    def __init__(self, errors: list) -> None:
        self.errors = errors
        messages = [
            err.get("formattedMessage", str(err)) if isinstance(err, dict) else str(err)
            for err in errors
        ]
        super().__init__("\n".join(messages))


def make_import_resolver(directory: Union[str, Path]) -> ImportCallback:
    """Build an import callback that reads ``directory/path``.

    Failures are returned as ``{"error": ...}`` and never raised.
    """
    base = Path(directory)

    def find_imports(path: str) -> dict:
        try:
            return {"contents": (base / path).read_text(encoding="utf-8")}
        except (OSError, UnicodeDecodeError) as e:
            return {"error": str(e)}

    return find_imports


def compile_sources(
    directory: Union[str, Path],
    files: List[str],
    compiler: Optional[SolcCompiler] = None,
    settings: Optional[HelperSettings] = None,
) -> dict:
    """Compile ``files`` found under ``directory``.

    Args:
        directory: Base directory for sources and imports.
        files: File names relative to ``directory``.
        compiler: Compiler handle; the process default when omitted.
        settings: Optimiser settings; defaults are used when omitted.

    Returns:
        The full compiler output (contracts, sources and metadata).

    Raises:
        CompilationError: the output contains ``errors``.
    """
    compiler = compiler or default_compiler()
    settings = settings or HelperSettings()
    base = Path(directory)

    logger.info(f"Compiling files: {json.dumps(files)}")
    sources = {name: (base / name).read_text(encoding="utf-8") for name in files}

    output = compiler.compile(
        sources,
        make_import_resolver(base),
        optimize=settings.optimize,
        runs=settings.optimizer_runs,
    )

    if "errors" in output:
        raise CompilationError(output["errors"])

    logger.info("Compilation success")
    return output
