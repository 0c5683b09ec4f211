"""
Solidity Compiler Management

Reports the process-default compiler and fetches version-pinned compiler
binaries from the public solc binary host, caching them on disk so each
version is downloaded at most once.
"""

import logging
import posixpath
import re
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import requests
import solcx
from solcx.exceptions import SolcError

from .settings import HelperSettings
from .solc_cache import CompilerCache, FileCompilerCache

logger = logging.getLogger(__name__)

# Callback handed to the compiler: relative import path -> {"contents": ...}
# or {"error": ...}.
ImportCallback = Callable[[str], Dict[str, str]]

_IMPORT_RE = re.compile(
    r"""^\s*import\s+(?:[^;'"]*?\s+from\s+)?["']([^"']+)["']""",
    re.MULTILINE,
)


class SolcFetchError(Exception):
    """Raised when a compiler binary cannot be downloaded."""


def get_solc_version() -> str:
    """Return the version string of the process-default compiler."""
    return str(solcx.get_solc_version(with_commit_hash=True))


def _platform_name(platform: Optional[str] = None) -> str:
    platform = platform or sys.platform
    if platform.startswith("linux"):
        return "linux-amd64"
    if platform == "darwin":
        return "macosx-amd64"
    if platform in ("win32", "cygwin"):
        return "windows-amd64"
    raise OSError(f"Unsupported platform for solc binaries: {platform}")


def binary_url(version: str, template: str, platform: Optional[str] = None) -> str:
    """Build the download URL of a compiler binary.

    Args:
        version: Full compiler version, e.g. ``v0.8.20+commit.a1b79de6``.
        template: URL template with ``{platform}`` and ``{version}`` fields.
        platform: ``sys.platform`` style name; defaults to the running one.
    """
    name = _platform_name(platform)
    url = template.format(platform=name, version=version)
    if name.startswith("windows") and not url.endswith(".exe"):
        url += ".exe"
    return url


def _normalise_import(importer: str, path: str) -> str:
    """Resolve ``./`` and ``../`` imports against the importing unit name."""
    if path.startswith("./") or path.startswith("../"):
        return posixpath.normpath(posixpath.join(posixpath.dirname(importer), path))
    return path


def _find_imports(source: str) -> List[str]:
    return _IMPORT_RE.findall(source)


class SolcCompiler:
    """A loaded compiler, either version-pinned or the process default."""

    def __init__(self, version: Optional[str] = None, binary: Optional[Path] = None) -> None:
        self.version = version
        self.binary = binary

    def __repr__(self) -> str:
        return f"SolcCompiler(version={self.version!r}, binary={self.binary!r})"

    def resolve_sources(
        self,
        sources: Dict[str, str],
        import_callback: Optional[ImportCallback] = None,
    ) -> Dict[str, Dict[str, str]]:
        """Build the standard-JSON ``sources`` map, following imports.

        Imports not already present are requested from ``import_callback``.
        Failed lookups are left out so the compiler reports them itself.
        """
        resolved = {name: {"content": content} for name, content in sources.items()}
        pending = list(sources.items())
        requested = set(sources)

        while pending:
            unit, content = pending.pop()
            for raw in _find_imports(content):
                path = _normalise_import(unit, raw)
                if path in requested:
                    continue
                requested.add(path)
                if import_callback is None:
                    continue
                found = import_callback(path)
                if "contents" in found:
                    resolved[path] = {"content": found["contents"]}
                    pending.append((path, found["contents"]))
                else:
                    logger.warning(f"Could not resolve import {path}: {found.get('error')}")

        return resolved

    def compile(
        self,
        sources: Dict[str, str],
        import_callback: Optional[ImportCallback] = None,
        optimize: bool = True,
        runs: int = 200,
    ) -> dict:
        """Compile ``{file name: source}`` and return the compiler output.

        Compile errors are reported in the output's ``errors`` list rather
        than raised.
        """
        input_json = {
            "language": "Solidity",
            "sources": self.resolve_sources(sources, import_callback),
            "settings": {
                "optimizer": {"enabled": optimize, "runs": runs},
                "outputSelection": {
                    "*": {
                        "*": [
                            "abi",
                            "metadata",
                            "evm.bytecode.object",
                            "evm.deployedBytecode.object",
                            "evm.methodIdentifiers",
                        ]
                    }
                },
            },
        }

        try:
            return solcx.compile_standard(input_json, solc_binary=self.binary)
        except SolcError as e:
            error_dict = getattr(e, "error_dict", None)
            if not error_dict:
                raise
            return {"errors": error_dict}


def default_compiler() -> SolcCompiler:
    """Return a handle on the process-default compiler."""
    return SolcCompiler()


def get_specific_solc(
    version: str,
    cache: Optional[CompilerCache] = None,
    settings: Optional[HelperSettings] = None,
    session: Optional[requests.Session] = None,
) -> SolcCompiler:
    """Return a compiler handle for ``version``, downloading it if needed.

    Args:
        version: Full compiler version, e.g. ``v0.8.20+commit.a1b79de6``.
        cache: Artifact cache. Defaults to a file cache in ``settings.cache_dir``.
        settings: Helper settings; defaults are used when omitted.
        session: requests session used for the download.

    Returns:
        SolcCompiler bound to the cached binary.

    Raises:
        SolcFetchError: the binary host answered with a non-200 status or
            the request failed.
    """
    settings = settings or HelperSettings()
    cache = cache or FileCompilerCache(settings.cache_dir)

    cached = cache.get(version)
    if cached is not None:
        return SolcCompiler(version=version, binary=cached)

    url = binary_url(version, settings.binary_url_template)
    http = session or requests
    logger.info(f"Downloading solc {version} from {url}")

    try:
        response = http.get(url, timeout=settings.fetch_timeout)
    except requests.RequestException as e:
        raise SolcFetchError(f"Error getting solc: {e}") from e

    if response.status_code != 200:
        raise SolcFetchError(f"Error retrieving binary: {response.reason}")

    path = cache.put(version, response.content)
    return SolcCompiler(version=version, binary=path)
