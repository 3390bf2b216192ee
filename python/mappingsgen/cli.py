"""Generate the mappings matrix of one version from local mappings files."""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

from rich.logging import RichHandler

from . import MappingsError
from .cache import MappingsCache
from .generate import write_version
from .mappings import Mappings
from .providers import mcp_mappings, read_mappings, read_mcp_names

logger = logging.getLogger(__name__)

def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )

def _source(text: str) -> Tuple[str, Path]:
    namespace, separator, path = text.partition("=")
    if not separator or not namespace or not path:
        raise argparse.ArgumentTypeError(f"Expected NAMESPACE=PATH, got {text!r}")
    return namespace, Path(path)

def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(prog="mappingsgen")
    parser.add_argument("--version", required=True, help="Version label of the output folder.")
    parser.add_argument("--output", default="mappings", help="Root folder for generated mappings.")
    parser.add_argument("--cache", help="Cache file reused between runs.")
    parser.add_argument("--mcp-names", help="MCP export (zip or folder) with fields.csv and methods.csv.")
    parser.add_argument("--mcp-base", default="srg", help="Namespace the MCP names are applied to.")
    parser.add_argument("--verbose", action="store_true", help="Log debug messages.")
    parser.add_argument(
        "sources", nargs="+", type=_source, metavar="NAMESPACE=PATH",
        help="obf->namespace mappings (.srg, .csrg, .tsrg, .tiny or .tiny.gz).",
    )
    return parser

def _cache_key(namespace: str, path: Path) -> str:
    return f"{namespace}={path.resolve()}@{path.stat().st_mtime_ns}"

def load_sources(args: argparse.Namespace, cache: MappingsCache) -> List[Tuple[str, Mappings]]:
    named_mappings = []
    for namespace, path in args.sources:
        mappings = cache.get_mappings(
            _cache_key(namespace, path),
            lambda: read_mappings(path, namespace)
        )
        logger.info(
            "%s: parsed class=%d field=%d method=%d",
            namespace, len(mappings.classes), len(mappings.fields), len(mappings.methods)
        )
        named_mappings.append((namespace, mappings))
    if args.mcp_names:
        by_namespace = dict(named_mappings)
        try:
            obf2srg = by_namespace[args.mcp_base]
        except KeyError:
            raise ValueError(f"--mcp-names needs a {args.mcp_base} source") from None
        field_key, method_key = f"mcp-fields={args.mcp_names}", f"mcp-methods={args.mcp_names}"
        if field_key not in cache.names or method_key not in cache.names:
            cache.names[field_key], cache.names[method_key] = read_mcp_names(args.mcp_names)
        named_mappings.append(("mcp", mcp_mappings(obf2srg, cache.names[field_key], cache.names[method_key])))
    return named_mappings

def run(argv: Optional[List[str]] = None) -> int:
    """Run the generator.

    Args:
        argv: CLI arguments.

    Returns:
        Exit code.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 2
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    started = time.monotonic()
    cache = MappingsCache.load(args.cache) if args.cache else MappingsCache()
    try:
        named_mappings = load_sources(args, cache)
        output_folder = write_version(args.output, args.version, named_mappings)
    except (MappingsError, OSError, ValueError) as exc:
        logger.error("Generation failed (error=%s)", exc)
        return 2
    if args.cache:
        cache.save(args.cache)
    elapsed = time.monotonic() - started
    logger.info("Done. Wrote %s in %.1fs", output_folder, elapsed)
    return 0

def main() -> None:
    configure_logging()
    sys.exit(run())
