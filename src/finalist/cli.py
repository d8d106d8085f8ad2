"""finalist CLI: report locals and parameters that can be final."""

from __future__ import annotations

import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .analysis import Graph, VerdictCache, analyze_module, dump
from .config import options_from_pragmas
from .lang import ParseError, TokenizeError, parse
from .report import diagnostics, format_diagnostic, format_verdict

LOG = logging.getLogger(__name__)

USAGE: str = """\
finalist [OPTIONS] FILE...

Report local variables and parameters that could be declared final.

Options:
  --no-locals        Do not report local variables
  --no-parameters    Do not report parameters
  --all              Print every verdict, including the reason when negative
  --dump-cfg         Print the control-flow graph of each analyzed body
  --jobs N           Analyze up to N files in parallel
  -v, --verbose      Log analysis details to stderr
  -h, --help         Show this help message
"""


@dataclass
class Args:
    files: list[str] = field(default_factory=list)
    no_locals: bool = False
    no_parameters: bool = False
    show_all: bool = False
    dump_cfg: bool = False
    jobs: int = 1
    verbose: bool = False


@dataclass
class FileResult:
    """Everything one file contributes to the output."""

    path: str
    out: list[str] = field(default_factory=list)
    err: list[str] = field(default_factory=list)
    exit_code: int = 0


def parse_args(argv: list[str]) -> tuple[Args | None, int]:
    """Parse command-line arguments. Returns (args, exit code); args is None to stop."""
    args = Args()
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return None, 0
        elif arg == "--no-locals":
            args.no_locals = True
            i += 1
        elif arg == "--no-parameters":
            args.no_parameters = True
            i += 1
        elif arg == "--all":
            args.show_all = True
            i += 1
        elif arg == "--dump-cfg":
            args.dump_cfg = True
            i += 1
        elif arg == "--verbose" or arg == "-v":
            args.verbose = True
            i += 1
        elif arg == "--jobs":
            if i + 1 >= len(argv):
                print("finalist: --jobs requires an argument", file=sys.stderr)
                return None, 2
            value = argv[i + 1]
            if not value.isdigit() or int(value) < 1:
                print("finalist: --jobs expects a positive integer", file=sys.stderr)
                return None, 2
            args.jobs = int(value)
            i += 2
        elif arg.startswith("-") and arg != "-":
            print("finalist: unknown flag '" + arg + "'", file=sys.stderr)
            return None, 2
        else:
            args.files.append(arg)
            i += 1
    if not args.files:
        print("finalist: missing file argument", file=sys.stderr)
        return None, 2
    return args, 0


def read_source(path: str) -> tuple[str | None, str]:
    """Read a UTF-8 source file. Returns (source, error message)."""
    try:
        if path == "-":
            raw = sys.stdin.buffer.read()
        else:
            with open(path, "rb") as f:
                raw = f.read()
    except FileNotFoundError:
        return None, path + ": No such file or directory"
    except OSError as e:
        return None, path + ": " + str(e)
    try:
        return raw.decode("utf-8"), ""
    except ValueError:
        return None, path + ": invalid utf-8"


def analyze_file(path: str, args: Args, cache: VerdictCache | None) -> FileResult:
    result = FileResult(path)
    source, err = read_source(path)
    if source is None:
        result.err.append("finalist: " + err)
        result.exit_code = 1
        return result
    try:
        module = parse(source)
    except (TokenizeError, ParseError) as e:
        result.err.append("finalist: " + path + ": parse error: " + str(e))
        result.exit_code = 1
        return result
    options = options_from_pragmas(source).with_overrides(args.no_locals, args.no_parameters)
    graphs: list[Graph] = []
    on_graph = graphs.append if args.dump_cfg else None
    report = analyze_module(module, options, cache=cache, on_graph=on_graph)
    for graph in graphs:
        result.out.append(dump(graph).rstrip("\n"))
    for owner in report.failed:
        result.err.append("finalist: " + path + ": skipped " + owner)
    if args.show_all:
        for var, verdict in report.verdicts.items():
            result.out.append(format_verdict(path, var, verdict))
    else:
        for diag in diagnostics(report.verdicts, options):
            result.out.append(format_diagnostic(path, diag))
    return result


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    args, code = parse_args(argv if argv is not None else sys.argv[1:])
    if args is None:
        return code
    _configure_logging(args.verbose)
    # Graphs are only produced on a cache miss, so dumping bypasses the cache.
    cache = None if args.dump_cfg else VerdictCache()
    if args.jobs > 1 and len(args.files) > 1:
        with ThreadPoolExecutor(max_workers=args.jobs) as pool:
            results = list(pool.map(lambda p: analyze_file(p, args, cache), args.files))
    else:
        results = [analyze_file(p, args, cache) for p in args.files]
    exit_code = 0
    for result in results:
        for line in result.out:
            print(line)
        for line in result.err:
            print(line, file=sys.stderr)
        exit_code = max(exit_code, result.exit_code)
    if cache is not None:
        LOG.debug("cache: %d hits, %d misses", cache.hits, cache.misses)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
