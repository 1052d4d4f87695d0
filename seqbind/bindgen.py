"""Command-line entry point: declaration model JSON -> binding source."""

from __future__ import annotations

import json
import logging
import sys

from .backend.go import DEFAULT_SEQ_IMPORT, emit_go
from .backend.objc import emit_objc_header, emit_objc_impl
from .errors import BindError
from .frontend import analyze
from .serialize import (
    ModelError,
    codes_to_dict,
    package_from_dict,
    package_to_dict,
    signatures_to_dict,
    types_to_dict,
)

LANGS: list[str] = ["go", "objc-h", "objc-m"]

PHASES: list[str] = ["model", "types", "signatures", "codes"]

USAGE: str = """\
seqbind [OPTIONS] [INPUT] [-o OUTPUT]

INPUT is the declaration model of one package as JSON (default: stdin).

Options:
  --lang LANG         Output: go (callee dispatcher), objc-h (caller header),
                      objc-m (caller implementation)
  --stop-at PHASE     Stop after phase and dump it as JSON: model, types,
                      signatures, codes
  --seq-import PATH   Import path of the Go seq runtime
  -o, --output FILE   Write output to FILE instead of stdout
  -v, --verbose       Log debug messages to stderr
  --help              Show this help message
"""


class Options:
    """Parsed command line."""

    def __init__(self) -> None:
        self.lang: str = "go"
        self.stop_at: str | None = None
        self.seq_import: str = DEFAULT_SEQ_IMPORT
        self.input_file: str | None = None
        self.output_file: str | None = None
        self.verbose: bool = False


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read source from file or stdin. Returns (source, exit_code) where exit_code 0 means OK."""
    if input_file is not None:
        try:
            with open(input_file, "rb") as f:
                raw = f.read()
        except OSError:
            print("error: cannot open '" + input_file + "'", file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    try:
        return (raw.decode("utf-8"), 0)
    except ValueError:
        print("error: invalid utf-8 in input", file=sys.stderr)
        return ("", 1)


def write_output(output: str, output_file: str | None) -> int:
    """Write output to file or stdout. Returns 0 on success, 1 on error."""
    if output_file is not None:
        try:
            with open(output_file, "w") as f:
                f.write(output)
        except OSError:
            print("error: cannot write '" + output_file + "'", file=sys.stderr)
            return 1
        return 0
    sys.stdout.write(output)
    return 0


def to_json(obj: object) -> str:
    return json.dumps(obj, indent=2) + "\n"


def _print_errors(errors: list[BindError]) -> None:
    for err in errors:
        print("error: " + str(err), file=sys.stderr)


def run_pipeline(source: str, opts: Options) -> tuple[int, str]:
    """Run the binding pipeline. Returns (exit_code, output)."""
    try:
        pkg = package_from_dict(json.loads(source))
    except json.JSONDecodeError as e:
        print("error:" + str(e.lineno) + ":" + str(e.colno) + ": " + e.msg, file=sys.stderr)
        return (1, "")
    except ModelError as e:
        print("error: " + str(e), file=sys.stderr)
        return (1, "")
    if opts.stop_at == "model":
        return (0, to_json(package_to_dict(pkg)))
    binding = analyze(pkg)
    if opts.stop_at == "types":
        return (0, to_json(types_to_dict(binding)))
    if opts.stop_at == "signatures":
        return (0, to_json(signatures_to_dict(binding)))
    if opts.stop_at == "codes":
        return (0, to_json(codes_to_dict(binding)))
    errors = binding.errors()
    if len(errors) > 0:
        _print_errors(errors)
        return (1, "")
    if opts.lang == "go":
        return (0, emit_go(binding, opts.seq_import))
    if opts.lang == "objc-h":
        return (0, emit_objc_header(binding))
    return (0, emit_objc_impl(binding))


def _value(args: list[str], i: int) -> str:
    if i + 1 >= len(args):
        print("error: " + args[i] + " requires an argument", file=sys.stderr)
        sys.exit(2)
    return args[i + 1]


def parse_args(args: list[str]) -> Options:
    """Parse command-line arguments. Exits with 2 on usage errors."""
    opts = Options()
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            sys.exit(0)
        elif arg == "--lang":
            opts.lang = _value(args, i)
            i += 2
        elif arg == "--stop-at":
            opts.stop_at = _value(args, i)
            i += 2
        elif arg == "--seq-import":
            opts.seq_import = _value(args, i)
            i += 2
        elif arg == "-o" or arg == "--output":
            opts.output_file = _value(args, i)
            i += 2
        elif arg == "-v" or arg == "--verbose":
            opts.verbose = True
            i += 1
        elif arg.startswith("-") and arg != "-":
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            sys.exit(2)
        else:
            if opts.input_file is not None:
                print("error: unexpected argument '" + arg + "'", file=sys.stderr)
                sys.exit(2)
            opts.input_file = None if arg == "-" else arg
            i += 1
    if opts.stop_at is not None and opts.stop_at not in PHASES:
        print("error: unknown phase '" + opts.stop_at + "'", file=sys.stderr)
        sys.exit(2)
    if opts.lang not in LANGS:
        print("error: unknown language '" + opts.lang + "'", file=sys.stderr)
        sys.exit(2)
    return opts


def main() -> int:
    """Main entry point."""
    opts = parse_args(sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if opts.verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
    )
    source, err = read_source(opts.input_file)
    if err != 0:
        return err
    if len(source.strip()) == 0:
        print("error: no input provided", file=sys.stderr)
        return 2
    exit_code, output = run_pipeline(source, opts)
    if exit_code != 0:
        return exit_code
    return write_output(output, opts.output_file)


if __name__ == "__main__":
    sys.exit(main())
