"""PLC CLI — check and run .plc files."""

from __future__ import annotations

import logging
import sys

from .analyzer import Analyzer
from .emit import to_source
from .errors import AnalysisError, ParseError, PlcError, TokenizeError, UndefinedName
from .interpreter import Interpreter
from .parse import parse
from .values import VInt

logger = logging.getLogger(__name__)


USAGE: str = """\
plc [OPTIONS] FILE

Check and run a PLC (.plc) program. The exit status is main's Integer result
modulo 256 (so -1 exits 255); 1 is also the status of any reported error.

Options:
  --check      Analyze only; do not run
  --no-check   Run without analyzing first
  --emit       Analyze, then print the program re-rendered as source
  --verbose    Log pass progress to stderr
  --help       Show this help message
"""


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    check_only = False
    no_check = False
    emit = False
    verbose = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        elif arg == "--check":
            check_only = True
            i += 1
        elif arg == "--no-check":
            no_check = True
            i += 1
        elif arg == "--emit":
            emit = True
            i += 1
        elif arg == "--verbose":
            verbose = True
            i += 1
        elif arg.startswith("-"):
            print("plc: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print("plc: unexpected argument '" + arg + "'", file=sys.stderr)
            return 2
    if filepath == "":
        print("plc: missing file argument", file=sys.stderr)
        return 2
    if no_check and (check_only or emit):
        print("plc: --no-check cannot be combined with --check or --emit", file=sys.stderr)
        return 2

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, stream=sys.stderr, format="%(name)s: %(message)s"
        )

    try:
        with open(filepath, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("plc: " + filepath + ": No such file or directory", file=sys.stderr)
        return 1
    except OSError as e:
        print("plc: " + filepath + ": " + str(e), file=sys.stderr)
        return 1
    try:
        text = raw.decode("utf-8")
    except ValueError:
        print("plc: " + filepath + ": invalid utf-8", file=sys.stderr)
        return 1

    logger.debug("parsing %s", filepath)
    try:
        source = parse(text)
    except (TokenizeError, ParseError) as e:
        print("plc: syntax error: " + str(e), file=sys.stderr)
        return 1

    if not no_check:
        logger.debug("analyzing %s", filepath)
        try:
            Analyzer().check_source(source)
        except (AnalysisError, UndefinedName) as e:
            print("plc: analysis error: " + str(e), file=sys.stderr)
            return 1
        if check_only:
            return 0
        if emit:
            sys.stdout.write(to_source(source))
            return 0

    logger.debug("running %s", filepath)
    interp = Interpreter()
    try:
        value = interp.run_source(source)
    except PlcError as e:
        _write_output(interp.output)
        print("plc: runtime error: " + str(e), file=sys.stderr)
        return 1
    _write_output(interp.output)
    if isinstance(value, VInt):
        # Process exit statuses are one byte
        return value.value & 0xFF
    return 0


def _write_output(lines: list[str]) -> None:
    for line in lines:
        sys.stdout.write(line + "\n")
    sys.stdout.flush()


if __name__ == "__main__":
    sys.exit(main())
