from argparse import ArgumentParser
from pathlib import Path
import logging
import sys

from xcodespec.details.loader import load_project
from xcodespec.details.tools.generate import generate_main
from xcodespec.details.tools.graph import graph_main
from xcodespec.details.tools.validate import validate_main
from xcodespec.errors import ProjectGenerationError


def main(argv=None):
    COMMANDS = {
        "generate": generate_main,
        "graph": graph_main,
        "validate": validate_main,
    }
    # parse common arguments...
    parser = ArgumentParser(prog="xcodespec")
    parser.add_argument("command", choices=COMMANDS.keys())
    parser.add_argument("--project-root", type=Path, default=Path("."))
    parser.add_argument("--output", type=str, default=None)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        project = load_project(args.project_root)
        exit_code = COMMANDS[args.command](project=project, output=args.output)
    except ProjectGenerationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        exit_code = 1
    if exit_code is not None:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
