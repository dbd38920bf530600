"""Uses the lark language implementation to interpret .lark files or run in command-line mode. Also uses error handling
context manager. Called from the lark console script.
"""

import argparse
import logging
import sys

from larkscript.lang.error import ErrorHandler
from larkscript.lang.session import Session
from larkscript.lang.shell import Shell


def main():
    """Runs lark interpreter. Called from lark console script."""
    assert sys.version_info >= (3, 11), "lark cannot be run with python < 3.11"

    with ErrorHandler() as error_handler:
        parser = argparse.ArgumentParser(prog="lark")
        parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
        parser.add_argument("--path", help="directory searched for imported .lark modules "
                                           "(default: the file's directory, or the current directory)")
        parser.add_argument("--seed", type=int, help="seed for the random library")
        parser.add_argument("--verbose", action="store_true", help="log module resolution")
        args = parser.parse_args()

        if args.verbose:
            logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

        if args.file is not None:
            sess = Session(error_handler, args.file, args.path, cmd_line=False, seed=args.seed)
            try:
                sess.run()
            finally:
                for result in sess.pop():  # lines printed before an error are still shown
                    print(result)

        else:
            Shell(Session(error_handler, Session.SH_FILE, args.path, cmd_line=True, seed=args.seed)).cmdloop()


if __name__ == "__main__":
    main()
