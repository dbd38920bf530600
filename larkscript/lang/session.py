"""Session control for the lark language: ties lexing, parsing, evaluation and the module system together, either for a
single run over a source string (interpret/run) or for a file or command-line session (Session).
"""

import os
import random
import sys
from contextlib import contextmanager
from dataclasses import replace

from larkscript.grammar.parser import BLOCK_OPENERS, parse
from larkscript.lang.error import GenericException
from larkscript.lang.library import build_libraries
from larkscript.lang.modules import ModuleSystem, SourceDirectory
from larkscript.pure.evaluator import Evaluator, ReturnSignal
from larkscript.pure.lexical import TokenKind, tokenize
from larkscript.pure.values import Environment


MAIN_FILE = "main.lark"  # name errors in an unnamed program are attributed to
RECURSION_LIMIT = 20000  # python frames; a lark call takes about ten of them


class RunState:
    """State of one program run: the module system (with its cache) and the output lines printed so far."""

    def __init__(self, modules):
        self.modules = modules
        self.output = []

    def emit(self, line):
        self.output.append(line)

    def joined(self):
        return "\n".join(self.output)


@contextmanager
def recursion_limit(limit=RECURSION_LIMIT):
    """Raises the interpreter's recursion limit to at least limit for the duration of a run."""
    previous = sys.getrecursionlimit()
    sys.setrecursionlimit(max(previous, limit))
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


def run(program, files=None, libraries=None, path=MAIN_FILE, source=None):
    """Executes program against a fresh global environment and returns its printed output joined by newlines. files
    maps "NAME.lark" to source text for imports; libraries defaults to build_libraries(). A top-level return ends the
    run and its value is discarded.
    """
    state = RunState(ModuleSystem(libraries if libraries is not None else build_libraries(), files))
    try:
        with recursion_limit():
            Evaluator(state).execute_statements(program.statements, Environment(location=(path, source)))
    except ReturnSignal:
        pass
    except GenericException as error:
        raise error.locate(path, source)
    return state.joined()


def interpret(source, files=None, libraries=None, path=MAIN_FILE):
    """Tokenizes, parses and runs source. See run."""
    try:
        program = parse(tokenize(source))
    except GenericException as error:
        raise error.locate(path, source)
    return run(program, files, libraries, path, source)


class Session:
    """Governs a lark session: one global environment and run state shared by everything added to it."""
    SH_FILE = "<in>"  # command-line interpreter filename

    def __init__(self, error_handler, path, search_path=None, cmd_line=False, seed=None, reader=None):
        self.error_handler = error_handler

        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode
        self.source = ""          # everything added so far, so error offsets can be located

        if search_path is None:
            search_path = os.getcwd() if path == Session.SH_FILE else os.path.dirname(os.path.abspath(path))

        libraries = build_libraries(rng=random.Random(seed), reader=reader)
        self.state = RunState(ModuleSystem(libraries, SourceDirectory(search_path)))
        self.evaluator = Evaluator(self.state)
        self.globals = Environment(location=(path, self.source))

        self.to_exec = []  # statements added but not yet run
        self.results = []  # output lines not yet popped

        if self.cmd_line:
            self.error_handler.fatal = False

        if path != Session.SH_FILE:
            try:
                with open(path, "r", encoding="utf-8") as file:
                    source = file.read()
            except OSError:
                raise GenericException("'{}' could not be opened", path, diagnosis=False) from None

            self.add(source)

        elif not cmd_line:
            raise GenericException("'<in>' is a reserved filename")

    @staticmethod
    def preprocess_line(line, add_to_prev=""):
        """Preprocesses a line from the command-line, prepending add_to_prev (an unfinished previous line). Returns the
        line and whether it opens more blocks than it closes, in which case a line continuation is necessary.
        """
        line = add_to_prev + "\n" + line if add_to_prev else line

        depth = 0
        for token in tokenize(line):
            if token.kind is TokenKind.KEYWORD and token.lexeme in BLOCK_OPENERS:
                depth += 1
            elif token.kind is TokenKind.KEYWORD and token.lexeme == "end":
                depth -= 1

        return line, depth > 0

    def add(self, source):
        """Parses source and queues its statements. Execution is delayed until run is called."""
        start = len(self.source)
        self.source += source + "\n"
        self.globals.location = (self.path, self.source)
        self.error_handler.register_file(self.path, self.source)

        # offsets relative to the whole session
        tokens = [replace(token, offset=token.offset + start) for token in tokenize(source)]

        try:
            program = parse(tokens)
        except GenericException as error:
            raise error.locate(self.path, self.source)
        self.to_exec.extend(program.statements)

    def run(self):
        """Runs queued statements against the session's globals. Printed lines are collected in self.results. Raises
        any errors that are encountered; in command-line mode the failed statements are discarded.
        """
        start = len(self.state.output)
        try:
            with recursion_limit():
                self.evaluator.execute_statements(self.to_exec, self.globals)
        except ReturnSignal:
            self.error_handler.warn("'return' outside a function ended the program", diagnosis=False)
        except GenericException as error:
            raise error.locate(self.path, self.source)
        finally:
            self.to_exec = []
            self.results.extend(self.state.output[start:])

        return self.results

    def pop(self):
        """Returns and clears the output lines collected so far."""
        results, self.results = self.results, []
        return results
