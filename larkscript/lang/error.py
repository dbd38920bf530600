"""Error handling for the lark language. Only GenericExceptions should be encountered during running: if another type of
error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

There is no in-language exception handling, so every GenericException ends the run that raised it.
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error/warning message so that it can be used to throw a lark error/warning. exprs are the offending
    snippets that fill the '{}' slots of msg; offset is the position of the first one in its source, if known.
    """
    kind = "Error"

    def __init__(self, msg, exprs=None, offset=None, diagnosis=True, internal=False):
        """Parses args for GenericException or warning."""
        if exprs is None:
            exprs = ""
        if isinstance(exprs, str):
            exprs = [exprs]

        self.msg = msg.format(*(colored(expr, attrs=["bold"]) for expr in exprs))  # color expr snippets
        self.expr = exprs[0]  # exprs[0] should be the offending expr that caused the error
        self.offset = offset

        self.diagnosis = diagnosis
        self.internal = internal

        self.path = None    # set by locate, once the failing unit is known
        self.source = None

        super().__init__(self.msg)

    def locate(self, path, source):
        """Attaches the file the error came from. The innermost unit wins, so this is a no-op once located."""
        if self.path is None:
            self.path = path
            self.source = source
        return self

    @property
    def position(self):
        """(line text, line number, column) of self.offset in self.source, or None if the error has no location."""
        if self.source is None or self.offset is None:
            return None

        line_start = self.source.rfind("\n", 0, self.offset) + 1
        line_end = self.source.find("\n", self.offset)
        if line_end == -1:
            line_end = len(self.source)

        line_num = self.source.count("\n", 0, self.offset) + 1
        return self.source[line_start:line_end], line_num, self.offset - line_start

    def __str__(self):
        return f"{self.kind}: {self.msg}"


class LarkSyntaxError(GenericException):
    """Unexpected or missing token, or unexpected end of input."""
    kind = "SyntaxError"


class LarkNameError(GenericException):
    """Undefined identifier or unknown module member."""
    kind = "NameError"


class LarkTypeError(GenericException):
    """Calling a non-callable, or invalid operand types for an operator."""
    kind = "TypeError"


class LarkModuleNotFoundError(GenericException):
    """Import of a name that is neither a builtin library nor a source file."""
    kind = "ModuleNotFoundError"

    def __init__(self, name, available, offset=None):
        self.name = name
        self.available = list(available)

        msg = "module '{}' not found. Available built-in modules: " + ", ".join(self.available)
        super().__init__(msg, name, offset=offset)


class ErrorHandler:
    """Context manager that will silently suppress Python errors and raise custom lark errors/warnings."""
    ERROR = "red"
    WARNING = "magenta"

    def __init__(self, fatal=True, stream=None):
        self.fatal = fatal
        self.stream = stream
        self.traceback = {}

    def register_file(self, path, source=None):
        """Registers path in traceback, along with its source if it has been read."""
        self.traceback[path] = source

    def _print(self, text):
        print(text, file=self.stream if self.stream is not None else sys.stdout)

    @staticmethod
    def diagnose(error, warning=False):
        """Returns offending line of error with the offending expr highlighted and underlined."""
        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR
        line, __, col = error.position

        end = col + max(len(error.expr), 1)

        diagnosis = "  " + line[:col]
        diagnosis += colored(line[col:end], color, attrs=["bold"])
        diagnosis += line[end:] + "\n"

        diagnosis += "  " + " " * col
        diagnosis += colored("^" + "~" * (end - col - 1), color, attrs=["bold"])

        return diagnosis

    def warn(self, *args, **kwargs):
        """Generates and prints runtime warning message based on args."""
        error = GenericException(*args, **kwargs)

        if self.traceback:
            path = next(iter(self.traceback))
            error.locate(path, self.traceback[path])

        header = f"{error.path}: " if error.path else ""
        if error.position:
            __, line_num, col = error.position
            header = f"{error.path}:{line_num}:{col + 1}: "

        error_msg = colored(header, attrs=["bold"])
        error_msg += colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + error.msg

        self._print(error_msg)

        if not error.internal and error.diagnosis and error.position:
            self._print(ErrorHandler.diagnose(error, warning=True))

    def throw(self, error):
        """Throws error. error must be a GenericException; if it has not been located, it is attributed to the first
        registered file.
        """
        if self.traceback and error.path is None:
            path = next(iter(self.traceback))
            error.locate(path, self.traceback[path])

        error_msg = ""
        if error.position:
            line, line_num, __ = error.position
            error_msg += f"  File '{error.path}', line {line_num}:\n"
            error_msg += f"    {line.strip()}\n"

        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        error_msg += colored("error: ", ErrorHandler.ERROR, attrs=["bold"]) + str(error)
        self._print(error_msg)

        if not error.internal and error.diagnosis and error.position:
            self._print(ErrorHandler.diagnose(error))

        if self.fatal:
            sys.exit(1)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt"))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(GenericException("maximum recursion depth exceeded"))
        elif exc_type is not None and issubclass(exc_type, GenericException):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException("unknown error: '{}'", f"{exc_type.__name__}: {exc_val}", internal=True))
            do_exit = True

        return not do_exit
