"""Runtime values of the lark language and the semantics of its operators.

Values are plain Python objects wherever Python has a faithful one:

```
Number          int | float (bool is not a number)
String          str
Array           list, mutable and shared by reference
Boolean         bool, produced by comparisons and some library members
Unit            None, the result of a function that returns nothing
Function        Function (interpreted, closes over its defining Environment)
NativeFunction  NativeFunction (host callable)
Module          Module (name -> value bindings)
```

Function and NativeFunction are both callable through invoke(args, evaluator).
"""

import math
import operator
from functools import partial

from larkscript.lang.error import GenericException, LarkNameError, LarkTypeError


class Environment:
    """Name -> value bindings. Lookups fall back to the parent environment; writes always go to this one. location is
    the (path, source) of the unit the environment belongs to, inherited from the parent.
    """

    def __init__(self, parent=None, location=None):
        self.bindings = {}
        self.parent = parent
        self.location = parent.location if parent is not None else location

    def lookup(self, name, offset=None):
        env = self
        while env is not None:
            if name in env.bindings:
                return env.bindings[name]
            env = env.parent
        raise LarkNameError("'{}' is not defined", name, offset=offset)

    def assign(self, name, value):
        self.bindings[name] = value


class Function:
    """Function declared in lark source. closure is the environment the declaration was executed in."""

    def __init__(self, name, params, body, closure):
        self.name = name
        self.params = params
        self.body = body
        self.closure = closure

    def invoke(self, args, evaluator):
        """Binds args positionally in a new environment parented on the closure and runs the body in it. Missing
        arguments are bound to None; extra ones are ignored. Errors raised by the body are located in the unit the
        function was declared in.
        """
        local = Environment(self.closure)
        for idx, param in enumerate(self.params):
            local.assign(param, args[idx] if idx < len(args) else None)

        try:
            return evaluator.execute_body(self.body, local)
        except GenericException as error:
            if local.location is not None:
                error.locate(*local.location)
            raise

    def __repr__(self):
        return f"<fun {self.name}>"


class NativeFunction:
    """Host callable exposed to lark code. Receives already evaluated arguments and returns a value."""
    HOST_ERRORS = (TypeError, ValueError, IndexError, KeyError, AttributeError)

    def __init__(self, name, fn):
        self.name = name
        self.fn = fn

    def invoke(self, args, evaluator=None):
        try:
            return self.fn(*args)
        except GenericException:
            raise
        except NativeFunction.HOST_ERRORS as exc:
            raise LarkTypeError("native function '{}' failed: {}", (self.name, str(exc))) from exc

    def __repr__(self):
        return f"<native fun {self.name}>"


class Module:
    """Exported bindings of a builtin library or a source file."""

    def __init__(self, name, bindings, builtin=False):
        self.name = name
        self.bindings = bindings
        self.builtin = builtin

    def member(self, name, offset=None):
        try:
            return self.bindings[name]
        except KeyError:
            raise LarkNameError("module '{}' has no member '{}'", (self.name, name), offset=offset) from None

    def __repr__(self):
        return f"<module {self.name}>"


def is_callable(value):
    return isinstance(value, (Function, NativeFunction))


def is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_truthy(value):
    """Zero, NaN, the empty string, false and unit are falsy; everything else (including empty arrays) is truthy."""
    if value is None or value is False:
        return False
    if is_number(value):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def represent_number(value):
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))

    text = repr(value)
    if "e" in text:
        mantissa, exponent = text.split("e")
        exponent = int(exponent)
        if -7 < exponent < 0:  # positional down to 1e-6, like the host number formatting
            sign, digits = ("-", mantissa[1:]) if mantissa.startswith("-") else ("", mantissa)
            return sign + "0." + "0" * (-exponent - 1) + digits.replace(".", "")
        text = f"{mantissa}e{'+' if exponent > 0 else '-'}{abs(exponent)}"
    return text


def represent(value):
    """Textual form of value, as printed by print and used by string concatenation."""
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return represent_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "[" + ", ".join(represent(item) for item in value) + "]"
    return repr(value)


def type_name(value):
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    return {str: "string", list: "array", Function: "function", NativeFunction: "function",
            Module: "module"}.get(type(value), type(value).__name__)


def _operand_error(op, left, right, offset):
    return LarkTypeError("unsupported operand types for '{}': " + f"{type_name(left)} and {type_name(right)}",
                         op, offset=offset)


def add(left, right, offset=None):
    """Numeric addition, or concatenation if either side is a string."""
    if isinstance(left, str) or isinstance(right, str):
        return represent(left) + represent(right)
    if is_number(left) and is_number(right):
        return left + right
    raise _operand_error("+", left, right, offset)


def subtract(left, right, offset=None):
    if is_number(left) and is_number(right):
        return left - right
    raise _operand_error("-", left, right, offset)


def multiply(left, right, offset=None):
    if is_number(left) and is_number(right):
        return left * right
    raise _operand_error("*", left, right, offset)


def divide(left, right, offset=None):
    """Floating-point division: dividing by zero gives +-Infinity, or NaN for 0/0."""
    if not (is_number(left) and is_number(right)):
        raise _operand_error("/", left, right, offset)

    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def equals(left, right):
    """Numeric equality for numbers, structural equality for everything else."""
    if is_number(left) and is_number(right):
        return left == right
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(equals(a, b) for a, b in zip(left, right))
    if type(left) is not type(right):
        return False
    if isinstance(left, (Function, NativeFunction, Module)):
        return left is right
    return left == right


ORDERINGS = {
    "<": operator.lt,
    ">": operator.gt,
    "<=": operator.le,
    ">=": operator.ge,
}


def compare(op, left, right, offset=None):
    """Evaluates a comparison operator. Ordering is defined for two numbers or two strings."""
    if op == "==":
        return equals(left, right)
    if op == "!=":
        return not equals(left, right)

    both_numbers = is_number(left) and is_number(right)
    both_strings = isinstance(left, str) and isinstance(right, str)
    if both_numbers or both_strings:
        return ORDERINGS[op](left, right)
    raise _operand_error(op, left, right, offset)


OPERATORS = {
    "+": add,
    "-": subtract,
    "*": multiply,
    "/": divide,
    "<": partial(compare, "<"),
    ">": partial(compare, ">"),
    "<=": partial(compare, "<="),
    ">=": partial(compare, ">="),
    "==": partial(compare, "=="),
    "!=": partial(compare, "!="),
}
