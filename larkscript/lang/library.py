"""Builtin libraries of the lark language: math, random, string, array, time and input. Each library is a static table
of constants and native functions, built once per run by build_libraries.

Numbers follow host floating-point behavior rather than raising: math functions outside their domain give NaN, and
overflow gives Infinity.
"""

import math
import random
import re
import time
from datetime import datetime

from larkscript.pure.values import NativeFunction, add, divide, equals, is_number, represent


BUILTIN_NAMES = ["math", "random", "string", "array", "time", "input"]


def _numeric(fn):
    """Wraps a math function so that domain errors give NaN and overflow gives Infinity."""

    def wrapper(*args):
        try:
            return fn(*args)
        except ValueError:
            return math.nan
        except OverflowError:
            return math.inf

    return wrapper


def _integral(fn):
    """Wraps a rounding function so that non-finite inputs pass through unchanged and results stay floats."""

    def wrapper(x):
        if math.isnan(x) or math.isinf(x):
            return x
        return float(fn(x))

    return wrapper


def _extreme(pick, empty):
    """Variadic max/min: no arguments give empty, any NaN gives NaN."""

    def wrapper(*args):
        if not args:
            return empty
        if any(math.isnan(arg) for arg in args):
            return math.nan
        return pick(args)

    return wrapper


def _math_library():
    return {
        "pi": 3.14159265359,
        "e": 2.71828182846,
        "sqrt": _numeric(math.sqrt),
        "pow": _numeric(math.pow),
        "abs": abs,
        "floor": _integral(math.floor),
        "ceil": _integral(math.ceil),
        "round": _integral(lambda x: math.floor(x + 0.5)),  # halves round toward +infinity
        "sin": _numeric(math.sin),
        "cos": _numeric(math.cos),
        "tan": _numeric(math.tan),
        "max": _extreme(max, -math.inf),
        "min": _extreme(min, math.inf),
    }


def _random_library(rng):

    def randint(low, high):
        return float(math.floor(rng.random() * (high - low + 1)) + low)

    def choice(seq):
        if len(seq) == 0:
            return None
        return seq[math.floor(rng.random() * len(seq))]

    def shuffle(arr):
        shuffled = list(arr)
        for i in range(len(shuffled) - 1, 0, -1):
            j = math.floor(rng.random() * (i + 1))
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
        return shuffled

    return {
        "random": lambda: rng.random(),
        "randint": randint,
        "choice": choice,
        "shuffle": shuffle,
    }


def _substring(s, start, end=None):
    """Host-style substring: bounds are clamped to the string, NaN counts as 0, and swapped bounds are reordered."""
    s = represent(s)

    def clamp(bound):
        if bound is None:
            return len(s)
        if math.isnan(bound):
            return 0
        return int(min(max(bound, 0), len(s)))

    start, end = clamp(start), clamp(end)
    if start > end:
        start, end = end, start
    return s[start:end]


def _split(s, delim=None):
    s = represent(s)
    if delim is None:
        return [s]
    delim = represent(delim)
    if delim == "":
        return list(s)
    return s.split(delim)


def _string_library():
    return {
        "len": lambda s: len(represent(s)),
        "upper": lambda s: represent(s).upper(),
        "lower": lambda s: represent(s).lower(),
        "reverse": lambda s: represent(s)[::-1],
        "replace": lambda s, old, new: represent(s).replace(represent(old), represent(new), 1),
        "split": _split,
        "join": lambda arr, delim=",": represent(delim).join(represent(item) for item in arr),
        "startswith": lambda s, prefix: represent(s).startswith(represent(prefix)),
        "endswith": lambda s, suffix: represent(s).endswith(represent(suffix)),
        "substring": _substring,
    }


def _total(arr):
    total = 0
    for item in arr:
        total = add(total, item)
    return total


def _sorted(arr):
    for item in arr:
        if not is_number(item):
            raise TypeError(f"cannot sort non-numeric element '{represent(item)}'")
    return sorted(arr)


def _array_library():

    def push(arr, item):
        arr.append(item)
        return arr

    def pop(arr):
        return arr.pop() if arr else None

    return {
        "create": lambda *items: list(items),
        "length": len,
        "push": push,
        "pop": pop,
        "sum": _total,
        "avg": lambda arr: divide(_total(arr), len(arr)),
        "max": lambda arr: _extreme(max, -math.inf)(*arr),
        "min": lambda arr: _extreme(min, math.inf)(*arr),
        "sort": _sorted,
        "reverse": lambda arr: arr[::-1],
        "contains": lambda arr, item: any(equals(element, item) for element in arr),
    }


def _time_library(clock):

    def now():
        return datetime.fromtimestamp(clock())

    return {
        "now": lambda: math.floor(clock() * 1000),
        "timestamp": lambda: math.floor(clock()),
        "year": lambda: now().year,
        "month": lambda: now().month,
        "day": lambda: now().day,
        "hour": lambda: now().hour,
        "minute": lambda: now().minute,
        "second": lambda: now().second,
    }


LEADING_FLOAT = re.compile(r"\s*[+-]?(Infinity|[0-9]+(\.[0-9]*)?([eE][+-]?[0-9]+)?|\.[0-9]+([eE][+-]?[0-9]+)?)")
LEADING_INT = re.compile(r"\s*[+-]?[0-9]+")


def _input_library(reader):

    def prompt(message=""):
        try:
            return reader(represent(message))
        except EOFError:
            return ""  # end of input reads as an empty line

    def number(message=""):
        match = LEADING_FLOAT.match(prompt(message))
        if not match:
            return 0.0
        return float(match.group().strip().replace("Infinity", "inf"))

    def integer(message=""):
        match = LEADING_INT.match(prompt(message))
        return float(match.group()) if match else 0.0

    return {
        "prompt": prompt,
        "number": number,
        "int": integer,
    }


def build_libraries(rng=None, clock=None, reader=None):
    """Returns a dict of library name: {member name: value} for every builtin library. rng (anything with a random()
    method), clock (returns epoch seconds) and reader (takes a prompt, returns a line) default to the host's.
    """
    tables = {
        "math": _math_library(),
        "random": _random_library(rng if rng is not None else random.Random()),
        "string": _string_library(),
        "array": _array_library(),
        "time": _time_library(clock if clock is not None else time.time),
        "input": _input_library(reader if reader is not None else input),
    }

    libraries = {}
    for name in BUILTIN_NAMES:
        libraries[name] = {
            member: NativeFunction(f"{name}.{member}", value) if callable(value) else value
            for member, value in tables[name].items()
        }
    return libraries
