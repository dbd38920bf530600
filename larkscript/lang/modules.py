"""Module system for the lark language. `import NAME` resolves to, in order: the module already imported under NAME in
this run, the builtin library NAME, or the source file "NAME.lark" from the run's file collection.
"""

import logging
import os
from collections.abc import Mapping

from larkscript.grammar.parser import parse
from larkscript.lang.error import GenericException, LarkModuleNotFoundError
from larkscript.pure.evaluator import ReturnSignal
from larkscript.pure.lexical import tokenize
from larkscript.pure.values import Environment, Module

logger = logging.getLogger("larkscript.lang.modules")
logger.addHandler(logging.NullHandler())


class SourceDirectory(Mapping):
    """Read-only file collection backed by a directory: maps "NAME.lark" to the text of root/NAME.lark."""

    def __init__(self, root):
        self.root = os.path.abspath(root)

    def _path(self, filename):
        return os.path.join(self.root, filename)

    def __getitem__(self, filename):
        if os.path.basename(filename) != filename or not os.path.isfile(self._path(filename)):
            raise KeyError(filename)
        with open(self._path(filename), "r", encoding="utf-8") as file:
            return file.read()

    def __iter__(self):
        if not os.path.isdir(self.root):
            return iter([])
        return iter(sorted(name for name in os.listdir(self.root)
                           if name.endswith(ModuleSystem.EXTENSION) and os.path.isfile(self._path(name))))

    def __len__(self):
        return sum(1 for __ in self)

    def __repr__(self):
        return f"SourceDirectory('{self.root}')"


class ModuleSystem:
    """Resolves import names to Modules, memoized for the lifetime of one run."""
    EXTENSION = ".lark"

    def __init__(self, libraries, files=None):
        self.libraries = libraries                      # dict of name: {member: value}, see library.build_libraries
        self.files = files if files is not None else {}  # mapping of filename: source text
        self.cache = {}                                 # dict of name: Module imported so far

    def resolve(self, name, evaluator, offset=None):
        """Returns the Module for name. File modules run once, in a fresh environment, with evaluator."""
        if name in self.cache:
            logger.debug("module '%s' served from cache", name)
            return self.cache[name]

        if name in self.libraries:
            logger.debug("wrapping builtin library '%s'", name)
            module = self.cache[name] = Module(name, self.libraries[name], builtin=True)
            return module

        filename = name + ModuleSystem.EXTENSION
        if filename not in self.files:
            raise LarkModuleNotFoundError(name, self.libraries, offset=offset)

        logger.debug("loading module '%s' from %s", name, filename)
        return self._load(name, filename, self.files[filename], evaluator)

    def _load(self, name, filename, source, evaluator):
        """Parses and runs source as module name. The module is cached before it runs, so a circular import sees the
        partially initialized module; it is uncached again if running it fails.
        """
        env = Environment(location=(filename, source))
        module = self.cache[name] = Module(name, env.bindings)

        try:
            program = parse(tokenize(source))
            evaluator.execute_statements(program.statements, env)
        except ReturnSignal:
            pass  # a top-level return ends the module
        except GenericException as error:
            del self.cache[name]
            raise error.locate(filename, source)

        return module
