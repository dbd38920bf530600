"""Tree-walking evaluator for the lark language. Statements are executed for effect against an Environment, expressions
are evaluated for value. Imports and print output go through the run state handed to the Evaluator, which must provide
`modules.resolve(name, evaluator, offset)` and `emit(line)` (see lang/session.py).
"""

from larkscript.grammar.tree import (
    Assignment, Binary, Call, ExpressionStatement, FunDecl, Identifier, If, Import, ModuleAccess, ModuleCall, Number,
    Print, Return, String, VarDecl, While
)
from larkscript.lang.error import GenericException, LarkTypeError
from larkscript.pure.values import OPERATORS, Function, Module, is_callable, is_truthy, represent


class ReturnSignal(Exception):
    """Non-local exit raised by a return statement and caught by the enclosing call (or unit) frame."""

    def __init__(self, value):
        super().__init__("return")
        self.value = value


class Evaluator:
    """Walks statements and expressions. Neither if nor while bodies open a new scope; only function calls do."""

    def __init__(self, state):
        self.state = state

        self._statements = {
            Import: self.execute_import,
            VarDecl: self.execute_binding,
            Assignment: self.execute_binding,
            If: self.execute_if,
            While: self.execute_while,
            FunDecl: self.execute_fun_decl,
            Print: self.execute_print,
            Return: self.execute_return,
            ExpressionStatement: self.execute_expression_statement,
        }
        self._expressions = {
            Number: lambda expr, env: expr.value,
            String: lambda expr, env: expr.text,
            Identifier: lambda expr, env: env.lookup(expr.name, expr.offset),
            Binary: self.evaluate_binary,
            Call: self.evaluate_call,
            ModuleAccess: self.evaluate_module_access,
            ModuleCall: self.evaluate_module_call,
        }

    def execute(self, stmt, env):
        try:
            handler = self._statements[type(stmt)]
        except KeyError:
            raise GenericException("cannot execute '{}'", type(stmt).__name__, internal=True) from None
        handler(stmt, env)

    def evaluate(self, expr, env):
        try:
            handler = self._expressions[type(expr)]
        except KeyError:
            raise GenericException("cannot evaluate '{}'", type(expr).__name__, internal=True) from None
        return handler(expr, env)

    def execute_statements(self, statements, env):
        """Executes statements in order. A return statement propagates out of here as a ReturnSignal."""
        for stmt in statements:
            self.execute(stmt, env)

    def execute_body(self, statements, env):
        """Executes a function body, returning the value of the return statement that ended it, or None."""
        try:
            self.execute_statements(statements, env)
        except ReturnSignal as signal:
            return signal.value
        return None

    # --- statements ---

    def execute_import(self, stmt, env):
        env.assign(stmt.module_name, self.state.modules.resolve(stmt.module_name, self, stmt.offset))

    def execute_binding(self, stmt, env):
        env.assign(stmt.name, self.evaluate(stmt.expr, env))

    def execute_if(self, stmt, env):
        if is_truthy(self.evaluate(stmt.condition, env)):
            self.execute_statements(stmt.then_body, env)
        else:
            self.execute_statements(stmt.else_body, env)

    def execute_while(self, stmt, env):
        while is_truthy(self.evaluate(stmt.condition, env)):
            self.execute_statements(stmt.body, env)

    def execute_fun_decl(self, stmt, env):
        env.assign(stmt.name, Function(stmt.name, stmt.params, stmt.body, env))

    def execute_print(self, stmt, env):
        self.state.emit(represent(self.evaluate(stmt.expr, env)))

    def execute_return(self, stmt, env):
        raise ReturnSignal(self.evaluate(stmt.expr, env))

    def execute_expression_statement(self, stmt, env):
        self.evaluate(stmt.expr, env)

    # --- expressions ---

    def evaluate_binary(self, expr, env):
        left = self.evaluate(expr.left, env)
        right = self.evaluate(expr.right, env)
        return OPERATORS[expr.op](left, right, expr.offset)

    def invoke(self, callee, label, args, env, offset):
        """Evaluates args left to right in env and calls callee with them. label names callee in error messages."""
        if not is_callable(callee):
            raise LarkTypeError("'{}' is not callable", label, offset=offset)
        return callee.invoke([self.evaluate(arg, env) for arg in args], self)

    def evaluate_call(self, expr, env):
        return self.invoke(env.lookup(expr.name, expr.offset), expr.name, expr.args, env, expr.offset)

    def lookup_module(self, name, env, offset):
        module = env.lookup(name, offset)
        if not isinstance(module, Module):
            raise LarkTypeError("'{}' is not a module", name, offset=offset)
        return module

    def evaluate_module_access(self, expr, env):
        return self.lookup_module(expr.module_name, env, expr.offset).member(expr.member, expr.offset)

    def evaluate_module_call(self, expr, env):
        callee = self.lookup_module(expr.module_name, env, expr.offset).member(expr.member, expr.offset)
        return self.invoke(callee, f"{expr.module_name}.{expr.member}", expr.args, env, expr.offset)
