"""Abstract syntax tree of the lark language. Nodes are immutable and own their children; every node remembers the source
offset of its head token (the operator, for Binary). Offsets are only used for error messages and never take part in
equality.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class Node:
    """Base of every AST node. offset is the source position of the node's head token, if known."""
    offset: Optional[int] = field(default=None, compare=False, repr=False, kw_only=True)


# --- statements ---

@dataclass(frozen=True)
class Program(Node):
    """Top-level statements of one unit (a file or a shell line)."""
    statements: Tuple[Node, ...]


@dataclass(frozen=True)
class Import(Node):
    """Binds the module called module_name in the current environment."""
    module_name: str


@dataclass(frozen=True)
class VarDecl(Node):
    name: str
    expr: Node


@dataclass(frozen=True)
class Assignment(Node):
    """Same storage semantics as VarDecl: writes name in the current environment."""
    name: str
    expr: Node


@dataclass(frozen=True)
class If(Node):
    """Neither branch opens a scope. else_body is empty if there is no else."""
    condition: Node
    then_body: Tuple[Node, ...]
    else_body: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class While(Node):
    condition: Node
    body: Tuple[Node, ...]


@dataclass(frozen=True)
class FunDecl(Node):
    """Declares a Function closing over the environment it is executed in."""
    name: str
    params: Tuple[str, ...]
    body: Tuple[Node, ...]


@dataclass(frozen=True)
class Print(Node):
    expr: Node


@dataclass(frozen=True)
class Return(Node):
    """Ends the enclosing call (or unit, at top level) with the value of expr."""
    expr: Node


@dataclass(frozen=True)
class ExpressionStatement(Node):
    """Call or module call evaluated for its effect."""
    expr: Node


# --- expressions ---

@dataclass(frozen=True)
class Number(Node):
    value: float


@dataclass(frozen=True)
class String(Node):
    text: str


@dataclass(frozen=True)
class Identifier(Node):
    name: str


@dataclass(frozen=True)
class Binary(Node):
    """Arithmetic or comparison. offset is that of the operator."""
    op: str
    left: Node
    right: Node


@dataclass(frozen=True)
class Call(Node):
    """Call of the function bound to name."""
    name: str
    args: Tuple[Node, ...]


@dataclass(frozen=True)
class ModuleAccess(Node):
    """module_name.member"""
    module_name: str
    member: str


@dataclass(frozen=True)
class ModuleCall(Node):
    """module_name.member(args)"""
    module_name: str
    member: str
    args: Tuple[Node, ...]
