"""
Tern Expression Tree
Closed set of node kinds produced by the reader and consumed by the evaluator
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class BinaryOperator(Enum):
  ADD = "+"
  SUBTRACT = "-"
  MULTIPLY = "*"
  DIVIDE = "/"
  REMAINDER = "%"
  LESS_THAN = "<"
  LESS_OR_EQUAL = "<="
  GREATER_THAN = ">"
  GREATER_OR_EQUAL = ">="
  EQUAL = "=="
  NOT_EQUAL = "!="
  LOGICAL_AND = "&&"
  LOGICAL_OR = "||"


class UnaryOperator(Enum):
  INCREMENT = "++"
  DECREMENT = "--"


# ============================================================================
# EXPRESSIONS
# ============================================================================

class Expression:
  """Base of every expression node"""


@dataclass(frozen=True)
class IntegerLiteral(Expression):
  value: int


@dataclass(frozen=True)
class BooleanLiteral(Expression):
  value: bool


@dataclass(frozen=True)
class TextLiteral(Expression):
  value: str


@dataclass(frozen=True)
class SequenceLiteral(Expression):
  items: Tuple[Expression, ...] = ()


@dataclass(frozen=True)
class SetLiteral(Expression):
  items: Tuple[Expression, ...] = ()


@dataclass(frozen=True)
class MappingLiteral(Expression):
  entries: Tuple[Tuple[str, Expression], ...] = ()


@dataclass(frozen=True)
class Block(Expression):
  elements: Tuple[Expression, ...] = ()


@dataclass(frozen=True)
class FunctionLiteral(Expression):
  params: Tuple[str, ...]
  body: Block


@dataclass(frozen=True)
class Identifier(Expression):
  name: str


@dataclass(frozen=True)
class UnaryExpression(Expression):
  operator: UnaryOperator
  operand: Expression


@dataclass(frozen=True)
class BinaryExpression(Expression):
  operator: BinaryOperator
  lhs: Expression
  rhs: Expression


@dataclass(frozen=True)
class Declaration(Expression):
  """`let name = expression`, or `mutable let` when mutable is set"""
  name: str
  expression: Expression
  mutable: bool = False


@dataclass(frozen=True)
class Assignment(Expression):
  name: str
  expression: Expression


@dataclass(frozen=True)
class Print(Expression):
  argument: Expression


@dataclass(frozen=True)
class IfExpression(Expression):
  condition: Expression
  then_clause: Expression
  else_clause: Optional[Expression] = None


@dataclass(frozen=True)
class WhileExpression(Expression):
  condition: Expression
  body: Expression


@dataclass(frozen=True)
class FunctionCall(Expression):
  name: str
  args: Tuple[Expression, ...] = ()


@dataclass(frozen=True)
class LabeledArgument:
  name: str
  parameter: Expression


@dataclass(frozen=True)
class LabeledCall(Expression):
  name: str
  args: Tuple[LabeledArgument, ...] = ()


# ============================================================================
# TOP LEVEL
# ============================================================================

class TopLevel:
  """Base of top-level program definitions"""


@dataclass(frozen=True)
class FunctionDefinition(TopLevel):
  """Named function; also the entry type of the function table"""
  name: str
  params: Tuple[str, ...]
  body: Block


@dataclass(frozen=True)
class ValueDefinition(TopLevel):
  name: str
  expression: Expression
  mutable: bool = False


@dataclass(frozen=True)
class Program:
  definitions: Tuple[TopLevel, ...] = ()


# ============================================================================
# BUILDERS
# ============================================================================

def binary(symbol: str, lhs: Expression, rhs: Expression) -> BinaryExpression:
  """Build a binary expression from its operator symbol, e.g. binary('+', a, b)"""
  return BinaryExpression(BinaryOperator(symbol), lhs, rhs)


def block(*elements: Expression) -> Block:
  return Block(tuple(elements))


def call(name: str, *args: Expression) -> FunctionCall:
  return FunctionCall(name, tuple(args))


def labeled_call(name: str, **args: Expression) -> LabeledCall:
  return LabeledCall(name, tuple(LabeledArgument(label, expr) for label, expr in args.items()))


def function(name: str, params, *body: Expression) -> FunctionDefinition:
  return FunctionDefinition(name, tuple(params), block(*body))


def program(*definitions: TopLevel) -> Program:
  return Program(tuple(definitions))
