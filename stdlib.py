"""
Tern Standard Library
The binary operators and the print primitive; nothing else is built in
"""

from typing import Dict, TextIO
import operator
import sys

from nodes import BinaryOperator
from utilities import (
  BinaryOp,
  binary_arithmetic_op,
  binary_comparison_op,
  binary_logical_op,
  division_by_zero_error,
  type_mismatch_error,
)
from values import (
  Value,
  IntValue,
  BoolValue,
  TextValue,
  SequenceValue,
  SetValue,
  MappingValue,
  FunctionValue,
)


# ============================================================================
# ARITHMETIC
# ============================================================================

def truncating_div(a: int, b: int) -> int:
  """Integer division rounding toward zero"""
  quotient = abs(a) // abs(b)
  return quotient if (a < 0) == (b < 0) else -quotient


def truncating_mod(a: int, b: int) -> int:
  """Remainder carrying the sign of the dividend"""
  return a - b * truncating_div(a, b)


def tern_add(lhs: Value, rhs: Value) -> Value:
  """Integer addition or Text concatenation"""
  if isinstance(lhs, IntValue) and isinstance(rhs, IntValue):
    return IntValue(lhs.value + rhs.value)
  if isinstance(lhs, TextValue) and isinstance(rhs, TextValue):
    return TextValue(lhs.value + rhs.value)
  raise type_mismatch_error(BinaryOperator.ADD.value, lhs, rhs)


tern_sub = binary_arithmetic_op(operator.sub, BinaryOperator.SUBTRACT.value)
tern_mul = binary_arithmetic_op(operator.mul, BinaryOperator.MULTIPLY.value)
_tern_div = binary_arithmetic_op(truncating_div, BinaryOperator.DIVIDE.value)
_tern_mod = binary_arithmetic_op(truncating_mod, BinaryOperator.REMAINDER.value)


def tern_div(lhs: Value, rhs: Value) -> Value:
  if isinstance(lhs, IntValue) and rhs == IntValue(0):
    raise division_by_zero_error(BinaryOperator.DIVIDE.value, lhs)
  return _tern_div(lhs, rhs)


def tern_mod(lhs: Value, rhs: Value) -> Value:
  if isinstance(lhs, IntValue) and rhs == IntValue(0):
    raise division_by_zero_error(BinaryOperator.REMAINDER.value, lhs)
  return _tern_mod(lhs, rhs)


# ============================================================================
# COMPARISON AND LOGIC
# ============================================================================

tern_lt = binary_comparison_op(operator.lt, BinaryOperator.LESS_THAN.value)
tern_le = binary_comparison_op(operator.le, BinaryOperator.LESS_OR_EQUAL.value)
tern_gt = binary_comparison_op(operator.gt, BinaryOperator.GREATER_THAN.value)
tern_ge = binary_comparison_op(operator.ge, BinaryOperator.GREATER_OR_EQUAL.value)

EQUALITY_TYPES = (IntValue, BoolValue, TextValue, SetValue, SequenceValue)

tern_eq = binary_comparison_op(operator.eq, BinaryOperator.EQUAL.value, EQUALITY_TYPES)
tern_ne = binary_comparison_op(operator.ne, BinaryOperator.NOT_EQUAL.value, EQUALITY_TYPES)

tern_and = binary_logical_op(lambda a, b: a and b, BinaryOperator.LOGICAL_AND.value)
tern_or = binary_logical_op(lambda a, b: a or b, BinaryOperator.LOGICAL_OR.value)


BUILTIN_OPERATORS: Dict[BinaryOperator, BinaryOp] = {
    BinaryOperator.ADD: tern_add,
    BinaryOperator.SUBTRACT: tern_sub,
    BinaryOperator.MULTIPLY: tern_mul,
    BinaryOperator.DIVIDE: tern_div,
    BinaryOperator.REMAINDER: tern_mod,
    BinaryOperator.LESS_THAN: tern_lt,
    BinaryOperator.LESS_OR_EQUAL: tern_le,
    BinaryOperator.GREATER_THAN: tern_gt,
    BinaryOperator.GREATER_OR_EQUAL: tern_ge,
    BinaryOperator.EQUAL: tern_eq,
    BinaryOperator.NOT_EQUAL: tern_ne,
    BinaryOperator.LOGICAL_AND: tern_and,
    BinaryOperator.LOGICAL_OR: tern_or,
}


def apply_operator(op: BinaryOperator, lhs: Value, rhs: Value) -> Value:
  return BUILTIN_OPERATORS[op](lhs, rhs)


# ============================================================================
# PRINT FUNCTIONS
# ============================================================================

def tern_show(value: Value, nested: bool = False) -> str:
  """Convert value to its textual representation"""
  if isinstance(value, BoolValue):
    return "true" if value.value else "false"
  elif isinstance(value, IntValue):
    return str(value.value)
  elif isinstance(value, TextValue):
    if nested:
      # Same escapes the reader accepts inside quoted text
      escaped = value.value.replace('\\', '\\\\').replace('"', '\\"')
      return f'"{escaped}"'
    return value.value
  elif isinstance(value, SequenceValue):
    return "[" + ", ".join(tern_show(item, True) for item in value.items) + "]"
  elif isinstance(value, SetValue):
    # Sorted rendering keeps output stable across runs
    elements = sorted(tern_show(item, True) for item in value.items)
    return "#{" + ", ".join(elements) + "}"
  elif isinstance(value, MappingValue):
    entries = [f"{key}: {tern_show(item, True)}" for key, item in value.entries]
    return "%{" + ", ".join(entries) + "}"
  elif isinstance(value, FunctionValue):
    return f"fn({', '.join(value.params)})"
  return f"<{value.type_name}>"


def tern_print(value: Value, stream: TextIO = None) -> Value:
  """Print a value with newline and hand it back unchanged"""
  print(tern_show(value), file=stream if stream is not None else sys.stdout)
  return value
