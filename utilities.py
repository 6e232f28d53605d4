"""
Utilities module for the Tern interpreter
Error builders and operator factories shared by the evaluator and stdlib
"""

from typing import Callable, Sequence, Tuple, Type

from error_handling import (
  TypeMismatchError,
  UnboundNameError,
  UnknownFunctionError,
  ImmutableAssignmentError,
  MissingLabelError,
  ArityMismatchError,
  DivisionByZeroError,
  InvalidOperandError,
  StackOverflowError,
)
from values import Value, IntValue, BoolValue, of


BinaryOp = Callable[[Value, Value], Value]


# ==================== ERROR MESSAGE BUILDERS ====================

def type_mismatch_error(op_name: str, lhs: Value, rhs: Value) -> TypeMismatchError:
  """
  Generate operand type mismatch error

  Args:
    op_name: Operator symbol
    lhs: Left operand value
    rhs: Right operand value

  Returns:
    TypeMismatchError naming the operator and both operands
  """
  return TypeMismatchError(
    f"{lhs!r} and {rhs!r} are not compatible on '{op_name}'",
    operator=op_name, lhs=repr(lhs), rhs=repr(rhs)
  )


def condition_type_error(construct: str, value: Value) -> TypeMismatchError:
  """Generate error for a non-Boolean condition"""
  return TypeMismatchError(
    f"{construct} condition must be Boolean, got {value!r}",
    construct=construct, value=repr(value)
  )


def unbound_name_error(name: str) -> UnboundNameError:
  return UnboundNameError(f"identifier '{name}' is not defined", name=name)


def immutable_assignment_error(name: str) -> ImmutableAssignmentError:
  return ImmutableAssignmentError(
    f"'{name}' is declared immutable; declare it with 'mutable let' to reassign",
    name=name
  )


def unknown_function_error(name: str) -> UnknownFunctionError:
  return UnknownFunctionError(f"function '{name}' is not defined", name=name)


def arity_error(func_name: str, expected: int, got: int) -> ArityMismatchError:
  """
  Generate arity mismatch error

  Args:
    func_name: Function name
    expected: Expected number of arguments
    got: Actual number of arguments

  Returns:
    ArityMismatchError with formatted message
  """
  return ArityMismatchError(
    f"{func_name} requires {expected} arguments, got {got}",
    function=func_name, expected=expected, got=got
  )


def missing_label_error(func_name: str, param: str) -> MissingLabelError:
  return MissingLabelError(
    f"parameter '{param}' of {func_name} has no label at the call site",
    function=func_name, parameter=param
  )


def division_by_zero_error(op_name: str, lhs: Value) -> DivisionByZeroError:
  return DivisionByZeroError(
    f"{lhs!r} '{op_name}' by zero", operator=op_name, lhs=repr(lhs)
  )


def invalid_operand_error(op_name: str, operand: object) -> InvalidOperandError:
  return InvalidOperandError(
    f"'{op_name}' needs a variable operand, got {operand!r}",
    operator=op_name, operand=repr(operand)
  )


def stack_overflow_error(depth: int) -> StackOverflowError:
  return StackOverflowError(f"call depth exceeded {depth}", depth=depth)


# ==================== BINARY OPERATION FACTORIES ====================

def operands_match(lhs: Value, rhs: Value, allowed_types: Sequence[Type[Value]]) -> bool:
  """Both operands share one variant and that variant is allowed"""
  return type(lhs) is type(rhs) and isinstance(lhs, tuple(allowed_types))


def binary_arithmetic_op(
  op: Callable[[int, int], int],
  op_name: str,
  allowed_types: Tuple[Type[Value], ...] = (IntValue,)
) -> BinaryOp:
  """
  Factory for binary arithmetic operations

  Args:
    op: Python function on the raw payloads (e.g., operator.add)
    op_name: Operator symbol for error messages
    allowed_types: Value variants that support this operation

  Returns:
    Function that performs the arithmetic operation

  Examples:
    tern_sub = binary_arithmetic_op(operator.sub, "-")
    tern_sub(IntValue(3), IntValue(1)) -> IntValue(2)
  """
  def arithmetic(lhs: Value, rhs: Value) -> Value:
    if not operands_match(lhs, rhs, allowed_types):
      raise type_mismatch_error(op_name, lhs, rhs)
    return of(op(lhs.value, rhs.value))

  return arithmetic


def binary_comparison_op(
  op: Callable[[object, object], bool],
  op_name: str,
  allowed_types: Tuple[Type[Value], ...] = (IntValue,)
) -> BinaryOp:
  """
  Factory for binary comparison operations

  Args:
    op: Python comparison (e.g., operator.lt); applied to whole Values
        for structural variants and to payloads otherwise
    op_name: Operator symbol for error messages
    allowed_types: Value variants that support this comparison

  Returns:
    Function that performs the comparison and yields a BoolValue
  """
  def comparison(lhs: Value, rhs: Value) -> Value:
    if not operands_match(lhs, rhs, allowed_types):
      raise type_mismatch_error(op_name, lhs, rhs)
    if isinstance(lhs, IntValue):
      return BoolValue(op(lhs.value, rhs.value))
    return BoolValue(op(lhs, rhs))

  return comparison


def binary_logical_op(op: Callable[[bool, bool], bool], op_name: str) -> BinaryOp:
  """Factory for Boolean-only connectives"""
  def logical(lhs: Value, rhs: Value) -> Value:
    if not operands_match(lhs, rhs, (BoolValue,)):
      raise type_mismatch_error(op_name, lhs, rhs)
    return BoolValue(op(lhs.value, rhs.value))

  return logical
