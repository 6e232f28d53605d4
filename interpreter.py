"""
Tern Interpreter
Recursive tree-walking evaluator. All mutable state lives in an explicit
EvaluationContext threaded through every call, so independent interpreters
never share scopes or function tables.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, TextIO
import sys

from environment import FunctionTable, Scope, make_child_scope, make_root_scope
from error_handling import MissingEntryPointError, StackOverflowError, TypeMismatchError
from nodes import (
  Assignment,
  BinaryExpression,
  Block,
  BooleanLiteral,
  Declaration,
  Expression,
  FunctionCall,
  FunctionDefinition,
  FunctionLiteral,
  Identifier,
  IfExpression,
  IntegerLiteral,
  LabeledCall,
  MappingLiteral,
  Print,
  Program,
  SequenceLiteral,
  SetLiteral,
  TextLiteral,
  UnaryExpression,
  UnaryOperator,
  ValueDefinition,
  WhileExpression,
)
from stdlib import apply_operator, tern_print
from utilities import (
  arity_error,
  condition_type_error,
  invalid_operand_error,
  missing_label_error,
  stack_overflow_error,
  unbound_name_error,
)
from values import (
  TRUE,
  ZERO,
  BoolValue,
  FunctionValue,
  IntValue,
  SequenceValue,
  SetValue,
  TextValue,
  Value,
  of_function,
  of_mapping,
)


DEFAULT_MAX_CALL_DEPTH = 200
ENTRY_POINT = "main"
# Python frames used by one Tern call, with room for nested expressions
HOST_FRAMES_PER_CALL = 50


# ============================================================================
# EXECUTION CONTEXT
# ============================================================================

@dataclass
class EvaluationContext:
  """
  Everything an evaluation reads or mutates.

  `scope` is the active variable store; it starts at `root` and is swapped
  for the duration of each function call by `call_frame`.
  """
  functions: FunctionTable = field(default_factory=FunctionTable)
  root: Scope = field(default_factory=make_root_scope)
  scope: Optional[Scope] = None
  debug: bool = False
  output: Optional[TextIO] = None
  trace: Optional[TextIO] = None
  max_call_depth: int = DEFAULT_MAX_CALL_DEPTH
  call_depth: int = 0

  def __post_init__(self):
    if self.scope is None:
      self.scope = self.root

  @contextmanager
  def call_frame(self, name: str):
    """Activate a child of the caller's scope; the caller's scope is restored on every exit"""
    if self.call_depth >= self.max_call_depth:
      raise stack_overflow_error(self.max_call_depth)
    caller = self.scope
    self.scope = make_child_scope(caller, name)
    self.call_depth += 1
    try:
      yield self.scope
    finally:
      self.scope = caller
      self.call_depth -= 1


def make_execution_context(debug: bool = False,
                           output: Optional[TextIO] = None,
                           trace: Optional[TextIO] = None,
                           max_call_depth: int = DEFAULT_MAX_CALL_DEPTH) -> EvaluationContext:
  """Create a fresh context with an empty root scope and function table"""
  return EvaluationContext(debug=debug, output=output, trace=trace,
                           max_call_depth=max_call_depth)


# ============================================================================
# EVALUATION FUNCTIONS
# ============================================================================

def evaluate(node: Expression, context: EvaluationContext) -> Value:
  """
  Evaluate an expression node against the context and return its value.
  Dispatches on the node's class; every failure propagates to the caller.
  """
  if context.debug:
    print(f"|- {node}", file=context.trace if context.trace is not None else sys.stderr)

  evaluator = EVALUATORS.get(type(node))
  if evaluator is None:
    raise TypeError(f"Unknown node type: {type(node).__name__}")
  return evaluator(node, context)


def eval_integer(node: IntegerLiteral, context: EvaluationContext) -> Value:
  return IntValue(node.value)


def eval_boolean(node: BooleanLiteral, context: EvaluationContext) -> Value:
  return BoolValue(node.value)


def eval_text(node: TextLiteral, context: EvaluationContext) -> Value:
  return TextValue(node.value)


def eval_sequence(node: SequenceLiteral, context: EvaluationContext) -> Value:
  """Evaluate sequence literal, elements left to right"""
  return SequenceValue(tuple([evaluate(item, context) for item in node.items]))


def eval_set(node: SetLiteral, context: EvaluationContext) -> Value:
  return SetValue(frozenset([evaluate(item, context) for item in node.items]))


def eval_mapping(node: MappingLiteral, context: EvaluationContext) -> Value:
  """Evaluate mapping literal; a repeated key keeps its last value"""
  entries = {}
  for key, expression in node.entries:
    entries[key] = evaluate(expression, context)
  return of_mapping(entries)


def eval_function_literal(node: FunctionLiteral, context: EvaluationContext) -> Value:
  return of_function(node.params, node.body)


def eval_identifier(node: Identifier, context: EvaluationContext) -> Value:
  """Evaluate identifier by looking it up in the active scope chain"""
  owner = context.scope.find_scope(node.name)
  if owner is None:
    raise unbound_name_error(node.name)
  return owner.bindings[node.name].value


def eval_unary(node: UnaryExpression, context: EvaluationContext) -> Value:
  """
  Increment or decrement an Integer variable in place.

  Sugar for `name = name + 1` (or `- 1`): the new value goes through the
  normal assignment path and is also the result.
  """
  if not isinstance(node.operand, Identifier):
    raise invalid_operand_error(node.operator.value, node.operand)

  current = evaluate(node.operand, context)
  if not current.is_int():
    raise TypeMismatchError(
        f"'{node.operator.value}' applies to Integer variables, got {current!r}",
        operator=node.operator.value, operand=repr(current))

  step = 1 if node.operator == UnaryOperator.INCREMENT else -1
  updated = IntValue(current.as_int() + step)
  context.scope.assign(node.operand.name, updated)
  return updated


def eval_binary(node: BinaryExpression, context: EvaluationContext) -> Value:
  lhs = evaluate(node.lhs, context)
  rhs = evaluate(node.rhs, context)
  return apply_operator(node.operator, lhs, rhs)


def eval_declaration(node: Declaration, context: EvaluationContext) -> Value:
  """
  Evaluate the right-hand side and bind it. Function values go to the
  function table under the declared name; everything else is declared in
  the active scope with the requested mutability.
  """
  value = evaluate(node.expression, context)
  if isinstance(value, FunctionValue):
    definition = FunctionDefinition(node.name, value.params, value.body)
    context.functions.define(node.name, definition, node.mutable)
  else:
    context.scope.declare(node.name, value, node.mutable)
  return value


def eval_assignment(node: Assignment, context: EvaluationContext) -> Value:
  value = evaluate(node.expression, context)
  context.scope.assign(node.name, value)
  return value


def eval_print(node: Print, context: EvaluationContext) -> Value:
  value = evaluate(node.argument, context)
  return tern_print(value, context.output)


def require_condition(construct: str, node: Expression, context: EvaluationContext) -> bool:
  condition = evaluate(node, context)
  if not condition.is_bool():
    raise condition_type_error(construct, condition)
  return condition.as_bool()


def eval_if(node: IfExpression, context: EvaluationContext) -> Value:
  """Evaluate conditional; a missing else branch yields true"""
  if require_condition("if", node.condition, context):
    return evaluate(node.then_clause, context)
  if node.else_clause is not None:
    return evaluate(node.else_clause, context)
  return TRUE


def eval_while(node: WhileExpression, context: EvaluationContext) -> Value:
  while require_condition("while", node.condition, context):
    evaluate(node.body, context)
  return TRUE


def eval_block(node: Block, context: EvaluationContext) -> Value:
  """Evaluate elements in order; the last value wins, an empty block is 0"""
  result = ZERO
  for element in node.elements:
    result = evaluate(element, context)
  return result


def invoke(definition: FunctionDefinition, arguments: List[Value], context: EvaluationContext) -> Value:
  """Run a function body in a fresh child of the caller's active scope"""
  with context.call_frame(definition.name) as scope:
    for param, argument in zip(definition.params, arguments):
      scope.declare_mutable(param, argument)
    return evaluate(definition.body, context)


def eval_function_call(node: FunctionCall, context: EvaluationContext) -> Value:
  definition = context.functions.lookup(node.name)
  if len(node.args) != len(definition.params):
    raise arity_error(node.name, len(definition.params), len(node.args))

  arguments = [evaluate(arg, context) for arg in node.args]
  return invoke(definition, arguments, context)


def eval_labeled_call(node: LabeledCall, context: EvaluationContext) -> Value:
  """
  Evaluate a call whose arguments are given as `label = expression` pairs.
  Every parameter must be labeled before anything is evaluated; arguments
  are then evaluated in parameter order. Labels naming no parameter are
  ignored.
  """
  definition = context.functions.lookup(node.name)
  labels = {arg.name: arg.parameter for arg in node.args}

  for param in definition.params:
    if param not in labels:
      raise missing_label_error(node.name, param)

  arguments = [evaluate(labels[param], context) for param in definition.params]
  return invoke(definition, arguments, context)


EVALUATORS: Dict[type, Callable[[Expression, EvaluationContext], Value]] = {
    IntegerLiteral: eval_integer,
    BooleanLiteral: eval_boolean,
    TextLiteral: eval_text,
    SequenceLiteral: eval_sequence,
    SetLiteral: eval_set,
    MappingLiteral: eval_mapping,
    FunctionLiteral: eval_function_literal,
    Identifier: eval_identifier,
    UnaryExpression: eval_unary,
    BinaryExpression: eval_binary,
    Declaration: eval_declaration,
    Assignment: eval_assignment,
    Print: eval_print,
    IfExpression: eval_if,
    WhileExpression: eval_while,
    Block: eval_block,
    FunctionCall: eval_function_call,
    LabeledCall: eval_labeled_call,
}


# ============================================================================
# PROGRAM EVALUATION
# ============================================================================

def load_definitions(program: Program, context: EvaluationContext) -> None:
  """Register top-level definitions in source order"""
  for definition in program.definitions:
    if isinstance(definition, FunctionDefinition):
      context.functions.define(definition.name, definition)
    elif isinstance(definition, ValueDefinition):
      declaration = Declaration(definition.name, definition.expression, definition.mutable)
      eval_declaration(declaration, context)
    else:
      raise TypeError(f"Unknown top-level definition: {type(definition).__name__}")


def run_program(program: Program, context: EvaluationContext) -> Value:
  """Load the program's definitions, then evaluate the body of `main`"""
  load_definitions(program, context)

  entry = context.functions.get(ENTRY_POINT)
  if entry is None:
    raise MissingEntryPointError(
        f"program has no '{ENTRY_POINT}' function", name=ENTRY_POINT)
  return evaluate(entry.body, context)


def reserve_host_stack(max_depth: int) -> None:
  """Make sure Python's own recursion limit is not hit before max_depth"""
  sys.setrecursionlimit(max(sys.getrecursionlimit(), max_depth * HOST_FRAMES_PER_CALL))


@contextmanager
def host_stack_guard(max_depth: int):
  """Report host stack exhaustion as a StackOverflow failure"""
  reserve_host_stack(max_depth)
  try:
    yield
  except RecursionError:
    raise StackOverflowError("evaluation exceeded the host recursion limit") from None


# ============================================================================
# EMBEDDING INTERFACE
# ============================================================================

class Interpreter:
  """Long-lived evaluator for drivers: REPLs, test harnesses, batch runners"""

  def __init__(self, context: Optional[EvaluationContext] = None):
    self.context = context if context is not None else make_execution_context()

  def with_debug(self, trace: Optional[TextIO] = None) -> "Interpreter":
    self.context.debug = True
    if trace is not None:
      self.context.trace = trace
    return self

  def evaluate(self, node: Expression) -> Value:
    with host_stack_guard(self.context.max_call_depth):
      return evaluate(node, self.context)

  def load(self, program: Program) -> None:
    """Register definitions without running `main` (used by the REPL)"""
    with host_stack_guard(self.context.max_call_depth):
      load_definitions(program, self.context)

  def run_program(self, program: Program) -> Value:
    with host_stack_guard(self.context.max_call_depth):
      return run_program(program, self.context)

  def lookup_variable(self, name: str) -> Optional[Value]:
    return self.context.scope.lookup(name)

  def lookup_function(self, name: str) -> Optional[FunctionDefinition]:
    return self.context.functions.get(name)

  def variables(self) -> Dict[str, Value]:
    return self.context.scope.snapshot()

  def function_names(self) -> List[str]:
    return self.context.functions.names()


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False,
                       output: Optional[TextIO] = None,
                       trace: Optional[TextIO] = None,
                       max_call_depth: int = DEFAULT_MAX_CALL_DEPTH) -> Interpreter:
  """Factory function returning an interpreter"""
  return Interpreter(make_execution_context(debug, output, trace, max_call_depth))


def create_debug_interpreter(trace: Optional[TextIO] = None) -> Interpreter:
  """Factory function returning an interpreter that traces every node"""
  return create_interpreter(debug=True, trace=trace)
