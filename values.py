"""
Tern Runtime Values
Closed set of immutable value variants produced by the evaluator
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Tuple, TYPE_CHECKING

from error_handling import TypeMismatchError

if TYPE_CHECKING:
  from nodes import Block


INT_BITS = 64
INT_MIN = -(1 << (INT_BITS - 1))
INT_MAX = (1 << (INT_BITS - 1)) - 1


def wrap_int(n: int) -> int:
  """Normalise a host integer into the signed 64-bit range (two's complement)"""
  return ((n - INT_MIN) % (1 << INT_BITS)) + INT_MIN


# ============================================================================
# VALUE VARIANTS
# ============================================================================

class Value:
  """Base of the closed value union; only the variants below are instantiated"""
  type_name = "Value"

  def is_int(self) -> bool:
    return isinstance(self, IntValue)

  def is_bool(self) -> bool:
    return isinstance(self, BoolValue)

  def is_text(self) -> bool:
    return isinstance(self, TextValue)

  def is_sequence(self) -> bool:
    return isinstance(self, SequenceValue)

  def is_set(self) -> bool:
    return isinstance(self, SetValue)

  def is_mapping(self) -> bool:
    return isinstance(self, MappingValue)

  def is_function(self) -> bool:
    return isinstance(self, FunctionValue)

  def _narrow(self, variant: type) -> "Value":
    if not isinstance(self, variant):
      raise TypeMismatchError(
          f"expected {variant.type_name}, got {self.type_name}",
          expected=variant.type_name, actual=repr(self))
    return self

  def as_int(self) -> int:
    return self._narrow(IntValue).value

  def as_bool(self) -> bool:
    return self._narrow(BoolValue).value

  def as_text(self) -> str:
    return self._narrow(TextValue).value

  def as_sequence(self) -> Tuple["Value", ...]:
    return self._narrow(SequenceValue).items

  def as_set(self) -> FrozenSet["Value"]:
    return self._narrow(SetValue).items

  def as_mapping(self) -> Dict[str, "Value"]:
    return dict(self._narrow(MappingValue).entries)

  def as_function(self) -> "FunctionValue":
    return self._narrow(FunctionValue)


@dataclass(frozen=True)
class IntValue(Value):
  value: int
  type_name = "Integer"

  def __post_init__(self):
    object.__setattr__(self, 'value', wrap_int(self.value))


@dataclass(frozen=True)
class BoolValue(Value):
  value: bool
  type_name = "Boolean"


@dataclass(frozen=True)
class TextValue(Value):
  value: str
  type_name = "Text"


@dataclass(frozen=True)
class SequenceValue(Value):
  items: Tuple[Value, ...]
  type_name = "Sequence"


@dataclass(frozen=True)
class SetValue(Value):
  items: FrozenSet[Value]
  type_name = "Set"


@dataclass(frozen=True)
class MappingValue(Value):
  """String-keyed mapping; equality ignores key order"""
  entries: Tuple[Tuple[str, Value], ...]
  type_name = "Mapping"

  def __post_init__(self):
    # Canonical key order makes structural equality order-insensitive
    object.__setattr__(self, 'entries', tuple(sorted(dict(self.entries).items())))


@dataclass(frozen=True)
class FunctionValue(Value):
  """Parameter names plus an unevaluated body; no captured environment"""
  params: Tuple[str, ...]
  body: "Block"
  type_name = "Function"


# ============================================================================
# CONSTRUCTORS
# ============================================================================

TRUE = BoolValue(True)
FALSE = BoolValue(False)
ZERO = IntValue(0)


def of(raw: Any) -> Value:
  """Lift a host primitive or collection into a Value"""
  if isinstance(raw, Value):
    return raw
  # bool before int: bool is an int subclass
  if isinstance(raw, bool):
    return BoolValue(raw)
  if isinstance(raw, int):
    return IntValue(raw)
  if isinstance(raw, str):
    return TextValue(raw)
  if isinstance(raw, (list, tuple)):
    return SequenceValue(tuple(of(item) for item in raw))
  if isinstance(raw, (set, frozenset)):
    return SetValue(frozenset(of(item) for item in raw))
  if isinstance(raw, dict):
    if not all(isinstance(key, str) for key in raw):
      raise TypeMismatchError("mapping keys must be text", value=repr(raw))
    return MappingValue(tuple((key, of(item)) for key, item in raw.items()))
  raise TypeMismatchError(f"cannot convert {type(raw).__name__} to a value", value=repr(raw))


def of_mapping(entries: Dict[str, Value]) -> MappingValue:
  return MappingValue(tuple(entries.items()))


def of_function(params, body: "Block") -> FunctionValue:
  return FunctionValue(tuple(params), body)


def to_python(value: Value) -> Any:
  """Recursively unwrap a Value into plain Python data (functions stay wrapped)"""
  if isinstance(value, (IntValue, BoolValue, TextValue)):
    return value.value
  if isinstance(value, SequenceValue):
    return [to_python(item) for item in value.items]
  if isinstance(value, SetValue):
    return frozenset(to_python(item) for item in value.items)
  if isinstance(value, MappingValue):
    return {key: to_python(item) for key, item in value.entries}
  return value
