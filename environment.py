"""
Tern Environments
Chained variable scopes and the flat function table
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from nodes import FunctionDefinition
from values import Value
from utilities import unbound_name_error, immutable_assignment_error, unknown_function_error


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass
class Binding:
  """A name's current value (or function definition) plus its mutability flag"""
  name: str
  value: Union[Value, FunctionDefinition]
  mutable: bool = False


@dataclass
class Scope:
  """
  A store of bindings linked to its enclosing store.

  The root scope lives for the whole run; each function call gets a child
  whose parent is the caller's active scope.
  """
  parent: Optional["Scope"] = None
  bindings: Dict[str, Binding] = field(default_factory=dict)
  name: str = "anonymous"

  def find_scope(self, name: str) -> Optional["Scope"]:
    """Return the nearest store (this one or an ancestor) that owns name"""
    scope = self
    while scope is not None:
      if name in scope.bindings:
        return scope
      scope = scope.parent
    return None

  def lookup(self, name: str) -> Optional[Value]:
    owner = self.find_scope(name)
    if owner is None:
      return None
    return owner.bindings[name].value

  def declare_immutable(self, name: str, value: Value) -> None:
    self.bindings[name] = Binding(name, value, mutable=False)

  def declare_mutable(self, name: str, value: Value) -> None:
    self.bindings[name] = Binding(name, value, mutable=True)

  def declare(self, name: str, value: Value, mutable: bool) -> None:
    if mutable:
      self.declare_mutable(name, value)
    else:
      self.declare_immutable(name, value)

  def assign(self, name: str, value: Value) -> None:
    """Overwrite name in the store that owns it, never shadowing it"""
    owner = self.find_scope(name)
    if owner is None:
      raise unbound_name_error(name)
    binding = owner.bindings[name]
    if not binding.mutable:
      raise immutable_assignment_error(name)
    binding.value = value

  def chain(self) -> List["Scope"]:
    """Stores from this one out to the root"""
    scopes = []
    scope = self
    while scope is not None:
      scopes.append(scope)
      scope = scope.parent
    return scopes

  def snapshot(self) -> Dict[str, Value]:
    """All visible bindings; inner stores shadow outer ones"""
    result = {}
    for scope in reversed(self.chain()):
      for name, binding in scope.bindings.items():
        result[name] = binding.value
    return result

  def depth(self) -> int:
    return len(self.chain()) - 1


def make_root_scope() -> Scope:
  return Scope(name="global")


def make_child_scope(parent: Scope, name: str = "call") -> Scope:
  return Scope(parent=parent, name=name)


# ============================================================================
# FUNCTION TABLE
# ============================================================================

@dataclass
class FunctionTable:
  """Process-lifetime, name-keyed table of function definitions"""
  bindings: Dict[str, Binding] = field(default_factory=dict)

  def define(self, name: str, definition: FunctionDefinition, mutable: bool = False) -> None:
    # Redefinition silently replaces the previous entry
    self.bindings[name] = Binding(name, definition, mutable)

  def get(self, name: str) -> Optional[FunctionDefinition]:
    binding = self.bindings.get(name)
    return binding.value if binding is not None else None

  def lookup(self, name: str) -> FunctionDefinition:
    definition = self.get(name)
    if definition is None:
      raise unknown_function_error(name)
    return definition

  def names(self) -> List[str]:
    return list(self.bindings)

  def __contains__(self, name: str) -> bool:
    return name in self.bindings
