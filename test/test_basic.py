"""
Basic parsing tests for Tern
Tests that source text reads into the expected expression tree
"""

import pytest

from error_handling import TernParseError
from nodes import (
  Assignment,
  BinaryExpression,
  BinaryOperator,
  Block,
  BooleanLiteral,
  Declaration,
  FunctionCall,
  FunctionDefinition,
  FunctionLiteral,
  Identifier,
  IfExpression,
  IntegerLiteral,
  LabeledArgument,
  LabeledCall,
  MappingLiteral,
  Print,
  SequenceLiteral,
  SetLiteral,
  TextLiteral,
  UnaryExpression,
  UnaryOperator,
  ValueDefinition,
  WhileExpression,
)
from parsing import TernGrammar, find_nodes_by_type, pretty_print_tree


class TestBasicParsing:
  """Test basic parsing functionality"""

  @pytest.fixture
  def grammar(self):
    """Provide a fresh grammar instance for each test"""
    return TernGrammar()

  def test_literals(self, grammar):
    assert grammar.parse_expression("42") == IntegerLiteral(42)
    assert grammar.parse_expression("-7") == IntegerLiteral(-7)
    assert grammar.parse_expression("true") == BooleanLiteral(True)
    assert grammar.parse_expression("false") == BooleanLiteral(False)
    assert grammar.parse_expression('"hello"') == TextLiteral("hello")

  def test_identifier(self, grammar):
    assert grammar.parse_expression("counter_1") == Identifier("counter_1")

  def test_keyword_prefix_is_still_an_identifier(self, grammar):
    assert grammar.parse_expression("letter") == Identifier("letter")

  def test_collections(self, grammar):
    assert grammar.parse_expression("[1, 2]") == SequenceLiteral((IntegerLiteral(1), IntegerLiteral(2)))
    assert grammar.parse_expression("[]") == SequenceLiteral(())
    assert grammar.parse_expression("#{1}") == SetLiteral((IntegerLiteral(1),))
    assert grammar.parse_expression('%{a: 1, "b c": true}') == MappingLiteral((
        ("a", IntegerLiteral(1)),
        ("b c", BooleanLiteral(True)),
    ))

  def test_function_literal(self, grammar):
    result = grammar.parse_expression("fn(a, b) { a }")
    assert result == FunctionLiteral(("a", "b"), Block((Identifier("a"),)))


class TestOperators:
  """Precedence and associativity of infix and postfix operators"""

  @pytest.fixture
  def grammar(self):
    return TernGrammar()

  def test_multiplication_binds_tighter(self, grammar):
    result = grammar.parse_expression("1 + 2 * 3")
    assert result == BinaryExpression(
        BinaryOperator.ADD,
        IntegerLiteral(1),
        BinaryExpression(BinaryOperator.MULTIPLY, IntegerLiteral(2), IntegerLiteral(3)),
    )

  def test_left_associative(self, grammar):
    result = grammar.parse_expression("10 - 2 - 3")
    assert result == BinaryExpression(
        BinaryOperator.SUBTRACT,
        BinaryExpression(BinaryOperator.SUBTRACT, IntegerLiteral(10), IntegerLiteral(2)),
        IntegerLiteral(3),
    )

  def test_parentheses_override_precedence(self, grammar):
    result = grammar.parse_expression("(1 + 2) * 3")
    assert result.operator == BinaryOperator.MULTIPLY
    assert result.lhs.operator == BinaryOperator.ADD

  def test_logical_precedence(self, grammar):
    result = grammar.parse_expression("a && b || c")
    assert result.operator == BinaryOperator.LOGICAL_OR
    assert result.lhs == BinaryExpression(BinaryOperator.LOGICAL_AND, Identifier("a"), Identifier("b"))

  def test_comparison_below_arithmetic(self, grammar):
    result = grammar.parse_expression("x + 1 <= y")
    assert result.operator == BinaryOperator.LESS_OR_EQUAL
    assert result.lhs.operator == BinaryOperator.ADD

  def test_subtraction_without_spaces(self, grammar):
    result = grammar.parse_expression("x-1")
    assert result == BinaryExpression(BinaryOperator.SUBTRACT, Identifier("x"), IntegerLiteral(1))

  @pytest.mark.parametrize("source,operator", [
      ("x++", UnaryOperator.INCREMENT),
      ("x--", UnaryOperator.DECREMENT),
  ])
  def test_postfix(self, grammar, source, operator):
    assert grammar.parse_expression(source) == UnaryExpression(operator, Identifier("x"))

  def test_equality_is_not_assignment(self, grammar):
    result = grammar.parse_expression("x == 1")
    assert result == BinaryExpression(BinaryOperator.EQUAL, Identifier("x"), IntegerLiteral(1))


class TestStatements:
  """Bindings, control flow and calls"""

  @pytest.fixture
  def grammar(self):
    return TernGrammar()

  def test_declarations(self, grammar):
    assert grammar.parse_expression("let x = 5") == Declaration("x", IntegerLiteral(5))
    assert grammar.parse_expression("mutable let y = 0") == Declaration("y", IntegerLiteral(0), mutable=True)

  def test_assignment(self, grammar):
    assert grammar.parse_expression("x = 1") == Assignment("x", IntegerLiteral(1))

  def test_if_with_and_without_else(self, grammar):
    result = grammar.parse_expression('if (ok) "yes" else "no"')
    assert result == IfExpression(Identifier("ok"), TextLiteral("yes"), TextLiteral("no"))
    assert grammar.parse_expression("if (ok) 1").else_clause is None

  def test_while(self, grammar):
    result = grammar.parse_expression("while (i < 3) { i++ }")
    assert isinstance(result, WhileExpression)
    assert result.body == Block((UnaryExpression(UnaryOperator.INCREMENT, Identifier("i")),))

  def test_print(self, grammar):
    assert grammar.parse_expression('print("hi")') == Print(TextLiteral("hi"))

  def test_block_separators(self, grammar):
    result = grammar.parse_expression("{ let x = 1; x + 1; }")
    assert len(result.elements) == 2
    assert isinstance(result.elements[0], Declaration)
    assert grammar.parse_expression("{ }") == Block(())

  def test_positional_call(self, grammar):
    result = grammar.parse_expression("add(1, 2)")
    assert result == FunctionCall("add", (IntegerLiteral(1), IntegerLiteral(2)))
    assert grammar.parse_expression("main()") == FunctionCall("main", ())

  def test_labeled_call(self, grammar):
    result = grammar.parse_expression("add([a = 1, b = 2])")
    assert result == LabeledCall("add", (
        LabeledArgument("a", IntegerLiteral(1)),
        LabeledArgument("b", IntegerLiteral(2)),
    ))

  def test_sequence_argument_is_positional(self, grammar):
    result = grammar.parse_expression("size([a])")
    assert result == FunctionCall("size", (SequenceLiteral((Identifier("a"),)),))


class TestPrograms:

  def test_top_level_definitions(self, parser):
    code = """
    // entry point
    fn main() { add(1, 2) }
    fn add(a, b) { a + b }
    let limit = 10;
    mutable let total = 0
    """
    program = parser.parse_string(code)
    assert len(program.definitions) == 4
    assert isinstance(program.definitions[0], FunctionDefinition)
    assert program.definitions[1].params == ("a", "b")
    assert program.definitions[2] == ValueDefinition("limit", IntegerLiteral(10))
    assert program.definitions[3].mutable

  def test_empty_program(self, parser):
    assert parser.parse_string("").definitions == ()

  def test_parse_file(self, parser, tmp_path):
    script = tmp_path / "hello.tern"
    script.write_text('fn main() { print("hello") }\n', encoding="utf-8")
    program = parser.parse_file(str(script))
    assert program.definitions[0].name == "main"

  def test_find_nodes_by_type(self, parser):
    program = parser.parse_string("fn main() { f(1); g(f(2)) }")
    calls = find_nodes_by_type(program, FunctionCall)
    assert sorted(call.name for call in calls) == ["f", "f", "g"]

  def test_pretty_print_tree(self, parser):
    program = parser.parse_string("fn main() { 1 + 2 }")
    rendered = pretty_print_tree(program)
    assert "FunctionDefinition(name='main', params=())" in rendered
    assert "BinaryExpression(operator=+)" in rendered


class TestParseErrors:

  def test_integer_literal_out_of_range(self, parser):
    with pytest.raises(TernParseError) as excinfo:
      parser.parse_expression("9223372036854775808")
    assert "outside the 64-bit range" in str(excinfo.value)

  def test_integer_literal_bounds(self, parser):
    assert parser.parse_expression("-9223372036854775808") == IntegerLiteral(-9223372036854775808)
    assert parser.parse_expression("9223372036854775807") == IntegerLiteral(9223372036854775807)

  def test_unclosed_paren(self, parser):
    with pytest.raises(TernParseError) as excinfo:
      parser.parse_string("fn main( { 1 }")
    assert "Parse error" in str(excinfo.value)

  def test_error_reports_filename_and_position(self, parser):
    with pytest.raises(TernParseError) as excinfo:
      parser.parse_string("fn main() { 1 }\nfn broken(", "demo.tern")
    error = excinfo.value
    assert error.filename == "demo.tern"
    assert str(error).startswith("demo.tern: ")
    assert error.line >= 1

  def test_keyword_cannot_be_bound(self, parser):
    with pytest.raises(TernParseError):
      parser.parse_expression("let while = 1")

  def test_missing_right_hand_side(self, parser):
    with pytest.raises(TernParseError):
      parser.parse_expression("let x =")
