"""
Tern Reader
pyparsing grammar turning Tern source text into the expression tree
consumed by the interpreter
"""

from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, List

from pyparsing import (
    Forward, Keyword, Literal, MatchFirst, Opt, ParseBaseException, ParseFatalException,
    ParserElement, QuotedString, Regex, StringEnd, Suppress, ZeroOrMore, dbl_slash_comment,
    infix_notation, one_of, OpAssoc
)

from error_handling import TernParseError, parse_error_from_exception
from values import INT_MAX, INT_MIN
from nodes import (
    Assignment, BinaryExpression, BinaryOperator, Block, BooleanLiteral,
    Declaration, Expression, FunctionCall, FunctionDefinition, FunctionLiteral,
    Identifier, IfExpression, IntegerLiteral, LabeledArgument, LabeledCall,
    MappingLiteral, Print, Program, SequenceLiteral, SetLiteral, TextLiteral,
    UnaryExpression, UnaryOperator, ValueDefinition, WhileExpression
)

# Enable packrat parsing for performance
ParserElement.enable_packrat()


KEYWORDS = ("let", "mutable", "fn", "if", "else", "while", "print", "true", "false")


# ============================================================================
# PARSE ACTIONS
# ============================================================================

def fold_binary(tokens):
    """Fold a flat `a op b op c` group into left-associative binary nodes"""
    items = tokens[0]
    node = items[0]
    for i in range(1, len(items), 2):
        node = BinaryExpression(BinaryOperator(items[i]), node, items[i + 1])
    return node


def fold_postfix(tokens):
    items = tokens[0]
    node = items[0]
    for symbol in items[1:]:
        node = UnaryExpression(UnaryOperator(symbol), node)
    return node


def make_declaration(tokens):
    # Optional leading 'mutable' makes three tokens instead of two
    return Declaration(tokens[-2], tokens[-1], mutable=len(tokens) == 3)


def make_value_definition(tokens):
    return ValueDefinition(tokens[-2], tokens[-1], mutable=len(tokens) == 3)


def make_integer(s, loc, tokens):
    value = int(tokens[0])
    if not INT_MIN <= value <= INT_MAX:
        raise ParseFatalException(s, loc, f"integer literal {tokens[0]} is outside the 64-bit range")
    return IntegerLiteral(value)


def make_if(tokens):
    else_clause = tokens[2] if len(tokens) > 2 else None
    return IfExpression(tokens[0], tokens[1], else_clause)


# ============================================================================
# GRAMMAR
# ============================================================================

class TernGrammar:
    """Tern grammar definition using pyparsing"""

    def __init__(self):
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup the grammar from literals up to whole programs"""

        expression = Forward()

        LPAR, RPAR, LBRACK, RBRACK, LBRACE, RBRACE = map(Suppress, "()[]{}")
        COMMA, SEMI, COLON = map(Suppress, ",;:")
        # '=' but never the first half of '=='
        ASSIGN = Regex(r"=(?!=)").suppress()

        let_kw, mutable_kw, fn_kw, if_kw, else_kw, while_kw, print_kw, true_kw, false_kw = (
            Keyword(word) for word in KEYWORDS
        )
        any_keyword = MatchFirst([Keyword(word) for word in KEYWORDS])

        def comma_list(item):
            return Opt(item + ZeroOrMore(COMMA + item))

        # Names: raw strings for binding positions, Identifier nodes for references
        name = (~any_keyword + Regex(r"[A-Za-z_][A-Za-z0-9_]*")).set_name("identifier")
        identifier = name.copy().set_parse_action(lambda t: Identifier(t[0]))

        # Literals
        integer = Regex(r"-?\d+").set_name("integer").set_parse_action(make_integer)
        boolean = (
            true_kw.copy().set_parse_action(lambda: BooleanLiteral(True)) |
            false_kw.copy().set_parse_action(lambda: BooleanLiteral(False))
        )
        text = QuotedString('"', esc_char='\\').set_parse_action(lambda t: TextLiteral(t[0]))

        sequence = (LBRACK + comma_list(expression) + RBRACK).set_parse_action(
            lambda t: SequenceLiteral(tuple(t))
        )
        set_literal = (Suppress("#{") + comma_list(expression) + RBRACE).set_parse_action(
            lambda t: SetLiteral(tuple(t))
        )
        mapping_key = name | QuotedString('"', esc_char='\\')
        mapping_entry = (mapping_key + COLON + expression).set_parse_action(
            lambda t: (t[0], t[1])
        )
        mapping = (Suppress("%{") + comma_list(mapping_entry) + RBRACE).set_parse_action(
            lambda t: MappingLiteral(tuple(t))
        )

        # Blocks: ';' separates elements, a trailing one is allowed
        block = (LBRACE + ZeroOrMore(expression + Opt(SEMI)) + RBRACE).set_parse_action(
            lambda t: Block(tuple(t))
        )

        params = LPAR + comma_list(name) + RPAR
        function_literal = (Suppress(fn_kw) + params + block).set_parse_action(
            lambda t: FunctionLiteral(tuple(t[:-1]), t[-1])
        )

        # Control flow and print
        if_expr = (
            Suppress(if_kw) + LPAR + expression + RPAR + expression +
            Opt(Suppress(else_kw) + expression)
        ).set_parse_action(make_if)
        while_expr = (Suppress(while_kw) + LPAR + expression + RPAR + expression).set_parse_action(
            lambda t: WhileExpression(t[0], t[1])
        )
        print_expr = (Suppress(print_kw) + LPAR + expression + RPAR).set_parse_action(
            lambda t: Print(t[0])
        )

        # Calls: f([a = 1, b = 2]) is labeled, f(1, 2) is positional
        labeled_argument = (name + ASSIGN + expression).set_parse_action(
            lambda t: LabeledArgument(t[0], t[1])
        )
        labeled_call = (
            name + LPAR + LBRACK + labeled_argument + ZeroOrMore(COMMA + labeled_argument) +
            RBRACK + RPAR
        ).set_parse_action(lambda t: LabeledCall(t[0], tuple(t[1:])))
        positional_call = (name + LPAR + comma_list(expression) + RPAR).set_parse_action(
            lambda t: FunctionCall(t[0], tuple(t[1:]))
        )

        operand = (
            function_literal | if_expr | while_expr | print_expr | block |
            set_literal | mapping | sequence | text | integer | boolean |
            labeled_call | positional_call | identifier
        )

        # Operators, tightest binding first
        operation = infix_notation(operand, [
            (Regex(r"\+\+|--"), 1, OpAssoc.LEFT, fold_postfix),
            (one_of("* / %"), 2, OpAssoc.LEFT, fold_binary),
            (Regex(r"\+(?!\+)|-(?!-)"), 2, OpAssoc.LEFT, fold_binary),
            (Regex(r"<=|>=|<|>"), 2, OpAssoc.LEFT, fold_binary),
            (Regex(r"==|!="), 2, OpAssoc.LEFT, fold_binary),
            (Literal("&&"), 2, OpAssoc.LEFT, fold_binary),
            (Literal("||"), 2, OpAssoc.LEFT, fold_binary),
        ])

        declaration = (Opt(mutable_kw) + Suppress(let_kw) + name + ASSIGN + expression).set_parse_action(
            make_declaration
        )
        assignment = (name + ASSIGN + expression).set_parse_action(
            lambda t: Assignment(t[0], t[1])
        )

        expression <<= declaration | assignment | operation

        # Top level
        function_definition = (Suppress(fn_kw) + name + params + block).set_parse_action(
            lambda t: FunctionDefinition(t[0], tuple(t[1:-1]), t[-1])
        )
        value_definition = (
            Opt(mutable_kw) + Suppress(let_kw) + name + ASSIGN + expression + Opt(SEMI)
        ).set_parse_action(make_value_definition)

        program = (ZeroOrMore(function_definition | value_definition) + StringEnd()).set_parse_action(
            lambda t: Program(tuple(t))
        )
        single_expression = expression + StringEnd()

        program.ignore(dbl_slash_comment)
        single_expression.ignore(dbl_slash_comment)

        self.expression = expression
        self.program = program
        self.single_expression = single_expression

    def parse_program(self, text: str, filename: str = "<input>") -> Program:
        """Parse a complete Tern program"""
        try:
            return self.program.parse_string(text, parse_all=True)[0]
        except ParseBaseException as e:
            raise parse_error_from_exception(e, text, filename) from None

    def parse_expression(self, text: str, filename: str = "<input>") -> Expression:
        """Parse a single Tern expression"""
        try:
            return self.single_expression.parse_string(text, parse_all=True)[0]
        except ParseBaseException as e:
            raise parse_error_from_exception(e, text, filename) from None


class TernParser:
    """Entry point for reading Tern source from strings and files"""

    def __init__(self):
        self.grammar = TernGrammar()

    def parse_file(self, filepath: str) -> Program:
        """Parse a Tern source file"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except UnicodeDecodeError as e:
            raise TernParseError(f"Cannot decode file {filepath}: {e}", filename=filepath)
        return self.grammar.parse_program(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> Program:
        """Parse Tern source code from string"""
        return self.grammar.parse_program(text, filename)

    def parse_expression(self, text: str, filename: str = "<input>") -> Expression:
        """Parse a single Tern expression"""
        return self.grammar.parse_expression(text, filename)


def create_parser() -> TernParser:
    """Create a Tern parser"""
    return TernParser()


# ============================================================================
# TREE UTILITIES
# ============================================================================

def pretty_print_tree(node: Any, indent: int = 0) -> str:
    """Render a parsed tree one node per line"""
    prefix = "  " * indent

    if isinstance(node, tuple):
        lines = []
        for item in node:
            lines.append(pretty_print_tree(item, indent))
        return "\n".join(lines)

    if not is_dataclass(node):
        return f"{prefix}{node!r}"

    simple = []
    nested = []
    for f in fields(node):
        value = getattr(node, f.name)
        if is_dataclass(value) or (isinstance(value, tuple) and value):
            nested.append((f.name, value))
        elif isinstance(value, Enum):
            simple.append(f"{f.name}={value.value}")
        else:
            simple.append(f"{f.name}={value!r}")

    lines = [f"{prefix}{type(node).__name__}({', '.join(simple)})"]
    for field_name, value in nested:
        lines.append(f"{prefix}  {field_name}:")
        lines.append(pretty_print_tree(value, indent + 2))
    return "\n".join(lines)


def find_nodes_by_type(tree: Any, node_type: type) -> List[Any]:
    """Find all nodes of a specific type in a parsed tree"""
    result = []

    def search(node):
        if isinstance(node, node_type):
            result.append(node)
        if isinstance(node, tuple):
            for item in node:
                search(item)
        elif is_dataclass(node):
            for f in fields(node):
                search(getattr(node, f.name))

    search(tree)
    return result
