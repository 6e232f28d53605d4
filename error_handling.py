"""
Error handling for Tern
Runtime error taxonomy shared by the evaluator, plus enhanced parse errors
built from pyparsing exceptions
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from pyparsing import ParseBaseException
import re


# ============================================================================
# RUNTIME ERRORS
# ============================================================================

class ErrorKind(Enum):
    """Closed set of runtime failures the evaluator can surface"""
    TYPE_MISMATCH = "TypeMismatch"
    UNBOUND_NAME = "UnboundName"
    UNKNOWN_FUNCTION = "UnknownFunction"
    IMMUTABLE_ASSIGNMENT = "ImmutableAssignment"
    MISSING_LABEL = "MissingLabel"
    ARITY_MISMATCH = "ArityMismatch"
    DIVISION_BY_ZERO = "DivisionByZero"
    MISSING_ENTRY_POINT = "MissingEntryPoint"
    STACK_OVERFLOW = "StackOverflow"
    INVALID_OPERAND = "InvalidOperand"


class TernRuntimeError(Exception):
    """Base class for every runtime failure; fatal to the current evaluation"""
    kind: ErrorKind

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class TypeMismatchError(TernRuntimeError):
    kind = ErrorKind.TYPE_MISMATCH


class UnboundNameError(TernRuntimeError):
    kind = ErrorKind.UNBOUND_NAME


class UnknownFunctionError(TernRuntimeError):
    kind = ErrorKind.UNKNOWN_FUNCTION


class ImmutableAssignmentError(TernRuntimeError):
    kind = ErrorKind.IMMUTABLE_ASSIGNMENT


class MissingLabelError(TernRuntimeError):
    kind = ErrorKind.MISSING_LABEL


class ArityMismatchError(TernRuntimeError):
    kind = ErrorKind.ARITY_MISMATCH


class DivisionByZeroError(TernRuntimeError):
    kind = ErrorKind.DIVISION_BY_ZERO


class MissingEntryPointError(TernRuntimeError):
    kind = ErrorKind.MISSING_ENTRY_POINT


class StackOverflowError(TernRuntimeError):
    kind = ErrorKind.STACK_OVERFLOW


class InvalidOperandError(TernRuntimeError):
    kind = ErrorKind.INVALID_OPERAND


def format_runtime_error(error: TernRuntimeError) -> str:
    """Format a runtime error for display by a driver"""
    error_msg = f"Runtime error ({error.kind.value}):\n"
    error_msg += f"  {error.message}\n"

    for key, value in error.context.items():
        error_msg += f"  {key}: {value}\n"

    return error_msg


# ============================================================================
# PARSE ERRORS (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    message: str,
    location: int,
    line: int,
    column: int,
    expected: Optional[List[str]] = None,
    got: Optional[str] = None,
    context: Optional[str] = None,
    suggestions: Optional[List[str]] = None
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'message': message,
        'location': location,
        'line': line,
        'column': column,
        'expected': expected or [],
        'got': got,
        'context': context,
        'suggestions': suggestions or []
    }


def format_parse_error(error: Dict) -> str:
    """Format parse error as string"""
    if error['line']:
        error_msg = f"Parse error at line {error['line']}, column {error['column']}:\n"
    else:
        error_msg = "Parse error:\n"
    error_msg += f"  {error['message']}\n"

    if error['expected']:
        error_msg += f"  Expected: {', '.join(error['expected'])}\n"

    if error['got']:
        error_msg += f"  Got: {error['got']}\n"

    if error['context']:
        error_msg += f"  Context:\n{error['context']}\n"

    if error['suggestions']:
        error_msg += "  Suggestions:\n"
        for suggestion in error['suggestions']:
            error_msg += f"    - {suggestion}\n"

    return error_msg


def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^ Error here")

    return '\n'.join(context_parts)


def extract_expected(exc: ParseBaseException) -> List[str]:
    """Extract expected tokens from exception"""
    msg = str(exc)
    expected_match = re.search(r"Expected\s+(.+?)(?:,\s+found|\s+\(|$)", msg)
    if expected_match:
        return [expected_match.group(1)]
    return ["valid syntax"]


def extract_got(source_text: str, line_num: int, col_num: int) -> str:
    """Extract what was actually found at the error location"""
    lines = source_text.split('\n')

    if 1 <= line_num <= len(lines):
        error_line = lines[line_num - 1]
        start = max(0, col_num - 1)
        got_text = error_line[start:start + 10].strip()
        if got_text:
            return f"'{got_text}'"
        return "end of line"
    return "end of input"


def generate_suggestions(got: str, expected: List[str]) -> List[str]:
    """Generate helpful suggestions based on the error"""
    suggestions = []

    if got.startswith("'{"):
        suggestions.append("Set literals are written #{...} and mappings %{key: value}")

    if got.startswith("'=") and not got.startswith("'=="):
        suggestions.append("Declarations need 'let' or 'mutable let' before the name")

    if "';'" in str(expected):
        suggestions.append("Separate expressions inside a block with ';'")

    if got == "end of input":
        suggestions.append("Check for an unclosed '(', '[' or '{'")

    return suggestions


def enhance_parse_exception_dict(exc: ParseBaseException, source_text: str) -> Dict:
    """Convert pyparsing exception to enhanced Tern error dict"""
    line_num = exc.lineno
    col_num = exc.column

    context = get_context_lines(source_text, line_num, col_num)
    expected = extract_expected(exc)
    got = extract_got(source_text, line_num, col_num)
    suggestions = generate_suggestions(got, expected)

    return make_parse_error(
        message=str(exc),
        location=exc.loc,
        line=line_num,
        column=col_num,
        expected=expected,
        got=got,
        context=context,
        suggestions=suggestions
    )


class TernParseError(Exception):
    """Syntax error with source position and suggestions"""
    def __init__(self, message: str, location: int = 0, line: int = 0, column: int = 0,
                 expected: Optional[List[str]] = None, got: Optional[str] = None,
                 context: Optional[str] = None, suggestions: Optional[List[str]] = None,
                 filename: str = "<input>"):
        self.message = message
        self.location = location
        self.line = line
        self.column = column
        self.expected = expected or []
        self.got = got
        self.context = context
        self.suggestions = suggestions or []
        self.filename = filename
        super().__init__(message)

    def __str__(self) -> str:
        error_dict = make_parse_error(
            self.message, self.location, self.line, self.column,
            self.expected, self.got, self.context, self.suggestions
        )
        return f"{self.filename}: " + format_parse_error(error_dict)


def parse_error_from_exception(exc: ParseBaseException, source_text: str,
                               filename: str = "<input>") -> TernParseError:
    """Convert pyparsing exception to enhanced Tern error"""
    error_dict = enhance_parse_exception_dict(exc, source_text)
    return TernParseError(filename=filename, **error_dict)
