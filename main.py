"""
Tern Programming Language - Main Entry Point
Runs scripts, shows parsed trees and offers an interactive prompt
"""

import sys
import argparse
from pathlib import Path
from typing import List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from error_handling import TernParseError, TernRuntimeError, format_runtime_error
from interpreter import DEFAULT_MAX_CALL_DEPTH, Interpreter, create_interpreter
from parsing import create_parser, pretty_print_tree
from stdlib import tern_show


VERSION = "0.1.0"


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='tern',
      description='Tern Programming Language - a small expression-oriented interpreter',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.tern            # Run a Tern script
  %(prog)s -i                     # Interactive mode
  %(prog)s --parse script.tern    # Parse and show the tree
  %(prog)s --debug script.tern    # Run with an evaluation trace on stderr
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Tern script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show the tree (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Trace every evaluated node to stderr'
  )

  parser.add_argument(
      '--max-depth',
      type=int,
      default=DEFAULT_MAX_CALL_DEPTH,
      help='Maximum function call depth before StackOverflow (default: %(default)s)'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=f'Tern v{VERSION}'
  )

  return parser


def parse_file(script_path: str) -> None:
  """Parse a Tern script file and show the tree"""
  try:
    parser = create_parser()
    program = parser.parse_file(script_path)

    print(f"Parsed {len(program.definitions)} top-level definitions:")
    print("=" * 50)
    print(pretty_print_tree(program))

  except TernParseError as e:
    print(f"Parse error in '{script_path}': {e}")
    sys.exit(1)


def run_script_file(script_path: str, debug: bool = False,
                    max_depth: int = DEFAULT_MAX_CALL_DEPTH) -> None:
  """Run a Tern script file and print the value of main"""
  try:
    parser = create_parser()
    interpreter = create_interpreter(debug=debug, max_call_depth=max_depth)

    if debug:
      print(f"Parsing {script_path}...", file=sys.stderr)
    program = parser.parse_file(script_path)
    if debug:
      print(f"Parsed {len(program.definitions)} definitions", file=sys.stderr)

    result = interpreter.run_program(program)
    print(tern_show(result))

  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'")
    print("  Hint: Make sure you have read permissions for this file")
    sys.exit(1)
  except TernParseError as e:
    print(f"Parse error in '{script_path}': {e}")
    sys.exit(1)
  except TernRuntimeError as e:
    print(f"\n{'='*70}")
    print(f"Runtime Error in '{script_path}'")
    print(f"{'='*70}")
    print(format_runtime_error(e))
    sys.exit(1)


def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.tern_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First run, no history yet

  readline.set_history_length(1000)

  completions = [
      "let", "mutable", "fn", "if", "else", "while", "print", "true", "false",
      ":env", ":fns", ":help", "exit"
  ]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def evaluate_line(code: str, parser, interpreter: Interpreter) -> str:
  """
  Evaluate one line of interactive input.

  Expressions are evaluated against the session state; anything that only
  parses as a program (function definitions) is loaded into it.
  """
  try:
    expression = parser.parse_expression(code, "<repl>")
  except TernParseError as expression_error:
    try:
      program = parser.parse_string(code, "<repl>")
    except TernParseError:
      # Report where the line stopped reading as an expression
      raise expression_error from None
    interpreter.load(program)
    names = ", ".join(definition.name for definition in program.definitions)
    return f"Defined: {names}"

  result = interpreter.evaluate(expression)
  return f"=> {tern_show(result, nested=True)} : {result.type_name}"


def run_interactive_mode(debug: bool = False, max_depth: int = DEFAULT_MAX_CALL_DEPTH) -> None:
  """Run Tern in interactive mode with one long-lived interpreter"""
  print(f"Tern v{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_parser()
  interpreter = create_interpreter(debug=debug, max_call_depth=max_depth)

  while True:
    try:
      code = input("tern> ").strip()
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    if code == "exit":
      break
    if not code:
      continue

    if code == ":env":
      variables = interpreter.variables()
      if not variables:
        print("  (no variables)")
      for name, value in variables.items():
        print(f"  {name} = {tern_show(value, nested=True)}")
      continue

    if code == ":fns":
      names = interpreter.function_names()
      print("  " + (", ".join(names) if names else "(no functions)"))
      continue

    if code == ":help":
      print("REPL Commands:")
      print("  :env              - Show current variables")
      print("  :fns              - Show defined functions")
      print("  :help             - Show this help")
      print("  exit              - Exit REPL")
      print()
      print("Language features:")
      print("  let x = 5                 - Immutable binding")
      print("  mutable let y = 0         - Reassignable binding")
      print("  fn add(a, b) { a + b }    - Function definition")
      print("  add(1, 2), add([a=1, b=2])")
      continue

    try:
      print(evaluate_line(code, parser, interpreter))
    except TernParseError as e:
      print(f"Parse error: {e}")
    except TernRuntimeError as e:
      print(f"\nRuntime Error:")
      print(format_runtime_error(e))


def show_language_info() -> None:
  """Show Tern language information"""
  print("Tern Programming Language")
  print("=" * 50)
  print("An expression-oriented language with:")
  print("• Integers, booleans, text, sequences, sets and mappings")
  print("• Immutable and mutable bindings")
  print("• Positional and labeled function calls")
  print()


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for Tern"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.script:
    if not Path(args.script).exists():
      print(f"Error: Script file '{args.script}' does not exist")
      sys.exit(1)

    if args.parse:
      parse_file(args.script)
    else:
      run_script_file(args.script, debug=args.debug, max_depth=args.max_depth)

  elif args.interactive:
    run_interactive_mode(debug=args.debug, max_depth=args.max_depth)

  else:
    arg_parser.print_help()
    print()
    show_language_info()


if __name__ == "__main__":
  main()
