"""
Test configuration for Tern tests
"""

import io
import sys
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from interpreter import create_interpreter
from parsing import create_parser


@pytest.fixture
def output():
  """Captures what `print` expressions write"""
  return io.StringIO()


@pytest.fixture
def interpreter(output):
  """Provide a fresh interpreter for each test"""
  return create_interpreter(output=output)


@pytest.fixture
def parser():
  return create_parser()


@pytest.fixture
def run_source(parser, interpreter):
  """Parse and run a whole program, returning the value of main"""
  def run(source):
    return interpreter.run_program(parser.parse_string(source))
  return run
