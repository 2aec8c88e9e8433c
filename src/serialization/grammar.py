"""
Model Text Grammar
==================

One recursive grammar shared by the network and the convolution pipeline
serializers:

    record := field*
    field  := KEY ':' value ';'
    value  := '\\n' record (',\\n' record)*     nested records
            | atom                              text without ';' or newline

A record is an ordered dict whose values are either atoms (str) or lists
of child records. Fields are keyed, so readers don't depend on field order.

Example (a neuron nested in a layer nested in a network):

    epochs:1;alpha:0.1;layers:
    neurons:
    AF:ReLU;isInput:True;...;inputs:none;;;

Helpers at the bottom encode and decode the atom types the models use.
"""

import re
from typing import Dict, Iterable, List, Sequence, Union

import numpy as np

from src.errors import ArgumentError, ParseError


KEY_SEP = ':'
FIELD_END = ';'
ITEM_SEP = ','
NESTED_START = '\n'
NESTED_SEP = ',\n'
NONE_TOKEN = 'none'

_KEY_RE = re.compile(r'[A-Za-z][A-Za-z0-9_]*')
# Only the number forms repr() and str() write
_FLOAT_RE = re.compile(r'-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|-?inf|nan')
_INT_RE = re.compile(r'-?[0-9]+')
_RESERVED = (KEY_SEP, FIELD_END, ITEM_SEP, '\n')

Value = Union[str, List['Record']]
Record = Dict[str, Value]


# =============================================================================
# WRITER
# =============================================================================

def dumps(record: Record) -> str:
    """Write a record (and any nested records) as grammar text."""
    parts = []
    for key, value in record.items():
        if not _KEY_RE.fullmatch(key):
            raise ArgumentError(f"Invalid field key '{key}'")
        if isinstance(value, list):
            if value:
                text = NESTED_START + NESTED_SEP.join(dumps(child) for child in value)
            else:
                text = NONE_TOKEN
        else:
            if FIELD_END in value or '\n' in value:
                raise ArgumentError(f"Field '{key}' value contains a reserved character")
            text = value
        parts.append(f"{key}{KEY_SEP}{text}{FIELD_END}")
    return ''.join(parts)


# =============================================================================
# READER
# =============================================================================

class _Parser:
    """Recursive descent over the grammar text."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def parse_record(self) -> Record:
        record: Record = {}
        while not self.at_end() and self.text[self.pos] not in (ITEM_SEP, FIELD_END):
            key = self._read_key()
            if key in record:
                raise ParseError(f"Duplicate field '{key}'", self.pos)
            if self.text.startswith(NESTED_START, self.pos):
                self.pos += len(NESTED_START)
                children = [self.parse_record()]
                while self.text.startswith(NESTED_SEP, self.pos):
                    self.pos += len(NESTED_SEP)
                    children.append(self.parse_record())
                record[key] = children
            else:
                record[key] = self._read_atom(key)
            self._expect(FIELD_END, key)
        return record

    def _read_key(self) -> str:
        end = self.text.find(KEY_SEP, self.pos)
        if end == -1:
            raise ParseError("Truncated input: expected 'key:'", self.pos)
        key = self.text[self.pos:end]
        if not _KEY_RE.fullmatch(key):
            raise ParseError(f"Malformed field key '{key}'", self.pos)
        self.pos = end + len(KEY_SEP)
        return key

    def _read_atom(self, key: str) -> str:
        end = self.text.find(FIELD_END, self.pos)
        if end == -1:
            raise ParseError(f"Truncated input: field '{key}' is not terminated", self.pos)
        atom = self.text[self.pos:end]
        if '\n' in atom:
            raise ParseError(f"Field '{key}' value spans lines", self.pos)
        self.pos = end
        return atom

    def _expect(self, token: str, key: str) -> None:
        if not self.text.startswith(token, self.pos):
            found = self.text[self.pos:self.pos + 1] or 'end of input'
            raise ParseError(f"Expected '{token}' after field '{key}', found {found!r}", self.pos)
        self.pos += len(token)


def loads(text: str) -> Record:
    """
    Parse grammar text into a record.

    Trailing whitespace is ignored; anything else left over is an error.

    Raises:
        ParseError: If the text does not follow the grammar
    """
    parser = _Parser(text.rstrip())
    record = parser.parse_record()
    if not parser.at_end():
        raise ParseError("Unexpected trailing text", parser.pos)
    return record


# =============================================================================
# SCHEMA HELPERS
# =============================================================================

def require_fields(record: Record, keys: Sequence[str], context: str) -> None:
    """Check that record has exactly the given keys."""
    unknown = [k for k in record if k not in keys]
    if unknown:
        raise ParseError(f"Unknown field '{unknown[0]}' in {context}")
    missing = [k for k in keys if k not in record]
    if missing:
        raise ParseError(f"Missing field '{missing[0]}' in {context}")


def atom(record: Record, key: str) -> str:
    value = record[key]
    if isinstance(value, list):
        raise ParseError(f"Field '{key}' must be a plain value, not nested records")
    return value


def children(record: Record, key: str) -> List[Record]:
    """Nested records of a field; the 'none' atom reads as no children."""
    value = record[key]
    if isinstance(value, list):
        return value
    if value == NONE_TOKEN:
        return []
    raise ParseError(f"Field '{key}' must contain nested records")


def check_name(name: str) -> None:
    """Reject names that can't be written inside a comma list."""
    if not name or any(ch in name for ch in _RESERVED):
        raise ArgumentError(f"Name '{name}' is empty or contains one of , ; : or a newline")


# =============================================================================
# ATOM CODECS
# =============================================================================

def format_float(value: float) -> str:
    # repr is the shortest string that round-trips to the same float
    return repr(float(value))


def parse_float(token: str) -> float:
    if not _FLOAT_RE.fullmatch(token):
        raise ParseError(f"Expected a number, found '{token}'")
    return float(token)


def parse_int(token: str) -> int:
    if not _INT_RE.fullmatch(token):
        raise ParseError(f"Expected an integer, found '{token}'")
    return int(token)


def format_bool(value: bool) -> str:
    return 'True' if value else 'False'


def parse_bool(token: str) -> bool:
    lowered = token.lower()
    if lowered == 'true':
        return True
    if lowered == 'false':
        return False
    raise ParseError(f"Expected True or False, found '{token}'")


def format_float_list(values: Iterable[float]) -> str:
    items = [format_float(v) for v in values]
    return ITEM_SEP.join(items) if items else NONE_TOKEN


def parse_float_list(token: str) -> List[float]:
    if token == NONE_TOKEN:
        return []
    return [parse_float(item) for item in token.split(ITEM_SEP)]


def split_items(token: str) -> List[str]:
    """Split a comma list atom; 'none' is the empty list."""
    if token == NONE_TOKEN:
        return []
    return token.split(ITEM_SEP)


def join_items(items: Sequence[str]) -> str:
    return ITEM_SEP.join(items) if items else NONE_TOKEN


def format_digits(matrix: np.ndarray) -> str:
    """
    Encode a 2D matrix as one digit character per cell, row-major.

    Only integer cells in 0..9 can be written. Anything else raises
    instead of being rounded, since the reader could not recover it.
    """
    cells = []
    for value in np.asarray(matrix, dtype=np.float64).ravel():
        if not (0 <= value <= 9 and float(value).is_integer()):
            raise ArgumentError(f"Cell value {value!r} can't be encoded as a single digit 0-9")
        cells.append(str(int(value)))
    return ''.join(cells)


def parse_digits(token: str, rows: int, cols: int) -> np.ndarray:
    if len(token) != rows * cols or not token.isdigit() or not token.isascii():
        raise ParseError(f"Expected {rows * cols} digits for a {rows}x{cols} matrix, found '{token}'")
    return np.array([int(ch) for ch in token], dtype=np.float64).reshape(rows, cols)
