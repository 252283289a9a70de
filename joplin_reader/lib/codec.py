"""Item text format.

Items serialize as

	Title

	Body line 1
	Body line 2

	key: value
	type_: 1

Because the body may itself contain blank lines, the only reliable way to
split it from the properties is to read the lines backwards: everything up
to the first blank line (seen from the end) is `key: value` properties, the
rest is title + body.
"""
from __future__ import annotations
import re
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from enum import IntEnum
from typing import Callable, Dict, List, Mapping, Optional, Reversible
from .errors import FormatError

class ItemType(IntEnum):
	UNDEFINED = 0
	NOTE = 1
	FOLDER = 2
	SETTING = 3
	RESOURCE = 4
	TAG = 5
	NOTE_TAG = 6
	SEARCH = 7
	ALARM = 8
	MASTER_KEY = 9
	ITEM_CHANGE = 10
	NOTE_RESOURCE = 11
	RESOURCE_LOCAL_STATE = 12
	REVISION = 13
	MIGRATION = 14
	SMART_FILTER = 15
	COMMAND = 16

	@classmethod
	def _missing_(cls, value):
		return cls.UNDEFINED

_INT = re.compile(r'[+-]?[0-9]+')
_FLOAT = re.compile(r'[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?(?:inf|infinity|nan)', re.IGNORECASE)
_TIMESTAMP = re.compile(r'([0-9]{4})-([0-9]{2})-([0-9]{2})T([0-9]{2}):([0-9]{2}):([0-9]{2})(?:\.([0-9]{1,9}))?Z')

def parse_int(value: str, bits: int = 32) -> Optional[int]:
	value = value.strip()
	if not _INT.fullmatch(value): return None
	n = int(value)
	limit = 1 << (bits - 1)
	return n if -limit <= n < limit else None

def parse_float(value: str) -> Optional[float]:
	value = value.strip()
	return float(value) if _FLOAT.fullmatch(value) else None

def parse_bool(value: str) -> Optional[bool]:
	n = parse_int(value, bits=8)
	return None if n is None else n == 1

def parse_timestamp(value: str) -> Optional[datetime]:
	"""Parse `2021-01-01T00:00:00.000Z`; fractions beyond microseconds are truncated."""
	m = _TIMESTAMP.fullmatch(value.strip())
	if not m: return None
	year, month, day, hour, minute, second, fraction = m.groups()
	micro = int((fraction or '0').ljust(6, '0')[:6])
	try:
		return datetime(int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tzinfo=timezone.utc)
	except ValueError:
		return None

def format_timestamp(value: datetime) -> str:
	if value.tzinfo is not None: value = value.astimezone(timezone.utc)
	return value.strftime('%Y-%m-%dT%H:%M:%S.') + f"{value.microsecond // 1000:03d}Z"

def _text(value: str) -> Optional[str]:
	return value

_CONVERTERS: Dict[str, Callable[[str], object]] = {
	'title': _text,
	'body': _text,
	'created_time': parse_timestamp,
	'altitude': parse_float,
	'latitude': parse_float,
	'longitude': parse_float,
	'author': _text,
	'source_url': _text,
	'is_todo': parse_bool,
	'todo_due': parse_bool,
	'todo_completed': parse_bool,
	'source': _text,
	'source_application': _text,
	'application_data': _text,
	'order': parse_int,
	'user_created_time': parse_timestamp,
	'user_updated_time': parse_timestamp,
	'markup_language': _text,
	'is_shared': parse_bool,
}

@dataclass
class NoteProperties:
	"""Decoded content of an item. Every field is optional."""
	title: Optional[str] = None
	body: Optional[str] = None
	created_time: Optional[datetime] = None
	altitude: Optional[float] = None
	latitude: Optional[float] = None
	longitude: Optional[float] = None
	author: Optional[str] = None
	source_url: Optional[str] = None
	is_todo: Optional[bool] = None
	todo_due: Optional[bool] = None
	todo_completed: Optional[bool] = None
	source: Optional[str] = None
	source_application: Optional[str] = None
	application_data: Optional[str] = None
	order: Optional[int] = None
	user_created_time: Optional[datetime] = None
	user_updated_time: Optional[datetime] = None
	markup_language: Optional[str] = None
	is_shared: Optional[bool] = None

	@classmethod
	def from_mapping(cls, values: Mapping[str, str]) -> 'NoteProperties':
		"""Convert known keys; a value that does not parse leaves its field unset."""
		kwargs = {}
		for key, value in values.items():
			convert = _CONVERTERS.get(key)
			if convert is not None:
				kwargs[key] = convert(value)
		return cls(**kwargs)

	def to_mapping(self) -> Dict[str, str]:
		"""String form of the set fields, the inverse of `from_mapping`."""
		out = {}
		for f in fields(self):
			value = getattr(self, f.name)
			if value is None: continue
			if isinstance(value, bool): value = '1' if value else '0'
			elif isinstance(value, datetime): value = format_timestamp(value)
			out[f.name] = str(value)
		return out

def split_lines(text: str) -> List[str]:
	"""Split on newlines, dropping a trailing `\\r` and the empty line after a final newline."""
	lines = text.split('\n')
	if lines and lines[-1] == '': lines.pop()
	return [line[:-1] if line.endswith('\r') else line for line in lines]

def deserialize(lines: Reversible[str]) -> Dict[str, str]:
	"""Split serialized item lines into a property map including `title` and, for notes, `body`."""
	values: Dict[str, str] = {}
	body: List[str] = []
	in_props = True
	for line in reversed(lines):
		if in_props:
			if not line.strip():
				in_props = False
				continue
			key, sep, value = line.partition(':')
			if not sep: raise FormatError(f"Invalid property format: {line.strip()!r}")
			# Read backwards, so the first occurrence in file order is assigned last
			values[key.strip()] = value.strip()
		else:
			body.append(line)
	body.reverse()

	type_ = parse_int(values.get('type_', ''))
	if type_ is None: raise FormatError('Missing required property: `type_`')
	if body:
		values['title'] = body.pop(0)
		if body: body.pop(0)
	if ItemType(type_) is ItemType.NOTE:
		values['body'] = '\n'.join(body)
	return values

def deserialize_text(text: str) -> Dict[str, str]:
	return deserialize(split_lines(text))

def serialize(title: str, body: str, properties: Mapping[str, str]) -> str:
	"""Inverse of `deserialize` for note items."""
	props = [f"{k}: {v}" for k, v in properties.items() if k not in ('title', 'body')]
	return '\n'.join([title, '', body, ''] + props)
