"""Per-item records.

A `NoteRecord` is created from the unencrypted metadata of an item file and
only reads (and decrypts) the content on demand. Decoded content is cached
and reloaded after `REFRESH_INTERVAL` seconds.
"""
from __future__ import annotations
import logging, time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional
from config.settings import REFRESH_INTERVAL
from . import crypto
from .codec import ItemType, NoteProperties, deserialize_text, parse_int, parse_timestamp, split_lines
from .envelope import open_envelope, parse_header
from .errors import DecryptionError, FileReadError, FormatError, NoEncryptionKey, NoText
from .key import read_key_values

log = logging.getLogger(__name__)

def _read_text(path: Path) -> str:
	try:
		return path.read_text(encoding='utf-8')
	except (OSError, UnicodeDecodeError) as e:
		raise FileReadError(f"Failed to read file {path}: {e}") from e

class NoteRecord:
	def __init__(self, path: Path, note_id: str, type_: ItemType, encryption_applied: bool,
			parent_id: Optional[str] = None, encryption_key_id: Optional[str] = None,
			updated_time: Optional[datetime] = None, decrypt: crypto.Decrypt = crypto.decrypt,
			clock: Callable[[], float] = time.time):
		self.path = Path(path)
		self.id = note_id
		self.type_ = type_
		self.encryption_applied = encryption_applied
		self.parent_id = parent_id
		self.encryption_key_id = encryption_key_id
		self.updated_time = updated_time
		# When the content was last loaded by us, in `clock` seconds
		self.last_read_time: Optional[float] = None
		self.properties = NoteProperties()
		self._decrypt = decrypt
		self._clock = clock

	@classmethod
	def from_path(cls, path: Path, decrypt: crypto.Decrypt = crypto.decrypt,
			clock: Callable[[], float] = time.time) -> 'NoteRecord':
		"""Index an item file from its unencrypted metadata.

		For encrypted items the envelope header is parsed here already, so a
		broken header fails at indexing rather than on the first read.
		"""
		path = Path(path)
		meta: Dict[str, str] = {}
		for line in split_lines(_read_text(path)):
			key, sep, value = line.partition(':')
			if sep and key in ('id', 'parent_id', 'type_', 'encryption_applied', 'encryption_cipher_text', 'updated_time'):
				meta[key] = value.strip()

		for required in ('id', 'type_', 'encryption_applied'):
			if required not in meta: raise FormatError(f"No `{required}` specified in {path.name}")
		type_ = parse_int(meta['type_'])
		if type_ is None: raise FormatError(f"Invalid value specified for `type_` in {path.name}")
		encryption_applied = parse_int(meta['encryption_applied'], bits=8)
		if encryption_applied is None: raise FormatError(f"Invalid value specified for `encryption_applied` in {path.name}")
		encrypted = encryption_applied == 1

		encryption_key_id = None
		if encrypted:
			if not meta.get('encryption_cipher_text'):
				raise FormatError(f"No encryption text in encrypted item {path.name}")
			encryption_key_id = parse_header(meta['encryption_cipher_text']).master_key_id

		updated_time = parse_timestamp(meta['updated_time']) if 'updated_time' in meta else None
		return cls(path, meta['id'], ItemType(type_), encrypted, meta.get('parent_id'),
			encryption_key_id, updated_time, decrypt=decrypt, clock=clock)

	def is_encrypted(self) -> bool:
		return self.encryption_applied

	def is_loaded(self) -> bool:
		return self.last_read_time is not None

	def is_stale(self) -> bool:
		if self.last_read_time is None: return True
		return self._clock() - self.last_read_time >= REFRESH_INTERVAL

	def _read_unencrypted(self) -> Dict[str, str]:
		return deserialize_text(_read_text(self.path))

	def _read_decrypted(self, encryption_key: Optional[str]) -> Dict[str, str]:
		if encryption_key is None: raise NoEncryptionKey(self.encryption_key_id or '')
		values = read_key_values(self.path)
		cipher_text = values.get('encryption_cipher_text')
		if not cipher_text: raise FormatError(f"No encryption text provided in {self.path.name}")
		if not cipher_text.isascii(): raise DecryptionError('Encrypted text is not ascii')
		_header, plaintext = open_envelope(cipher_text, encryption_key, self._decrypt)
		return deserialize_text(plaintext)

	def reload(self, encryption_key: Optional[str] = None) -> NoteProperties:
		"""Read the item again, replacing the cache only if everything succeeded."""
		if self.encryption_applied:
			values = self._read_decrypted(encryption_key)
		else:
			values = self._read_unencrypted()
		self.properties = NoteProperties.from_mapping(values)
		self.last_read_time = self._clock()
		log.debug("Loaded %s (%s)", self.id, self.type_.name.lower())
		return self.properties

	def read(self, encryption_key: Optional[str] = None) -> str:
		"""Return the body, reloading it first when never loaded or stale."""
		if self.is_stale():
			self.reload(encryption_key)
		if self.properties.body is None:
			raise NoText(self.id)
		return self.properties.body

	@property
	def title(self) -> Optional[str]:
		return self.properties.title

	def to_dict(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"type": self.type_.name.lower(),
			"parent_id": self.parent_id,
			"encrypted": self.encryption_applied,
			"encryption_key_id": self.encryption_key_id,
			"updated_time": self.updated_time.isoformat() if self.updated_time else None,
			"title": self.properties.title,
			"path": str(self.path),
		}

	def __repr__(self) -> str:
		return f"NoteRecord(id={self.id!r}, type={self.type_.name}, encrypted={self.encryption_applied})"
