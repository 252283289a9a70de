"""Store-level access: master keys plus an index of every item file."""
from __future__ import annotations
import logging, time
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional
from config.settings import KEY_FILE_EXTENSION
from . import crypto
from .errors import FileReadError, NoEncryptionKey, NoteNotFound, ReaderError
from .key import MasterKey, load_master_key
from .note import NoteRecord

log = logging.getLogger(__name__)

def parse_password(entry: str) -> Optional[tuple[str, str]]:
	"""Split `<key_id>,<passphrase>`; None when there is no comma."""
	key_id, sep, passphrase = entry.partition(',')
	return (key_id, passphrase) if sep else None

class Notebook:
	"""Read-only view of a note store directory.

	`passwords` are `"<master_key_id>,<passphrase>"` strings. Each named key
	file must exist; keys that do not unlock are skipped.
	"""

	def __init__(self, store_dir: Path | str, passwords: Iterable[str] = (),
			decrypt: crypto.Decrypt = crypto.decrypt, clock: Callable[[], float] = time.time):
		self.store_dir = Path(store_dir)
		self._master_keys: Dict[str, MasterKey] = {}
		self._notes: Dict[str, NoteRecord] = {}

		for entry in passwords:
			pair = parse_password(entry)
			if pair is None: continue
			key_id, passphrase = pair
			key_path = self.store_dir / f"{key_id}{KEY_FILE_EXTENSION}"
			if not key_path.is_file():
				raise NoEncryptionKey(str(key_path))
			try:
				self._master_keys[key_id] = load_master_key(key_path, key_id, passphrase, decrypt)
			except ReaderError as e:
				log.warning("Skipping master key %s: %s", key_id, e)

		try:
			paths = sorted(self.store_dir.iterdir())
		except OSError as e:
			raise FileReadError(f"Failed to read folder {self.store_dir}: {e}") from e
		for path in paths:
			if not path.is_file() or path.stem in self._master_keys: continue
			try:
				self._notes[path.stem] = NoteRecord.from_path(path, decrypt=decrypt, clock=clock)
			except ReaderError as e:
				log.warning("Skipping %s: %s", path.name, e)
		log.info("Indexed %d item(s) and %d master key(s) in %s", len(self._notes), len(self._master_keys), self.store_dir)

	def __len__(self) -> int:
		return len(self._notes)

	def __contains__(self, note_id: object) -> bool:
		return note_id in self._notes

	def __iter__(self) -> Iterator[NoteRecord]:
		return iter(self._notes.values())

	def note_ids(self) -> List[str]:
		return list(self._notes)

	def master_key_ids(self) -> List[str]:
		return list(self._master_keys)

	def get_note(self, note_id: str) -> NoteRecord:
		note = self._notes.get(note_id)
		if note is None: raise NoteNotFound(note_id)
		return note

	def read_note(self, note_id: str) -> str:
		"""Return the body of a note, decrypting it with its master key if needed."""
		note = self.get_note(note_id)
		encryption_key = None
		if note.is_encrypted():
			if note.encryption_key_id is None or note.encryption_key_id not in self._master_keys:
				raise NoEncryptionKey(note.encryption_key_id or '')
			encryption_key = self._master_keys[note.encryption_key_id]
		return note.read(encryption_key)

	def find_note(self, text: str) -> List[str]:
		"""Ids of readable notes whose title or body contains `text`."""
		found = []
		for note_id, note in self._notes.items():
			try:
				body = self.read_note(note_id)
			except ReaderError as e:
				log.debug("Not searching %s: %s", note_id, e)
				continue
			if text in body or text in (note.title or ''):
				found.append(note_id)
		if not found: raise NoteNotFound(search_text=text)
		return found
