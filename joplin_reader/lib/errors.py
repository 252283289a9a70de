"""Errors raised while reading a note store."""
from __future__ import annotations

class ReaderError(Exception): ...

class FileReadError(ReaderError): ...
class FormatError(ReaderError): ...
class DecryptionError(ReaderError): ...

class KeyIdMismatch(ReaderError):
	def __init__(self, expected: str, found: str):
		super().__init__(f"Key id mismatch: expected {expected!r}, file has {found!r}")
		self.expected = expected; self.found = found

class NoEncryptionKey(ReaderError):
	def __init__(self, key: str):
		super().__init__(f"Encryption key {key!r} not found")
		self.key = key

class UnexpectedEndOfNote(ReaderError):
	def __init__(self, message: str = 'Unexpected end of note'):
		super().__init__(message)

class NoteNotFound(ReaderError):
	def __init__(self, note_id: str | None = None, search_text: str | None = None):
		if search_text is not None:
			msg = f"No note with text {search_text!r} found"
		else:
			msg = f"Note {note_id!r} not found"
		super().__init__(msg)
		self.note_id = note_id; self.search_text = search_text

class NoText(ReaderError):
	def __init__(self, note_id: str | None = None):
		super().__init__('No text found' if note_id is None else f"No text found in {note_id!r}")
		self.note_id = note_id
