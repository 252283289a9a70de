"""Encryption envelope: header parsing and chunked decryption.

An `encryption_cipher_text` value looks like

	JED 01 000022 05 <32 char master key id> <6 hex len><chunk> <6 hex len><chunk> ...

(without the spaces). Every chunk is an independent ciphertext; plaintext is
the concatenation of all chunks in stream order.
"""
from __future__ import annotations
import functools, io, logging, re
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, TextIO, Tuple, Union
from urllib.parse import unquote
from config.settings import (
	HEADER_IDENTIFIER, HEADER_VERSION, HEADER_LENGTH, MASTER_KEY_ID_LENGTH, CHUNK_LENGTH_SIZE, CHUNK_SIZE
)
from . import crypto
from .crypto import CryptoError
from .errors import DecryptionError, FormatError, UnexpectedEndOfNote

log = logging.getLogger(__name__)

_HEX = re.compile(r'[0-9a-fA-F]+')
_ASCII_ESCAPE = re.compile(r'%([0-9a-fA-F]{2})')
_UNICODE_ESCAPE = re.compile(r'%u[0-9a-fA-F]{4}')

class EncryptionMethod(IntEnum):
	"""Cipher suites by code. 4 is used for master keys, 1a (5) for notes; the rest are legacy."""
	UNDEFINED = 0x0
	SJCL = 0x1
	SJCL_2 = 0x2
	SJCL_3 = 0x3
	SJCL_4 = 0x4
	SJCL_1A = 0x5

	@classmethod
	def _missing_(cls, value):
		return cls.UNDEFINED

# (iterations, key size in bits) used when sealing with a method
METHOD_PARAMS = {
	EncryptionMethod.SJCL: (1000, 128),
	EncryptionMethod.SJCL_2: (10_000, 256),
	EncryptionMethod.SJCL_3: (10_000, 128),
	EncryptionMethod.SJCL_4: (10_000, 256),
	EncryptionMethod.SJCL_1A: (101, 256),
}

@dataclass(frozen=True)
class EncryptionHeader:
	version: int
	length: int
	method: EncryptionMethod
	master_key_id: str

	def serialize(self) -> str:
		return f"{HEADER_IDENTIFIER}{self.version:02x}{self.length:06x}{int(self.method):02x}{self.master_key_id}"

	@classmethod
	def for_key(cls, master_key_id: str, method: EncryptionMethod = EncryptionMethod.SJCL_1A) -> 'EncryptionHeader':
		return cls(HEADER_VERSION, HEADER_LENGTH, method, master_key_id)

def _stream(source: Union[str, TextIO]) -> TextIO:
	return io.StringIO(source) if isinstance(source, str) else source

def _read_field(stream: TextIO, size: int) -> str:
	value = stream.read(size)
	if len(value) != size: raise FormatError('Header has invalid size')
	return value

def _parse_hex(value: str, name: str) -> int:
	if not _HEX.fullmatch(value): raise FormatError(f"{name} is not a number: {value!r}")
	return int(value, 16)

def parse_header(source: Union[str, TextIO]) -> EncryptionHeader:
	"""Parse the fixed 45 character header, leaving the stream at the first chunk."""
	stream = _stream(source)
	if _read_field(stream, 3) != HEADER_IDENTIFIER:
		raise FormatError(f"Identifier is not {HEADER_IDENTIFIER!r}")
	version = _parse_hex(_read_field(stream, 2), 'Version')
	if version != HEADER_VERSION:
		raise FormatError(f"Invalid version {version}. Needs to be {HEADER_VERSION:02x}")
	length = _parse_hex(_read_field(stream, 6), 'Length')
	if length != HEADER_LENGTH:
		raise FormatError(f"Expected length {HEADER_LENGTH} (method + master key id), got {length}")
	method = EncryptionMethod(_parse_hex(_read_field(stream, 2), 'Encryption method'))
	if method is EncryptionMethod.UNDEFINED:
		raise FormatError('Unknown encryption method')
	master_key_id = _read_field(stream, MASTER_KEY_ID_LENGTH)
	return EncryptionHeader(version, length, method, master_key_id)

def clean_encoded_ascii(text: str) -> str:
	"""Turn legacy `%XX` escapes into the character with that code point."""
	return _ASCII_ESCAPE.sub(lambda m: chr(int(m.group(1), 16)), text)

def clean_encoded_unicode(text: str) -> str:
	"""Drop legacy `%uXXXX` escapes.

	Lossy: the escaped UTF-16 code unit is removed, not reconstructed.
	"""
	return _UNICODE_ESCAPE.sub('', text)

def decrypt_chunks(source: Union[str, TextIO], master_key: str, decrypt: crypto.Decrypt = crypto.decrypt) -> str:
	"""Decrypt all chunks after the header and return the cleaned plaintext.

	Fewer than six characters left where a chunk length is expected ends the
	stream; a chunk shorter than its declared length is a truncated note.
	"""
	stream = _stream(source)
	parts = []
	while True:
		raw_length = stream.read(CHUNK_LENGTH_SIZE)
		if len(raw_length) < CHUNK_LENGTH_SIZE:
			break
		length = _parse_hex(raw_length, 'Chunk length')
		data = stream.read(length)
		if len(data) < length:
			raise UnexpectedEndOfNote(f"Chunk {len(parts)} declares {length} chars, only {len(data)} left")
		try:
			plaintext = decrypt(data, master_key)
		except CryptoError as e:
			raise DecryptionError(f"Error decrypting chunk {len(parts)}: {e}") from e
		try:
			text = plaintext.decode('utf-8')
		except UnicodeDecodeError as e:
			raise DecryptionError(f"Chunk {len(parts)} did not contain valid UTF-8") from e
		parts.append(clean_encoded_unicode(clean_encoded_ascii(text)))
	log.debug("Decrypted %d chunk(s)", len(parts))
	return unquote(''.join(parts), errors='replace')

def open_envelope(cipher_text: str, master_key: str, decrypt: crypto.Decrypt = crypto.decrypt) -> Tuple[EncryptionHeader, str]:
	"""Parse the header of `cipher_text` and decrypt what follows it."""
	stream = io.StringIO(cipher_text)
	header = parse_header(stream)
	return header, decrypt_chunks(stream, master_key, decrypt)

def seal(plaintext: str, master_key: str, master_key_id: str, method: EncryptionMethod = EncryptionMethod.SJCL_1A,
		chunk_size: int = CHUNK_SIZE, encrypt: Optional[crypto.Encrypt] = None) -> str:
	"""Build an envelope around `plaintext`, `chunk_size` characters per chunk."""
	if method is EncryptionMethod.UNDEFINED: raise ValueError('Cannot seal with an undefined method')
	if len(master_key_id) != MASTER_KEY_ID_LENGTH: raise ValueError(f"Master key id must be {MASTER_KEY_ID_LENGTH} chars")
	if encrypt is None:
		iterations, key_size = METHOD_PARAMS[method]
		encrypt = functools.partial(crypto.encrypt, iterations=iterations, key_size=key_size)
	out = [EncryptionHeader.for_key(master_key_id, method).serialize()]
	for start in range(0, len(plaintext), chunk_size):
		ct = encrypt(plaintext[start:start + chunk_size], master_key)
		if len(ct) >= 16 ** CHUNK_LENGTH_SIZE: raise ValueError('Chunk ciphertext too long')
		out.append(f"{len(ct):06x}{ct}")
	return ''.join(out)
