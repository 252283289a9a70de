"""Master key loading.

A passphrase only unlocks a master key; the master key itself is what
encrypted notes are sealed with. Key files are plain `key:value` lines:

	id: 3336eb7a2472d9ae4a690a978fa8a46f
	content: {"iv":"...","ct":"..."}
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Dict
from . import crypto
from .crypto import CryptoError
from .errors import DecryptionError, FileReadError, KeyIdMismatch

log = logging.getLogger(__name__)

MasterKey = str

def read_key_values(path: Path) -> Dict[str, str]:
	"""Read `key:value` lines; later duplicates overwrite earlier ones."""
	try:
		text = Path(path).read_text(encoding='utf-8')
	except (OSError, UnicodeDecodeError) as e:
		raise FileReadError(f"Failed to read file {path}: {e}") from e
	values: Dict[str, str] = {}
	for line in text.split('\n'):
		key, sep, value = line.partition(':')
		if sep: values[key.strip()] = value.strip()
	return values

def load_master_key(path: Path, key_id: str, passphrase: str, decrypt: crypto.Decrypt = crypto.decrypt) -> MasterKey:
	values = read_key_values(path)
	for required in ('id', 'content'):
		if required not in values:
			raise FileReadError(f"No `{required}` specified in key {path}")
	if values['id'] != key_id:
		raise KeyIdMismatch(key_id, values['id'])
	try:
		plaintext = decrypt(values['content'], passphrase)
	except CryptoError as e:
		raise DecryptionError(f"Failed to load master key {key_id}: {e}") from e
	try:
		master_key = plaintext.decode('utf-8')
	except UnicodeDecodeError as e:
		raise DecryptionError(f"Master key {key_id} is not valid UTF-8") from e
	log.debug("Unlocked master key %s", key_id)
	return master_key
