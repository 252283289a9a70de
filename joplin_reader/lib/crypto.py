"""SJCL-compatible password encryption (AES-CCM + PBKDF2-HMAC-SHA256).

Ciphertexts are the JSON objects SJCL emits, e.g.
	{"iv":"...","v":1,"iter":101,"ks":256,"ts":64,"mode":"ccm","adata":"","cipher":"aes","salt":"...","ct":"..."}
with `iv`, `salt`, `ct` and `adata` base64 encoded and the tag appended to `ct`.
"""
from __future__ import annotations
import base64, binascii, json, secrets
from typing import Any, Callable, Dict
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESCCM
from config.settings import (
	SJCL_DEFAULT_ITERATIONS, SJCL_DEFAULT_KEY_SIZE, SJCL_DEFAULT_TAG_SIZE, SJCL_IV_LENGTH, SJCL_SALT_LENGTH
)

# decrypt(ciphertext, password) -> plaintext bytes; encrypt(plaintext, password) -> ciphertext
Decrypt = Callable[[str, str], bytes]
Encrypt = Callable[[str, str], str]

class CryptoError(Exception):
	pass

def derive_key(password: str, salt: bytes, iterations: int, key_size: int) -> bytes:
	if key_size not in (128, 192, 256): raise CryptoError(f"Unsupported key size {key_size}")
	if iterations < 1: raise CryptoError("Bad iteration count")
	kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=key_size // 8, salt=salt, iterations=iterations)
	return kdf.derive(password.encode('utf-8'))

def _length_size(plaintext_length: int) -> int:
	# Smallest CCM length field (2..4 bytes) holding the message length, as SJCL picks it
	size = 2
	while size < 4 and plaintext_length >> (8 * size):
		size += 1
	return size

def _b64(obj: Dict[str, Any], name: str) -> bytes:
	value = obj.get(name, '')
	if not isinstance(value, str): raise CryptoError(f"Field {name!r} is not a string")
	try:
		return base64.b64decode(value, validate=True)
	except (binascii.Error, ValueError) as e:
		raise CryptoError(f"Field {name!r} is not base64: {e}")

def _int(obj: Dict[str, Any], name: str, default: int) -> int:
	value = obj.get(name, default)
	if isinstance(value, bool) or not isinstance(value, int): raise CryptoError(f"Field {name!r} is not an integer")
	return value

def decrypt(ciphertext: str, password: str) -> bytes:
	"""Decrypt an SJCL JSON ciphertext with a password."""
	try:
		obj = json.loads(ciphertext)
	except (json.JSONDecodeError, TypeError) as e:
		raise CryptoError(f"Ciphertext is not valid JSON: {e}")
	if not isinstance(obj, dict): raise CryptoError("Ciphertext is not a JSON object")
	for name in ('iv', 'salt', 'ct'):
		if name not in obj: raise CryptoError(f"Ciphertext has no {name!r}")
	if obj.get('mode', 'ccm') != 'ccm': raise CryptoError(f"Unsupported mode {obj.get('mode')!r}")
	if obj.get('cipher', 'aes') != 'aes': raise CryptoError(f"Unsupported cipher {obj.get('cipher')!r}")
	iv = _b64(obj, 'iv'); salt = _b64(obj, 'salt'); ct = _b64(obj, 'ct'); adata = _b64(obj, 'adata')
	iterations = _int(obj, 'iter', SJCL_DEFAULT_ITERATIONS)
	key_size = _int(obj, 'ks', SJCL_DEFAULT_KEY_SIZE)
	tag_size = _int(obj, 'ts', SJCL_DEFAULT_TAG_SIZE)
	if tag_size % 16 or not 32 <= tag_size <= 128: raise CryptoError(f"Unsupported tag size {tag_size}")
	tag_len = tag_size // 8
	if len(ct) < tag_len: raise CryptoError("Ciphertext too short")
	if len(iv) < 7: raise CryptoError("IV too short")
	size = max(_length_size(len(ct) - tag_len), 15 - len(iv))
	key = derive_key(password, salt, iterations, key_size)
	try:
		return AESCCM(key, tag_length=tag_len).decrypt(iv[:15 - size], ct, adata or None)
	except InvalidTag:
		raise CryptoError("Decrypt failed: authentication tag mismatch")
	except ValueError as e:
		raise CryptoError(f"Decrypt failed: {e}")

def encrypt(plaintext: bytes | str, password: str, iterations: int = SJCL_DEFAULT_ITERATIONS,
		key_size: int = SJCL_DEFAULT_KEY_SIZE, tag_size: int = SJCL_DEFAULT_TAG_SIZE) -> str:
	"""Encrypt into an SJCL JSON ciphertext."""
	if isinstance(plaintext, str): plaintext = plaintext.encode('utf-8')
	iv = secrets.token_bytes(SJCL_IV_LENGTH)
	salt = secrets.token_bytes(SJCL_SALT_LENGTH)
	key = derive_key(password, salt, iterations, key_size)
	nonce = iv[:15 - _length_size(len(plaintext))]
	ct = AESCCM(key, tag_length=tag_size // 8).encrypt(nonce, plaintext, None)
	obj = {
		"iv": base64.b64encode(iv).decode('ascii'), "v": 1, "iter": iterations, "ks": key_size, "ts": tag_size,
		"mode": "ccm", "adata": "", "cipher": "aes",
		"salt": base64.b64encode(salt).decode('ascii'), "ct": base64.b64encode(ct).decode('ascii'),
	}
	return json.dumps(obj, separators=(',', ':'))
