import functools
from pathlib import Path
import pytest
from joplin_reader.lib import crypto
from joplin_reader.lib.codec import serialize
from joplin_reader.lib.envelope import seal

KEY_ID = '3336eb7a2472d9ae4a690a978fa8a46f'
OTHER_KEY_ID = 'b1946f4f9a2d4d14a6a1b05d1e2c3f77'
MASTER_KEY = '9f1c' * 64
PASSPHRASE = 'correct horse'
PLAIN_ID = '0a1b2c3d4e5f60718293a4b5c6d7e8f9'
SECRET_ID = 'f9e8d7c6b5a40392817f6e5d4c3b2a10'
FOLDER_ID = '11112222333344445555666677778888'

# Few PBKDF2 rounds keep the suite fast; decrypt reads them from the ciphertext
fast_encrypt = functools.partial(crypto.encrypt, iterations=10, key_size=256)

def write_key_file(store: Path, key_id: str, passphrase: str, master_key: str = MASTER_KEY, file_id: str | None = None) -> Path:
    path = store / f"{key_id}.md"
    path.write_text(
        "created_time: 2021-01-01T00:00:00.000Z\n"
        f"content: {fast_encrypt(master_key, passphrase)}\n"
        f"id: {file_id or key_id}\n"
        "encryption_method: 4\n"
        "type_: 9",
        encoding='utf-8')
    return path

def write_plain_note(store: Path, note_id: str, title: str, body: str, **props) -> Path:
    values = {'id': note_id, 'parent_id': FOLDER_ID, 'updated_time': '2021-01-02T03:04:05.678Z'}
    values.update(props)
    values.setdefault('encryption_applied', '0')
    values.setdefault('type_', '1')
    path = store / f"{note_id}.md"
    path.write_text(serialize(title, body, values), encoding='utf-8')
    return path

def write_encrypted_note(store: Path, note_id: str, title: str, body: str, key_id: str = KEY_ID,
        master_key: str = MASTER_KEY, chunk_size: int = 5000, **props) -> Path:
    values = {'id': note_id, 'parent_id': FOLDER_ID, 'type_': '1', 'created_time': '2021-01-01T00:00:00.000Z'}
    values.update(props)
    envelope = seal(serialize(title, body, values), master_key, key_id, chunk_size=chunk_size, encrypt=fast_encrypt)
    path = store / f"{note_id}.md"
    path.write_text(
        f"id: {note_id}\n"
        f"parent_id: {FOLDER_ID}\n"
        "updated_time: 2021-01-02T03:04:05.678Z\n"
        f"encryption_cipher_text: {envelope}\n"
        "encryption_applied: 1\n"
        f"type_: {values['type_']}",
        encoding='utf-8')
    return path

@pytest.fixture
def store(tmp_path: Path) -> Path:
    write_key_file(tmp_path, KEY_ID, PASSPHRASE)
    write_plain_note(tmp_path, PLAIN_ID, 'Shopping', '- Eggs\n\n- Milk', is_todo='1')
    write_encrypted_note(tmp_path, SECRET_ID, 'Secret', 'The cake is a lie.\n\nSecond paragraph.')
    write_plain_note(tmp_path, FOLDER_ID, 'Inbox', '', type_='2', parent_id='')
    return tmp_path
