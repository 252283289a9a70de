from pathlib import Path
import pytest
from joplin_reader.lib.errors import DecryptionError, FileReadError, KeyIdMismatch
from joplin_reader.lib.key import load_master_key, read_key_values
from conftest import KEY_ID, OTHER_KEY_ID, MASTER_KEY, PASSPHRASE, fast_encrypt, write_key_file

def test_load_master_key(tmp_path: Path):
    path = write_key_file(tmp_path, KEY_ID, PASSPHRASE)
    assert load_master_key(path, KEY_ID, PASSPHRASE) == MASTER_KEY

def test_wrong_passphrase(tmp_path: Path):
    path = write_key_file(tmp_path, KEY_ID, PASSPHRASE)
    with pytest.raises(DecryptionError):
        load_master_key(path, KEY_ID, 'wrong')

@pytest.mark.parametrize('passphrase', [PASSPHRASE, 'wrong'])
def test_key_id_mismatch_independent_of_passphrase(tmp_path: Path, passphrase):
    path = write_key_file(tmp_path, KEY_ID, PASSPHRASE, file_id=OTHER_KEY_ID)
    with pytest.raises(KeyIdMismatch):
        load_master_key(path, KEY_ID, passphrase)

def test_mismatch_checked_before_decrypting(tmp_path: Path):
    path = write_key_file(tmp_path, KEY_ID, PASSPHRASE, file_id=OTHER_KEY_ID)
    def never(ct, key): raise AssertionError('decrypt called')
    with pytest.raises(KeyIdMismatch):
        load_master_key(path, KEY_ID, PASSPHRASE, decrypt=never)

@pytest.mark.parametrize('text', [f'id: {KEY_ID}\n', 'content: {}\n', ''])
def test_missing_fields(tmp_path: Path, text):
    path = tmp_path / 'key.md'; path.write_text(text)
    with pytest.raises(FileReadError):
        load_master_key(path, KEY_ID, PASSPHRASE)

def test_missing_file(tmp_path: Path):
    with pytest.raises(FileReadError):
        load_master_key(tmp_path / 'nope.md', KEY_ID, PASSPHRASE)

def test_last_duplicate_wins(tmp_path: Path):
    path = tmp_path / 'key.md'
    path.write_text(f"id: {OTHER_KEY_ID}\ncontent: garbage\nid: {KEY_ID}\ncontent: {fast_encrypt(MASTER_KEY, PASSPHRASE)}\nno colon here\n")
    assert read_key_values(path)['id'] == KEY_ID
    assert load_master_key(path, KEY_ID, PASSPHRASE) == MASTER_KEY

def test_non_utf8_master_key(tmp_path: Path):
    path = write_key_file(tmp_path, KEY_ID, PASSPHRASE)
    with pytest.raises(DecryptionError):
        load_master_key(path, KEY_ID, PASSPHRASE, decrypt=lambda ct, key: b'\xff')
