from click.testing import CliRunner
from joplin_reader.cli.commands import cli
from conftest import KEY_ID, PASSPHRASE, PLAIN_ID, SECRET_ID


def test_read_without_key_fails(store):
	r = CliRunner().invoke(cli, ['--store', str(store), 'read', SECRET_ID])
	assert r.exit_code == 1
	assert 'Error: Encryption key' in r.output
	# Plain notes stay readable
	r2 = CliRunner().invoke(cli, ['--store', str(store), 'read', PLAIN_ID])
	assert r2.exit_code == 0
	assert '- Milk' in r2.output


def test_unknown_note_and_missing_key_file(store):
	runner = CliRunner()
	r = runner.invoke(cli, ['--store', str(store), 'read', 'nope'])
	assert r.exit_code == 1 and "Note 'nope' not found" in r.output
	r2 = runner.invoke(cli, ['--store', str(store), '--key', 'deadbeef,pw', 'list'])
	assert r2.exit_code == 1 and 'Error:' in r2.output


def test_find(store):
	runner = CliRunner()
	args = ['--store', str(store), '--key', f'{KEY_ID},{PASSPHRASE}']
	r = runner.invoke(cli, args + ['find', 'cake'])
	assert r.exit_code == 0
	assert f'{SECRET_ID}: Secret' in r.output
	r2 = runner.invoke(cli, args + ['find', 'zzz'])
	assert r2.exit_code == 1 and 'No note with text' in r2.output
