"""CLI commands implemented with click.

Read-only: every command opens the store, indexes it and prints.
Master keys are passed as `--key <key_id>,<passphrase>` (repeatable) or one
per line in JOPLIN_KEYS, so passphrases may contain spaces.
"""
from __future__ import annotations
import json, logging, click
from pathlib import Path
from config import settings
from joplin_reader.lib.errors import ReaderError
from joplin_reader.lib.notebook import Notebook

log = logging.getLogger(__name__)

def _fail(e: Exception):
	click.echo(f'Error: {e}')
	raise SystemExit(1)

class KeyEntry(click.types.StringParamType):
	"""`ID,PASSPHRASE`; several of them in an environment variable go one per line."""
	name = 'key'

	def split_envvar_value(self, rv):
		return [line for line in (rv or '').splitlines() if line]

def _notebook(ctx: click.Context) -> Notebook:
	try:
		return Notebook(ctx.obj['store'], ctx.obj['keys'])
	except ReaderError as e:
		_fail(e)

@click.group()
@click.option('--store', envvar='JOPLIN_DIR', default=str(settings.DEFAULT_STORE_PATH), show_default=True,
	type=click.Path(file_okay=False, path_type=Path), help='Note store directory.')
@click.option('--key', 'keys', type=KeyEntry(), multiple=True, envvar='JOPLIN_KEYS', metavar='ID,PASSPHRASE',
	help='Master key id and passphrase (repeatable; one per line in JOPLIN_KEYS).')
@click.option('-v', '--verbose', is_flag=True, help='Log debug output.')
@click.pass_context
def cli(ctx, store, keys, verbose):
	"""joplin-reader: read notes from a plain or encrypted store."""
	logging.basicConfig(level=logging.DEBUG if verbose else settings.LOG_LEVEL,
		format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
	ctx.obj = {'store': store, 'keys': keys}

@cli.command()
@click.pass_context
def info(ctx):
	"""Show store path, item count and unlocked keys."""
	nb = _notebook(ctx)
	click.echo(json.dumps({'store': str(nb.store_dir), 'items': len(nb), 'master_keys': nb.master_key_ids()}, indent=2))

@cli.command('list')
@click.option('--titles', is_flag=True, help='Read every note to show its title.')
@click.pass_context
def list_notes(ctx, titles):
	"""List indexed items."""
	nb = _notebook(ctx)
	for note in nb:
		title = ''
		if titles:
			try:
				nb.read_note(note.id)
			except ReaderError as e:
				log.debug("No title for %s: %s", note.id, e)
			title = f" {note.title}" if note.title else ''
		flag = ' (encrypted)' if note.is_encrypted() else ''
		click.echo(f"{note.id}: [{note.type_.name.lower()}]{flag}{title}")

@cli.command()
@click.argument('note_id')
@click.pass_context
def show(ctx, note_id):
	"""Show metadata of an item."""
	nb = _notebook(ctx)
	try:
		click.echo(json.dumps(nb.get_note(note_id).to_dict(), indent=2))
	except ReaderError as e:
		_fail(e)

@cli.command()
@click.argument('note_id')
@click.pass_context
def read(ctx, note_id):
	"""Print the body of a note."""
	nb = _notebook(ctx)
	try:
		click.echo(nb.read_note(note_id))
	except ReaderError as e:
		_fail(e)

@cli.command()
@click.argument('text')
@click.pass_context
def find(ctx, text):
	"""List notes whose title or body contains TEXT."""
	nb = _notebook(ctx)
	try:
		for note_id in nb.find_note(text):
			click.echo(f"{note_id}: {nb.get_note(note_id).title or ''}")
	except ReaderError as e:
		_fail(e)
