# idxtool

A Python library for working with hosted search indices: run searches, and
browse, import, save and delete the rules, synonyms and settings of an index.
Each operation is a function that talks to the search API through a
`SearchClient` and writes its output to a `Console`.

## Installation

```
pip install idxtool
```

## The client and the console

`idxtool.client` provides:

- `SearchClient(app_id, api_key, *, base_url=None, session=None, timeout=30.0)`
  and `SearchClient.init_index(name)`, which returns an `Index`.
- `Index`, with methods such as `search`, `browse_rules`, `browse_synonyms`,
  `get_rule`, `delete_rule`, `save_rules`, `clear_rules`, `get_synonym`,
  `delete_synonym`, `save_synonym`, `save_synonyms`, `clear_synonyms`,
  `get_settings` and `set_settings`.
- `Console`, which wraps the input and output streams and knows whether
  they are terminals (`stdin_tty`, `stdout_tty`, `can_prompt`). It offers
  `confirm`, `ask`, `write`, `success_icon` and `failure_icon`.
- `AlgoliaError`, raised for every API or transport error; its `status`
  holds the HTTP status code when there is one.
- `run_search(client, index_name, params, console)`, which searches an
  index, prints the response as JSON and returns it. A `"query"` string in
  `params` is used as the query text.

```python
from idxtool.client import Console, SearchClient, run_search

client = SearchClient("MYAPP", "placeholder")
console = Console()
run_search(client, "MOVIES", {"query": "toy story", "hitsPerPage": 2}, console)
```

## Rules

`idxtool.rules`:

```python
from idxtool import rules

rules.browse_rules(client, "MOVIES", console)  # one JSON rule per line

opts = rules.prepare_import("MOVIES", "rules.ndjson", clear_existing_rules=True, confirm=True)
with open("rules.ndjson", encoding="utf-8") as lines:
    rules.import_rules(client, opts, lines, console)

opts = rules.prepare_delete("MOVIES", ["1,2"], confirm=True)
rules.delete_rules(client, opts, console)
```

Rule files are newline-delimited JSON: one rule object per line, blank lines
skipped. Rules are saved in batches of 1000. With `clear_existing_rules` the
existing rules are replaced together with the first batch; if there are no
rules at all, the rules of the index are cleared. Deletion first checks that
every rule exists and takes no action otherwise.

## Synonyms

`idxtool.synonyms` holds the synonym model: `SynonymType` (`synonym`,
`oneWaySynonym`, `altCorrection1`, `altCorrection2`, `placeholder`),
`SynonymFlags`, `Synonym`, `flags_to_synonym`, `validate_synonym_flags`,
`success_message`, `ask_synonym` and `handle_flags`.

`idxtool.synonym_commands` holds the operations:

```python
from idxtool import synonym_commands
from idxtool.synonyms import SynonymFlags

flags = SynonymFlags(synonym_id="1", synonyms=["foo", "bar"])
opts = synonym_commands.prepare_save("MOVIES", flags, console=console)
synonym_commands.save_synonym(client, opts, console)

synonym_commands.browse_synonyms(client, "MOVIES", console)

opts = synonym_commands.prepare_import("MOVIES", "synonyms.ndjson", replace_existing_synonyms=True)
with open("synonyms.ndjson", encoding="utf-8") as lines:
    synonym_commands.import_synonyms(client, opts, lines, console)

opts = synonym_commands.prepare_delete("MOVIES", ["1", "2"], confirm=True)
synonym_commands.delete_synonyms(client, opts, console)
```

When the flags given to `prepare_save` are incomplete and the console can
prompt, the missing values are asked for; otherwise a `ValueError` is raised.

## Settings

`idxtool.settings` provides `get_settings`, `import_settings` (from a JSON
file, or standard input with `"-"`) and `set_settings`:

```python
from idxtool import settings

settings.get_settings(client, "MOVIES", console)
settings.import_settings(client, "MOVIES", "settings.json", console)
settings.set_settings(client, "MOVIES", {"typoTolerance": False}, False, console)
```

## Index configurations

`idxtool.index_config` gathers settings, rules and synonyms of an index into
an `ExportConfig` (`get_index_config`), names export files
(`config_file_name`), reads configuration files (`read_config_from_file`)
and checks export and import options (`validate_export_config_flags`,
`validate_import_config_flags`, raising `ConfigError`). `ask_export_config`
and `ask_import_config` fill the options interactively.

## Confirmation and output

Destructive operations ask for confirmation through the console when it can
prompt. When it cannot, `prepare_delete` and `prepare_import` (rules, when
clearing) raise `ValueError` unless `confirm=True` is passed. Success
messages are only written when standard output is a terminal.

## What is not included

The package has no command-line program: there is no executable to run, and
the operations are used by calling the functions above from Python. It also
does not store credentials or profiles; the application id and API key are
passed to `SearchClient` directly.

## Development

```
pip install -e ".[test]"
pytest
```