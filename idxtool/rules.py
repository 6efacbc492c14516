"""Commands browsing, deleting and importing the rules of an index."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from idxtool.client import AlgoliaError, Console, SearchClient, print_json

BATCH_SIZE = 1000
_ABORTED = "Operation aborted, no deletion action taken"
_NON_INTERACTIVE = "--confirm required when non-interactive shell is detected"


@dataclass
class DeleteOptions:
    """Options of a rule deletion."""

    index_name: str
    rule_ids: list[str] = field(default_factory=list)
    forward_to_replicas: bool = False
    do_confirm: bool = False


@dataclass
class ImportOptions:
    """Options of a rule import."""

    index_name: str
    file: str
    forward_to_replicas: bool = True
    clear_existing_rules: bool = False
    do_confirm: bool = False


def _pluralize(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _split_ids(values: Iterable[str]) -> list[str]:
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


def _confirm(console: Console, message: str) -> bool:
    try:
        return console.confirm(message)
    except (EOFError, OSError) as exc:
        raise RuntimeError(f"failed to prompt: {exc}") from exc


def browse_rules(client: SearchClient, index_name: str, console: Console) -> int:
    """Print every rule of an index as one JSON object per line; return how many."""
    count = 0
    for rule in client.init_index(index_name).browse_rules():
        print_json(console, rule)
        count += 1
    return count


def prepare_delete(
    index_name: str,
    rule_ids: Iterable[str],
    forward_to_replicas: bool = False,
    confirm: bool = False,
    console: Console | None = None,
) -> DeleteOptions:
    """Check the options of a deletion; comma separated ids are split."""
    ids = _split_ids(rule_ids)
    if not ids:
        raise ValueError('required flag(s) "rule-ids" not set')
    do_confirm = False
    if not confirm:
        if console is None or not console.can_prompt:
            raise ValueError(_NON_INTERACTIVE)
        do_confirm = True
    return DeleteOptions(
        index_name=index_name,
        rule_ids=ids,
        forward_to_replicas=forward_to_replicas,
        do_confirm=do_confirm,
    )


def delete_rules(client: SearchClient, opts: DeleteOptions, console: Console) -> bool:
    """Delete rules after checking that they all exist.

    Returns False when the user declines the confirmation.
    """
    index = client.init_index(opts.index_name)
    for rule_id in opts.rule_ids:
        try:
            index.get_rule(rule_id)
        except AlgoliaError as exc:
            if "ObjectID does not exist" in str(exc):
                raise AlgoliaError(
                    f"rule {rule_id} does not exist. {_ABORTED}", exc.status
                ) from exc
            raise AlgoliaError(f"{exc}. {_ABORTED}", exc.status) from exc

    described = _pluralize(len(opts.rule_ids), "rule")
    if opts.do_confirm and not _confirm(
        console, f"Delete the {described} from {opts.index_name}?"
    ):
        return False

    for rule_id in opts.rule_ids:
        try:
            index.delete_rule(rule_id, opts.forward_to_replicas)
        except AlgoliaError as exc:
            raise AlgoliaError(
                f"failed to delete rule {rule_id}: {exc}", exc.status
            ) from exc

    if console.stdout_tty:
        console.write(
            f"{console.success_icon()} Successfully deleted {described} from {opts.index_name}\n"
        )
    return True


def prepare_import(
    index_name: str,
    file: str,
    forward_to_replicas: bool = True,
    clear_existing_rules: bool = False,
    confirm: bool = False,
    console: Console | None = None,
) -> ImportOptions:
    """Check the options of an import; ``file`` is a path or "-" for standard input."""
    do_confirm = False
    if not confirm and clear_existing_rules:
        if console is None or not console.can_prompt:
            raise ValueError(_NON_INTERACTIVE)
        do_confirm = True
    if not file:
        raise ValueError('required flag(s) "file" not set')
    if file != "-":
        with open(file, encoding="utf-8"):
            pass
    return ImportOptions(
        index_name=index_name,
        file=file,
        forward_to_replicas=forward_to_replicas,
        clear_existing_rules=clear_existing_rules,
        do_confirm=do_confirm,
    )


def _parse_rule(line: str, line_number: int) -> dict[str, Any]:
    try:
        rule = json.loads(line)
    except ValueError as exc:
        raise ValueError(f"failed to parse JSON rule on line {line_number}: {exc}") from exc
    if not isinstance(rule, dict):
        raise ValueError(
            f"failed to parse JSON rule on line {line_number}: a rule must be a JSON object"
        )
    return rule


def import_rules(
    client: SearchClient, opts: ImportOptions, lines: Iterable[str], console: Console
) -> int:
    """Save newline delimited JSON rules in batches; return how many were imported."""
    if opts.do_confirm and not _confirm(
        console,
        f"Are you sure you want to replace all the existing rules on {json.dumps(opts.index_name)}?",
    ):
        return 0

    index = client.init_index(opts.index_name)
    # Existing rules are only cleared together with the first batch.
    clear: bool | None = True if opts.clear_existing_rules else None
    batch: list[dict[str, Any]] = []
    total = 0

    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line:
            continue
        batch.append(_parse_rule(line, len(batch)))
        if len(batch) == BATCH_SIZE:
            index.save_rules(batch, opts.forward_to_replicas, clear)
            clear = None
            total += len(batch)
            batch = []

    if batch:
        total += len(batch)
        index.save_rules(batch, opts.forward_to_replicas, clear)

    if total == 0 and opts.clear_existing_rules:
        index.clear_rules()

    if console.stdout_tty:
        console.write(
            f"{console.success_icon()} Successfully imported {total} rules to {opts.index_name}\n"
        )
    return total