"""Commands browsing, deleting, importing and saving the synonyms of an index."""

from __future__ import annotations

import json
from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from typing import Any

from idxtool.client import AlgoliaError, Console, SearchClient, print_json
from idxtool.synonyms import (
    Synonym,
    SynonymFlags,
    SynonymType,
    ask_synonym,
    flags_to_synonym,
    handle_flags,
    success_message,
    validate_synonym_flags,
)

BATCH_SIZE = 1000
_ABORTED = "Operation aborted, no deletion action taken"
_NON_INTERACTIVE = "--confirm required when non-interactive shell is detected"

# Fields of each synonym type after the object id and the type, in output order.
# Strings default to "" and lists to None, as the API client encodes them.
_FIELDS: dict[str, tuple[tuple[str, Any], ...]] = {
    SynonymType.REGULAR.value: (("synonyms", None),),
    SynonymType.ONE_WAY.value: (("input", ""), ("synonyms", None)),
    SynonymType.ALT_CORRECTION1.value: (("word", ""), ("corrections", None)),
    SynonymType.ALT_CORRECTION2.value: (("word", ""), ("corrections", None)),
    SynonymType.PLACEHOLDER.value: (("placeholder", ""), ("replacements", None)),
}


@dataclass
class DeleteOptions:
    """Options of a synonym deletion."""

    index_name: str
    synonym_ids: list[str] = field(default_factory=list)
    forward_to_replicas: bool = False
    do_confirm: bool = False


@dataclass
class ImportOptions:
    """Options of a synonym import."""

    index_name: str
    file: str
    forward_to_replicas: bool = True
    replace_existing_synonyms: bool = False


@dataclass
class SaveOptions:
    """A validated synonym ready to be saved."""

    index_name: str
    synonym: Synonym
    forward_to_replicas: bool = False
    success_message: str = ""


def _pluralize(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _split_ids(values: Iterable[str]) -> list[str]:
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


def _confirm(console: Console, message: str) -> bool:
    try:
        return console.confirm(message)
    except (EOFError, OSError) as exc:
        raise RuntimeError(f"failed to prompt: {exc}") from exc


def _normalize(hit: dict[str, Any]) -> dict[str, Any]:
    kind = hit.get("type")
    fields = _FIELDS.get(kind) if isinstance(kind, str) else None
    if fields is None:
        return hit
    record: dict[str, Any] = {"objectID": hit.get("objectID", ""), "type": kind}
    for name, default in fields:
        value = hit.get(name)
        record[name] = default if value is None else value
    return record


def browse_synonyms(client: SearchClient, index_name: str, console: Console) -> int:
    """Print every synonym of an index as one JSON object per line; return how many."""
    count = 0
    for hit in client.init_index(index_name).browse_synonyms():
        print_json(console, _normalize(hit))
        count += 1
    return count


def prepare_delete(
    index_name: str,
    synonym_ids: Iterable[str],
    forward_to_replicas: bool = False,
    confirm: bool = False,
    console: Console | None = None,
) -> DeleteOptions:
    """Check the options of a deletion; comma separated ids are split."""
    ids = _split_ids(synonym_ids)
    if not ids:
        raise ValueError('required flag(s) "synonym-ids" not set')
    do_confirm = False
    if not confirm:
        if console is None or not console.can_prompt:
            raise ValueError(_NON_INTERACTIVE)
        do_confirm = True
    return DeleteOptions(
        index_name=index_name,
        synonym_ids=ids,
        forward_to_replicas=forward_to_replicas,
        do_confirm=do_confirm,
    )


def delete_synonyms(client: SearchClient, opts: DeleteOptions, console: Console) -> bool:
    """Delete synonyms after checking that they all exist.

    Returns False when the user declines the confirmation.
    """
    index = client.init_index(opts.index_name)
    for synonym_id in opts.synonym_ids:
        try:
            index.get_synonym(synonym_id)
        except AlgoliaError as exc:
            if "Synonym set does not exist" in str(exc):
                raise AlgoliaError(
                    f"synonym {synonym_id} does not exist. {_ABORTED}", exc.status
                ) from exc
            raise AlgoliaError(f"{exc}. {_ABORTED}", exc.status) from exc

    described = _pluralize(len(opts.synonym_ids), "synonym")
    if opts.do_confirm and not _confirm(
        console, f"Delete the {described} from {opts.index_name}?"
    ):
        return False

    for synonym_id in opts.synonym_ids:
        try:
            index.delete_synonym(synonym_id, opts.forward_to_replicas)
        except AlgoliaError as exc:
            raise AlgoliaError(
                f"failed to delete synonym {synonym_id}: {exc}", exc.status
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
    replace_existing_synonyms: bool = False,
) -> ImportOptions:
    """Check the options of an import; ``file`` is a path or "-" for standard input."""
    if not file:
        raise ValueError('required flag(s) "file" not set')
    if file != "-":
        with open(file, encoding="utf-8"):
            pass
    return ImportOptions(
        index_name=index_name,
        file=file,
        forward_to_replicas=forward_to_replicas,
        replace_existing_synonyms=replace_existing_synonyms,
    )


def _string(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"cannot unmarshal synonym: {key} must be a string")
    return value


def _strings(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"cannot unmarshal synonym: {key} must be a list of strings")
    return list(value)


def parse_synonym_line(line: str, line_number: int) -> Synonym:
    """Parse one JSON synonym of any type."""
    try:
        data = json.loads(line)
    except ValueError as exc:
        raise ValueError(
            f"failed to parse JSON synonym on line {line_number}: {exc}"
        ) from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"failed to parse JSON synonym on line {line_number}: "
            "a synonym must be a JSON object"
        )
    kind = data.get("type")
    try:
        synonym_type = SynonymType(kind)
    except ValueError:
        shown = kind if isinstance(kind, str) else ""
        raise ValueError(f"cannot unmarshal synonym: unknown type {shown}") from None

    object_id = _string(data, "objectID")
    if synonym_type is SynonymType.REGULAR:
        return Synonym(synonym_type, object_id, synonyms=_strings(data, "synonyms"))
    if synonym_type is SynonymType.ONE_WAY:
        return Synonym(
            synonym_type,
            object_id,
            input=_string(data, "input"),
            synonyms=_strings(data, "synonyms"),
        )
    if synonym_type is SynonymType.PLACEHOLDER:
        return Synonym(
            synonym_type,
            object_id,
            placeholder=_string(data, "placeholder"),
            replacements=_strings(data, "replacements"),
        )
    return Synonym(
        synonym_type,
        object_id,
        word=_string(data, "word"),
        corrections=_strings(data, "corrections"),
    )


def import_synonyms(
    client: SearchClient, opts: ImportOptions, lines: Iterable[str], console: Console
) -> int:
    """Save newline delimited JSON synonyms in batches; return how many were imported."""
    index = client.init_index(opts.index_name)
    # Existing synonyms are only replaced together with the first batch.
    replace: bool | None = True if opts.replace_existing_synonyms else None
    batch: list[Synonym] = []
    total = 0

    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line:
            continue
        batch.append(parse_synonym_line(line, len(batch)))
        if len(batch) == BATCH_SIZE:
            index.save_synonyms(batch, opts.forward_to_replicas, replace)
            replace = None
            total += len(batch)
            batch = []

    if batch:
        total += len(batch)
        index.save_synonyms(batch, opts.forward_to_replicas, replace)

    if total == 0 and opts.replace_existing_synonyms:
        index.clear_synonyms()

    if console.stdout_tty:
        console.write(
            f"{console.success_icon()} Successfully imported {total} synonyms "
            f"to {opts.index_name}\n"
        )
    return total


def prepare_save(
    index_name: str,
    flags: SynonymFlags,
    forward_to_replicas: bool = False,
    provided: Collection[str] = (),
    console: Console | None = None,
) -> SaveOptions:
    """Validate the flags, asking for what is missing when prompting is possible."""
    active = console if console is not None else Console()
    handle_flags(
        lambda: validate_synonym_flags(flags),
        lambda: ask_synonym(flags, provided, active),
        active.can_prompt,
    )
    synonym = flags_to_synonym(flags)
    message = f"{active.success_icon()} {success_message(flags, index_name)}"
    return SaveOptions(
        index_name=index_name,
        synonym=synonym,
        forward_to_replicas=forward_to_replicas,
        success_message=message,
    )


def save_synonym(client: SearchClient, opts: SaveOptions, console: Console) -> None:
    """Save a synonym, creating it when it does not exist yet."""
    try:
        client.init_index(opts.index_name).save_synonym(opts.synonym, opts.forward_to_replicas)
    except AlgoliaError as exc:
        raise AlgoliaError(f"failed to save synonym: {exc}", exc.status) from exc
    if console.stdout_tty:
        console.write(opts.success_message)