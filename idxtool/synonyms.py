"""Synonym flags: validation, conversion, interactive filling and messages."""

from __future__ import annotations

from collections.abc import Callable, Collection
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from idxtool.client import Console


class SynonymType(str, Enum):
    """Synonym types as named by the API."""

    REGULAR = "synonym"
    ONE_WAY = "oneWaySynonym"
    ALT_CORRECTION1 = "altCorrection1"
    ALT_CORRECTION2 = "altCorrection2"
    PLACEHOLDER = "placeholder"

    @classmethod
    def parse(cls, value: str) -> SynonymType | None:
        """Parse a flag value; an empty value means no explicit type."""
        if value == "":
            return None
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                'must be one of "regular", "one-way", "alt-correction1", '
                '"alt-correction2" or "placeholder"'
            ) from None


@dataclass
class SynonymFlags:
    """Values given for a synonym on the command line or interactively."""

    synonym_id: str = ""
    synonym_input: str = ""
    synonym_word: str = ""
    synonym_placeholder: str = ""
    synonym_type: str = ""
    synonyms: list[str] = field(default_factory=list)
    synonym_corrections: list[str] = field(default_factory=list)
    synonym_replacements: list[str] = field(default_factory=list)


@dataclass
class Synonym:
    """A synonym record of any type."""

    type: SynonymType
    object_id: str
    synonyms: list[str] = field(default_factory=list)
    input: str = ""
    word: str = ""
    corrections: list[str] = field(default_factory=list)
    placeholder: str = ""
    replacements: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the record in the API's JSON shape."""
        data: dict[str, Any] = {"objectID": self.object_id, "type": self.type.value}
        if self.type is SynonymType.REGULAR:
            data["synonyms"] = list(self.synonyms)
        elif self.type is SynonymType.ONE_WAY:
            data["input"] = self.input
            data["synonyms"] = list(self.synonyms)
        elif self.type is SynonymType.PLACEHOLDER:
            data["placeholder"] = self.placeholder
            data["replacements"] = list(self.replacements)
        else:
            data["word"] = self.word
            data["corrections"] = list(self.corrections)
        return data


_ALT_CORRECTIONS = (SynonymType.ALT_CORRECTION1.value, SynonymType.ALT_CORRECTION2.value)


def flags_to_synonym(flags: SynonymFlags) -> Synonym:
    """Build a synonym record from flags, raising ValueError on an unknown type."""
    kind = flags.synonym_type
    if kind in ("", SynonymType.REGULAR.value):
        return Synonym(SynonymType.REGULAR, flags.synonym_id, synonyms=list(flags.synonyms))
    if kind == SynonymType.ONE_WAY.value:
        return Synonym(
            SynonymType.ONE_WAY,
            flags.synonym_id,
            synonyms=list(flags.synonyms),
            input=flags.synonym_input,
        )
    if kind in _ALT_CORRECTIONS:
        return Synonym(
            SynonymType(kind),
            flags.synonym_id,
            word=flags.synonym_word,
            corrections=list(flags.synonym_corrections),
        )
    if kind == SynonymType.PLACEHOLDER.value:
        return Synonym(
            SynonymType.PLACEHOLDER,
            flags.synonym_id,
            placeholder=flags.synonym_placeholder,
            replacements=list(flags.synonym_replacements),
        )
    raise ValueError("invalid synonym type")


def validate_synonym_flags(flags: SynonymFlags) -> SynonymType | None:
    """Check that the flags describe a complete synonym.

    Raises ValueError when something required is missing and returns the
    resolved type, or None for a type this check does not know.
    """
    if not flags.synonym_id:
        raise ValueError("a unique synonym id is required")

    kind = flags.synonym_type
    if kind == SynonymType.ONE_WAY.value:
        if not flags.synonyms:
            raise ValueError("at least 1 synonym is required")
        if not flags.synonym_input:
            raise ValueError("a synonym input is required for one way synonyms")
        return SynonymType.ONE_WAY
    if kind in _ALT_CORRECTIONS:
        number = "1" if kind == SynonymType.ALT_CORRECTION1.value else "2"
        if not flags.synonym_word:
            raise ValueError(f"synonym word is required for alt correction {number} synonyms")
        if not flags.synonym_corrections:
            raise ValueError(
                f"synonym corrections are required for alt correction {number} synonyms"
            )
        return SynonymType(kind)
    if kind == SynonymType.PLACEHOLDER.value:
        if not flags.synonym_placeholder:
            raise ValueError("a synonym placeholder is required for placeholder synonyms")
        if not flags.synonym_replacements:
            raise ValueError("synonym replacements are required for placeholder synonyms")
        return SynonymType.PLACEHOLDER
    if kind in ("", SynonymType.REGULAR.value):
        if not flags.synonyms:
            raise ValueError("at least 1 synonym is required")
        return SynonymType.REGULAR
    return None


def _pluralize(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _listing(count_word: str, items: list[str]) -> str:
    return f"{_pluralize(len(items), count_word)} ({', '.join(items)})"


def success_message(flags: SynonymFlags, index_name: str) -> str:
    """Describe a saved synonym, ending with a newline."""
    kind = flags.synonym_type
    label = object_id = values = target = ""
    if kind in ("", SynonymType.REGULAR.value):
        label = "Synonym"
        values = _listing("synonym", flags.synonyms)
    elif kind == SynonymType.ONE_WAY.value:
        label = "One way synonym"
        values = f"input '{flags.synonym_input}' and {_listing('synonym', flags.synonyms)}"
    elif kind == SynonymType.PLACEHOLDER.value:
        label = "Placeholder synonym"
        values = (
            f"placeholder '{flags.synonym_placeholder}' and "
            f"{_listing('replacement', flags.synonym_replacements)}"
        )
    elif kind in _ALT_CORRECTIONS:
        number = "2" if kind == SynonymType.ALT_CORRECTION2.value else "1"
        label = f"Alt correction {number} synonym"
        values = (
            f"word '{flags.synonym_word}' and "
            f"{_listing('correction', flags.synonym_corrections)}"
        )
    if label:
        object_id, target = flags.synonym_id, index_name
    return f"{label} '{object_id}' successfully saved with {values} to {target}\n"


def _ask_required(console: Console, message: str, default: str) -> str:
    while True:
        answer = console.ask(message, default)
        if answer:
            return answer


def _ask_list(console: Console, message: str, current: list[str]) -> list[str]:
    while True:
        answer = console.ask(message, ", ".join(current))
        items = [item.strip() for item in answer.split(",") if item.strip()]
        if items:
            return items


_TYPE_CHOICES = [
    SynonymType.REGULAR.value,
    SynonymType.ONE_WAY.value,
    SynonymType.PLACEHOLDER.value,
    SynonymType.ALT_CORRECTION1.value,
    SynonymType.ALT_CORRECTION2.value,
]


def ask_synonym(flags: SynonymFlags, provided: Collection[str], console: Console) -> None:
    """Prompt for the synonym fields that were not given as flags.

    ``provided`` holds the names of the flags set on the command line
    (``id``, ``type``, ``synonyms``, ``input``, ``word``, ``placeholder``,
    ``corrections``, ``replacements``).
    """
    if "id" not in provided:
        flags.synonym_id = _ask_required(console, "id:", flags.synonym_id)

    if "type" not in provided:
        default = flags.synonym_type or SynonymType.REGULAR.value
        message = f"type ({', '.join(_TYPE_CHOICES)}):"
        while True:
            answer = console.ask(message, default)
            if answer in _TYPE_CHOICES:
                flags.synonym_type = answer
                break

    kind = flags.synonym_type
    if kind in ("", SynonymType.REGULAR.value, SynonymType.ONE_WAY.value):
        if kind == SynonymType.ONE_WAY.value and "input" not in provided:
            flags.synonym_input = _ask_required(console, "input:", flags.synonym_input)
        if "synonyms" not in provided:
            flags.synonyms = _ask_list(console, "synonyms (comma separated):", flags.synonyms)
    elif kind == SynonymType.PLACEHOLDER.value:
        if "placeholder" not in provided:
            flags.synonym_placeholder = _ask_required(
                console, "placeholder:", flags.synonym_placeholder
            )
        if "replacements" not in provided:
            flags.synonym_replacements = _ask_list(
                console, "replacements (comma separated):", flags.synonym_replacements
            )
    elif kind in _ALT_CORRECTIONS:
        if "word" not in provided:
            flags.synonym_word = _ask_required(console, "word:", flags.synonym_word)
        if "corrections" not in provided:
            flags.synonym_corrections = _ask_list(
                console, "corrections (comma separated):", flags.synonym_corrections
            )
    else:
        raise ValueError("wrong synonym type")


def handle_flags(
    validate: Callable[[], Any],
    ask_and_fill: Callable[[], Any],
    interactive: bool,
) -> Any:
    """Validate flags; when that fails and prompting is possible, ask and validate again.

    A validation failure is a ValueError; when not interactive it propagates.
    """
    try:
        return validate()
    except ValueError:
        if not interactive:
            raise
    ask_and_fill()
    return validate()