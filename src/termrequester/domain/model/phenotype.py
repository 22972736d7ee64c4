"""The phenotype request entity.

A phenotype is a proposed addition to the controlled vocabulary. It lives in
two systems of record (the local store and the remote issue tracker); the
rules in this module are the ones both sides agree on:

- names and synonyms are canonicalised so that casing variants compare equal
- two records denote the same request when they share a local id or any name
  (the identity invariant, see ``Phenotype.matches``)
- merges only ever add information
- review status moves forward along ``NEXT_STATUSES`` and nowhere else
"""

from __future__ import annotations

import re
import unicodedata
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from termrequester.domain.errors import StatusTransitionError
from termrequester.domain.model.enums import NEXT_STATUSES, Status

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

DESCRIPTION_SEPARATOR: Final[str] = "\n"
LIST_SEPARATOR: Final[str] = "; "

_WHITESPACE = re.compile(r"\s+")


def canonical_name(value: str) -> str:
    """Return the case-normalised form used for names and synonyms.

    Semicolons separate list items in issue bodies, so they are folded to commas.
    """

    text = unicodedata.normalize("NFKC", value).replace(";", ",")
    text = _WHITESPACE.sub(" ", text).strip()
    return text.casefold()


@dataclass(eq=False, kw_only=True)
class Phenotype:
    """A request to add a term to the vocabulary.

    Instances compare by object identity. Use ``matches`` to decide whether two
    records describe the same real-world request.
    """

    name: str
    description: str = ""
    local_id: str | None = None
    issue_number: str | None = None
    hpo_id: str | None = None
    status: Status = Status.UNSUBMITTED
    created_at: datetime | None = None
    modified_at: datetime | None = None

    _synonyms: set[str] = field(default_factory=set[str], repr=False)
    _parent_ids: set[str] = field(default_factory=set[str], repr=False)

    def __post_init__(self) -> None:
        self.name = canonical_name(self.name)
        if not self.name:
            raise ValueError("phenotype name must not be blank")
        self.description = self.description or ""
        synonyms = {canonical_name(synonym) for synonym in self._synonyms}
        self._synonyms = synonyms - {self.name, ""}
        self._parent_ids = {parent for parent in self._parent_ids if parent}

    @classmethod
    def new(
        cls,
        name: str,
        description: str = "",
        *,
        synonyms: Iterable[str] = (),
        parent_ids: Iterable[str] = (),
    ) -> Phenotype:
        phenotype = cls(name=name, description=description)
        phenotype.add_synonyms(synonyms)
        for parent_id in parent_ids:
            phenotype.add_parent(parent_id)
        return phenotype

    # Views -------------------------------------------------------------------

    @property
    def synonyms(self) -> frozenset[str]:
        return frozenset(self._synonyms)

    @property
    def parent_ids(self) -> frozenset[str]:
        return frozenset(self._parent_ids)

    @property
    def names(self) -> frozenset[str]:
        """Canonical name together with every synonym."""
        return frozenset(self._synonyms | {self.name})

    @property
    def submittable(self) -> bool:
        """Whether an issue may still be opened for this request."""
        return self.status is Status.UNSUBMITTED

    # Commands ----------------------------------------------------------------

    def add_synonym(self, synonym: str) -> None:
        value = canonical_name(synonym)
        # a term is never a synonym of itself
        if value and value != self.name:
            self._synonyms.add(value)

    def add_synonyms(self, synonyms: Iterable[str]) -> None:
        for synonym in synonyms:
            self.add_synonym(synonym)

    def remove_synonym(self, synonym: str) -> bool:
        value = canonical_name(synonym)
        if value not in self._synonyms:
            return False
        self._synonyms.discard(value)
        return True

    def add_parent(self, parent_id: str) -> None:
        value = parent_id.strip()
        if ";" in value:
            raise ValueError(f"parent id {value!r} must not contain ';'")
        if value:
            self._parent_ids.add(value)

    def attach_issue(self, issue_number: str) -> None:
        self.issue_number = issue_number

    def assign_hpo_id(self, hpo_id: str) -> None:
        if self.status not in {Status.ACCEPTED, Status.PUBLISHED}:
            raise ValueError(f"cannot assign a vocabulary id to a {self.status} phenotype")
        self.hpo_id = hpo_id

    def matches(self, other: object) -> bool:
        """Identity invariant: shared local id, or at least one shared name.

        Symmetric but not transitive.
        """
        if not isinstance(other, Phenotype):
            return False
        if self.local_id is not None and self.local_id == other.local_id:
            return True
        return not self.names.isdisjoint(other.names)

    def merge_with(self, other: Phenotype, *, merge_description: bool = True) -> None:
        """Absorb ``other`` into this phenotype. ``other`` is left untouched."""

        self.add_synonyms(other.synonyms)
        self.add_synonym(other.name)
        self._parent_ids.update(other.parent_ids)
        if merge_description and other.description:
            if self.description:
                self.description = f"{self.description}{DESCRIPTION_SEPARATOR}{other.description}"
            else:
                self.description = other.description

    def replace_by(self, other: Phenotype) -> None:
        """Become ``other``, discarding this record's own names and prose."""

        self.name = other.name
        self.description = other.description
        self._synonyms = set(other.synonyms)
        self._parent_ids = set(other.parent_ids)
        self.status = other.status
        if other.local_id is not None:
            self.local_id = other.local_id
        if other.issue_number is not None:
            self.issue_number = other.issue_number
        if other.hpo_id is not None:
            self.hpo_id = other.hpo_id

    def observe_status(self, observed: Status) -> bool:
        """Apply a status reported by the tracker. Returns whether it changed.

        The observed status may lie several steps ahead of the current one; the
        intermediate states are implied and never recorded individually.
        """

        observed = Status(observed)
        if observed is self.status:
            return False
        if not _reachable(self.status, observed):
            raise StatusTransitionError(self.status, observed)
        self.status = observed
        return True

    # Tracker rendering -------------------------------------------------------

    def issue_title(self) -> str:
        return f"New term request: {self.name}"

    def issue_body(self) -> str:
        lines = [
            f"TERM: {self.name}",
            f"SYNONYMS: {LIST_SEPARATOR.join(sorted(self._synonyms))}",
            f"PARENTS: {LIST_SEPARATOR.join(sorted(self._parent_ids))}",
        ]
        if self.local_id is not None:
            lines.append(f"PT_INTERNAL_ID: {self.local_id}")
        description = self.description.replace("\n", ". ")
        lines.append(f"DESCRIPTION: {description}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.name


def parse_issue_body(body: str | None) -> Phenotype | None:
    """Rebuild the identifying fields of a phenotype from an issue body."""

    if not body:
        return None
    fields: dict[str, str] = {}
    for line in body.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            fields.setdefault(key.strip().upper(), value.strip())

    name = fields.get("TERM", "")
    if not canonical_name(name):
        return None
    phenotype = Phenotype.new(
        name,
        fields.get("DESCRIPTION", ""),
        synonyms=_split_list(fields.get("SYNONYMS", "")),
        parent_ids=_split_list(fields.get("PARENTS", "")),
    )
    phenotype.local_id = fields.get("PT_INTERNAL_ID") or None
    return phenotype


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(LIST_SEPARATOR.strip()) if item.strip()]


def _reachable(start: Status, target: Status) -> bool:
    queue = deque([start])
    seen = {start}
    while queue:
        current = queue.popleft()
        for following in NEXT_STATUSES[current]:
            if following is target:
                return True
            if following not in seen:
                seen.add(following)
                queue.append(following)
    return False
