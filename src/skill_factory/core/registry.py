"""Registry store for the discovery catalog of skills."""

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from skill_factory.core.errors import PersistenceError, RegistryFormatError
from skill_factory.core.models import (
    DEFAULT_CATEGORIES,
    DEFAULT_MAINTAINER,
    Registry,
    SkillRecord,
    current_timestamp,
)
from skill_factory.utils.paths import write_text_atomic


class RegistryStore:
    """Loads and persists the registry document (``registry/discovery.json``).

    The store holds no registry state of its own. Commands load a Registry
    value once, pass it through the operations that change it and hand the
    result back to ``save``.

    Writes are not coordinated between processes: when two invocations save
    the same document, the later one wins.
    """

    def __init__(
        self,
        registry_path: Path,
        categories: Optional[list[str]] = None,
        maintainer: str = DEFAULT_MAINTAINER,
    ):
        """Initialize the store.

        Args:
            registry_path: Location of the registry JSON document
            categories: Category set used when a fresh registry is created
            maintainer: Maintainer string used when a fresh registry is created
        """
        self.registry_path = Path(registry_path)
        self.categories = list(categories) if categories else list(DEFAULT_CATEGORIES)
        self.maintainer = maintainer

    def empty(self) -> Registry:
        """Return a fresh registry with no skills."""
        return Registry(
            maintainer=self.maintainer,
            categories=list(self.categories),
            last_updated=current_timestamp(),
        )

    def load(self) -> Registry:
        """Load the registry from disk.

        A missing, unreadable or unparseable document is not an error: a fresh
        registry is returned instead. A document that parses but violates the
        registry schema is never replaced by a fresh one.

        Returns:
            The persisted Registry, or an empty one

        Raises:
            RegistryFormatError: If the document is not a valid registry
        """
        if not self.registry_path.exists():
            return self.empty()

        try:
            with open(self.registry_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError):
            return self.empty()

        try:
            return Registry.model_validate(data)
        except ValidationError as e:
            raise RegistryFormatError(
                f"Invalid registry {self.registry_path}: {_describe_error(data, e)}"
            ) from e

    def save(self, registry: Registry) -> Registry:
        """Persist the registry, replacing the whole document.

        ``lastUpdated`` is refreshed and the document is re-validated before
        anything touches the disk, so an inconsistent registry is never written.
        On a failed write the previous document is left as it was.

        Args:
            registry: Registry value to persist (not modified)

        Returns:
            A copy of the registry as written

        Raises:
            pydantic.ValidationError: If the registry violates its invariants
            PersistenceError: If the document cannot be written
        """
        saved = registry.model_copy(
            deep=True, update={"last_updated": current_timestamp()}
        )
        document = Registry.model_validate(saved.to_document()).to_document()
        content = json.dumps(document, indent=2, ensure_ascii=False) + "\n"

        try:
            write_text_atomic(self.registry_path, content)
        except OSError as e:
            raise PersistenceError(
                f"Failed to write registry {self.registry_path}: {e}"
            ) from e

        return saved


def _describe_error(data: Any, error: ValidationError) -> str:
    """Name the record and field behind the first schema violation."""
    details = error.errors()[0]
    loc = details["loc"]
    if len(loc) >= 2 and loc[0] == "skills" and isinstance(loc[1], int):
        skill = data["skills"][loc[1]]
        name = skill.get("name") if isinstance(skill, dict) else None
        field = ".".join(str(part) for part in loc[2:]) or "record"
        return f'skill {name or loc[1]!r}, field "{field}": {details["msg"]}'
    location = ".".join(str(part) for part in loc)
    if location:
        return f'field "{location}": {details["msg"]}'
    return details["msg"]


def find_skill(registry: Registry, name: str) -> Optional[SkillRecord]:
    """Look up a skill record by name.

    Returns:
        The matching SkillRecord, or None if the skill is not registered
    """
    for skill in registry.skills:
        if skill.name == name:
            return skill
    return None


def upsert_skill(registry: Registry, record: SkillRecord) -> tuple[Registry, bool]:
    """Insert a record, or replace the record with the same name.

    The replaced record's ``created`` timestamp is carried over; every other
    field comes from ``record``. The input registry is not modified.

    Returns:
        Tuple of (updated registry, True if the record was newly added)
    """
    updated = registry.model_copy(deep=True)

    for index, existing in enumerate(updated.skills):
        if existing.name == record.name:
            updated.skills[index] = record.model_copy(
                update={"created": existing.created}
            )
            return updated, False

    updated.skills.append(record)
    return updated, True


def suggest_next_skills(
    registry: Registry, category: str, output_type: str, limit: int = 3
) -> list[str]:
    """Suggest registered skills that could follow a skill in a chain.

    A skill qualifies when it shares the category, or when one of its
    declared inputs mentions the output type (without its ``Output`` suffix).
    Only names present in the registry are ever returned.

    Args:
        registry: Registry to search
        category: Category of the producing skill
        output_type: Output type name of the producing skill
        limit: Maximum number of suggestions

    Returns:
        Up to ``limit`` skill names, in registry order
    """
    needle = output_type.lower().replace("output", "")
    suggestions = []

    for skill in registry.skills:
        if skill.category == category or any(
            needle in entry.lower() for entry in skill.skill_link.input
        ):
            suggestions.append(skill.name)
        if len(suggestions) >= limit:
            break

    return suggestions
