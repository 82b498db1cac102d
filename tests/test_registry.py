"""Tests for the registry store and registry helpers."""

import json
import stat

import pytest
from pydantic import ValidationError

from skill_factory.core.errors import PersistenceError, RegistryFormatError
from skill_factory.core.models import Registry, SkillLink, SkillRecord, SkillStatus
from skill_factory.core.registry import (
    RegistryStore,
    find_skill,
    suggest_next_skills,
    upsert_skill,
)


def make_record(name: str, category: str = "web", **overrides) -> SkillRecord:
    data = {
        "name": name,
        "category": category,
        "version": "1.0.0",
        "capability": f"{name} capability",
        "mcpCommand": f"mcp__{name.replace('-', '_')}__main",
        "entrypoint": f"./skills/{category}/{name}/index.ts",
        "created": "2026-01-01T00:00:00.000Z",
        "updated": "2026-01-01T00:00:00.000Z",
    }
    data.update(overrides)
    return SkillRecord.model_validate(data)


@pytest.fixture
def store(registry_path):
    """Create a registry store backed by a temporary file."""
    return RegistryStore(registry_path)


class TestRegistryStoreLoad:
    """Test loading the registry document."""

    def test_load_missing_document(self, store):
        """Test that a missing document yields an empty registry."""
        registry = store.load()

        assert registry.skills == []
        assert registry.categories == ["web", "code", "data", "automation"]
        assert registry.maintainer == "AIwork4me"
        assert registry.last_updated

    def test_load_corrupted_document(self, store, registry_path):
        """Test that invalid JSON yields an empty registry instead of raising."""
        registry_path.parent.mkdir(parents=True)
        registry_path.write_text("{ not json")

        registry = store.load()

        assert registry.skills == []

    def test_load_invalid_record_raises(self, store, registry_path):
        """Test that a schema violation is reported instead of discarding records."""
        document = Registry(skills=[make_record("keep-me")]).to_document()
        legacy = make_record("legacy").model_dump(mode="json", by_alias=True)
        legacy["version"] = "1.0"
        document["skills"].append(legacy)
        registry_path.parent.mkdir(parents=True)
        registry_path.write_text(json.dumps(document))
        original = registry_path.read_bytes()

        with pytest.raises(RegistryFormatError) as exc_info:
            store.load()

        message = str(exc_info.value)
        assert "'legacy'" in message
        assert '"version"' in message
        assert registry_path.read_bytes() == original

    def test_load_duplicate_names_raises(self, store, registry_path):
        record = make_record("dup").model_dump(mode="json", by_alias=True)
        registry_path.parent.mkdir(parents=True)
        registry_path.write_text(json.dumps({"skills": [record, record]}))

        with pytest.raises(RegistryFormatError, match="Duplicate skill"):
            store.load()

    def test_empty_uses_configured_categories(self, registry_path):
        """Test that a fresh registry takes the store's category set."""
        store = RegistryStore(registry_path, categories=["web", "ml"], maintainer="me")

        registry = store.load()

        assert registry.categories == ["web", "ml"]
        assert registry.maintainer == "me"


class TestRegistryStoreSave:
    """Test persisting the registry document."""

    def test_save_and_load(self, store, registry_path):
        """Test that a saved registry round-trips through the store."""
        registry = store.load()
        registry.skills.append(make_record("page-fetcher"))

        store.save(registry)

        assert registry_path.exists()
        loaded = store.load()
        assert [s.name for s in loaded.skills] == ["page-fetcher"]
        assert loaded.skills[0].status == SkillStatus.ALPHA

    def test_save_writes_camel_case_document(self, store, registry_path):
        """Test the on-disk document shape."""
        registry = store.load()
        registry.skills.append(make_record("page-fetcher"))

        store.save(registry)

        document = json.loads(registry_path.read_text())
        assert document["$schema"].endswith("discovery-2026.json")
        assert "lastUpdated" in document
        skill = document["skills"][0]
        assert skill["mcpCommand"] == "mcp__page_fetcher__main"
        assert skill["skillLink"] == {"input": [], "output": [], "chainable": True}
        assert "runtime" not in skill

    def test_save_refreshes_last_updated(self, store):
        """Test that saving stamps lastUpdated on a copy."""
        registry = store.load()
        registry.last_updated = "2000-01-01T00:00:00.000Z"

        saved = store.save(registry)

        assert saved.last_updated != "2000-01-01T00:00:00.000Z"
        assert registry.last_updated == "2000-01-01T00:00:00.000Z"
        assert store.load().last_updated == saved.last_updated

    def test_save_creates_directory(self, store, registry_path):
        """Test that save creates the registry directory."""
        store.save(store.load())

        assert registry_path.parent.is_dir()

    def test_save_leaves_no_temp_files(self, store, registry_path):
        """Test that the atomic write cleans up after itself."""
        store.save(store.load())
        store.save(store.load())

        assert [p.name for p in registry_path.parent.iterdir()] == ["discovery.json"]

    def test_save_rejects_duplicate_names(self, store, registry_path):
        """Test that an inconsistent registry is never written."""
        registry = store.load()
        registry.skills.append(make_record("dup"))
        registry.skills.append(make_record("dup"))

        with pytest.raises(ValidationError):
            store.save(registry)

        assert not registry_path.exists()

    def test_save_failure_raises_persistence_error(self, tmp_path):
        """Test that write failures surface as PersistenceError."""
        blocker = tmp_path / "registry"
        blocker.write_text("a file where a directory should be")
        store = RegistryStore(blocker / "discovery.json")

        with pytest.raises(PersistenceError):
            store.save(store.load())

    def test_failed_write_keeps_previous_document(
        self, store, registry_path, monkeypatch
    ):
        """Test that a failed replace leaves the old document and no temp file."""
        registry = store.load()
        registry.skills.append(make_record("page-fetcher"))
        store.save(registry)
        original = registry_path.read_bytes()

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("skill_factory.utils.paths.os.replace", failing_replace)
        registry.skills.append(make_record("csv-parser", category="data"))

        with pytest.raises(PersistenceError, match="disk full"):
            store.save(registry)

        assert registry_path.read_bytes() == original
        assert [p.name for p in registry_path.parent.iterdir()] == ["discovery.json"]

    def test_save_keeps_file_mode(self, store, registry_path):
        """Test that replacing the document keeps its permission bits."""
        store.save(store.load())
        assert stat.S_IMODE(registry_path.stat().st_mode) == 0o644

        registry_path.chmod(0o640)
        store.save(store.load())

        assert stat.S_IMODE(registry_path.stat().st_mode) == 0o640


class TestRecordInvariants:
    """Test SkillRecord and Registry invariants."""

    def test_rejects_non_semver_version(self):
        with pytest.raises(ValidationError):
            make_record("page-fetcher", version="1.0")

    def test_rejects_non_kebab_name(self):
        with pytest.raises(ValidationError):
            make_record("Page_Fetcher")

    def test_rejects_unknown_status(self):
        with pytest.raises(ValidationError):
            make_record("page-fetcher", status="retired")

    def test_rejects_duplicate_names(self):
        with pytest.raises(ValidationError):
            Registry(skills=[make_record("dup"), make_record("dup")])


class TestRegistryHelpers:
    """Test pure helpers over the registry value."""

    def test_find_skill(self):
        registry = Registry(skills=[make_record("a-skill"), make_record("b-skill")])

        assert find_skill(registry, "b-skill").name == "b-skill"
        assert find_skill(registry, "missing") is None

    def test_upsert_appends_new_record(self):
        """Test that an unknown record is appended."""
        registry = Registry()

        updated, created = upsert_skill(registry, make_record("a-skill"))

        assert created is True
        assert len(updated.skills) == 1
        assert registry.skills == []

    def test_upsert_preserves_created(self):
        """Test that replacing a record keeps its creation timestamp."""
        registry = Registry(skills=[make_record("a-skill")])
        replacement = make_record(
            "a-skill",
            version="2.0.0",
            created="2026-06-01T00:00:00.000Z",
            updated="2026-06-01T00:00:00.000Z",
        )

        updated, created = upsert_skill(registry, replacement)

        assert created is False
        record = updated.skills[0]
        assert record.version == "2.0.0"
        assert record.created == "2026-01-01T00:00:00.000Z"
        assert record.updated == "2026-06-01T00:00:00.000Z"
        assert registry.skills[0].version == "1.0.0"

    def test_suggest_next_skills_by_category(self):
        registry = Registry(
            skills=[
                make_record("a-skill", category="web"),
                make_record("b-skill", category="data"),
                make_record("c-skill", category="web"),
            ]
        )

        assert suggest_next_skills(registry, "web", "FetcherOutput") == [
            "a-skill",
            "c-skill",
        ]

    def test_suggest_next_skills_by_input_type(self):
        """Test that skills accepting the output type are suggested."""
        consumer = make_record(
            "summarizer",
            category="data",
            skillLink=SkillLink(input=["input: FetcherResult"]),
        )
        registry = Registry(skills=[consumer])

        assert suggest_next_skills(registry, "web", "FetcherOutput") == ["summarizer"]

    def test_suggest_next_skills_limit(self):
        registry = Registry(
            skills=[make_record(f"skill-{i}", category="web") for i in range(5)]
        )

        assert len(suggest_next_skills(registry, "web", "XOutput")) == 3
