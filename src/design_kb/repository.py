"""JSON document persistence for features and terms.

Every repository call loads the whole design document, works on it in memory
and, for mutations, writes it back. Nothing is cached between calls, so edits
made to the file by other tools are always picked up.

Mutations on one :class:`DocumentStore` are serialized with an
``asyncio.Lock``, which rules out lost updates between writers inside this
process. Separate processes sharing the file are still last-write-wins.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Generic, TypeVar

from .config import get_default_data_file
from .entities import Feature, Term
from .errors import Result, StorageError
from .identity import FeatureName, TermName
from .models import DeletionResult, FeatureSummary, OperationResult, TermSummary

logger = logging.getLogger("design_kb.repository")

COLLECTIONS = ("features", "terms")

E = TypeVar("E", Feature, Term)
N = TypeVar("N", FeatureName, TermName)


def empty_document() -> dict[str, list]:
    return {"features": [], "terms": []}


@dataclass(frozen=True)
class LookupResult(Generic[E, N]):
    """Outcome of a multi-name lookup, in request order."""

    found: list[E] = field(default_factory=list)
    not_found: list[N] = field(default_factory=list)


class DocumentStore:
    """Owns the design document file: load, persist and the write lock."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path).expanduser() if path else get_default_data_file()
        self.lock = asyncio.Lock()

    def _read(self) -> dict[str, Any]:
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return empty_document()
        except OSError as e:
            raise StorageError(f"Failed to load design document: {e}") from e

        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            raise StorageError(f"Failed to load design document: {e}") from e

        if not isinstance(document, dict):
            logger.warning(f"Design document root is not an object, treating as empty: {self.path}")
            document = {}

        # Coerce missing or malformed collections; other top-level keys are kept
        for key in COLLECTIONS:
            if not isinstance(document.get(key), list):
                document[key] = []
        return document

    def _write(self, document: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            content = json.dumps(document, indent=2, ensure_ascii=False)
            self.path.write_text(content, encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to save design document: {e}") from e

    async def load(self) -> dict[str, Any]:
        """Read the document. A missing file is an empty document.

        Raises:
            StorageError: unreadable file or invalid JSON.
        """
        return await asyncio.to_thread(self._read)

    async def persist(self, document: dict[str, Any]) -> None:
        """Overwrite the file with ``document`` as pretty-printed JSON.

        Raises:
            StorageError: the file could not be written.
        """
        await asyncio.to_thread(self._write, document)
        logger.debug(
            f"Saved design document: {len(document['features'])} features, "
            f"{len(document['terms'])} terms"
        )


class _RecordRepository(Generic[E, N]):
    """Shared load-mutate-persist logic for one collection of the document."""

    collection: str
    section: str
    entity_type: type[E]
    label: str

    def __init__(self, store: DocumentStore):
        self.store = store

    # ------------------------------------------------------------------
    # Record helpers
    # ------------------------------------------------------------------

    def _record_name(self, record: Any) -> Any:
        if isinstance(record, dict) and isinstance(record.get(self.section), dict):
            return record[self.section].get("name")
        return None

    def _index_of(self, records: list[Any], name: N) -> int:
        for index, record in enumerate(records):
            stored = self._record_name(record)
            if isinstance(stored, str) and stored.strip() == name.value:
                return index
        return -1

    def _build(self, record: Any) -> Result:
        result = self.entity_type.create(record)
        if not result.ok:
            name = self._record_name(record)
            return Result.failure(
                StorageError(f"Failed to load {self.label} '{name}': {result.error.message}")
            )
        return result

    def _summarize(self, record: Any) -> Any:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def find_by_name(self, name: N) -> Result:
        """Exact-name lookup. Success with ``None`` when absent."""
        try:
            document = await self.store.load()
            index = self._index_of(document[self.collection], name)
            if index < 0:
                return Result.success(None)
            return self._build(document[self.collection][index])
        except Exception as e:
            return Result.from_exception(e, f"Error while fetching {self.label} '{name}'")

    async def find_all(self) -> Result:
        """All records as entities. Fails if any stored record is invalid."""
        try:
            document = await self.store.load()
            entities = []
            errors = []
            for record in document[self.collection]:
                result = self._build(record)
                if result.ok:
                    entities.append(result.value)
                else:
                    errors.append(result.error.message)

            if errors:
                logger.warning(f"{len(errors)} invalid {self.label} record(s) in {self.store.path}")
                return Result.failure(StorageError(", ".join(errors)))
            return Result.success(entities)
        except Exception as e:
            return Result.from_exception(e, f"Error while fetching all {self.collection}")

    async def get_list(self) -> Result:
        """Summaries of every record, without full validation."""
        try:
            document = await self.store.load()
            return Result.success([self._summarize(r) for r in document[self.collection]])
        except Exception as e:
            return Result.from_exception(e, f"Error while listing {self.collection}")

    async def exists(self, name: N) -> Result:
        result = await self.find_by_name(name)
        if not result.ok:
            return result
        return Result.success(result.value is not None)

    async def count(self) -> Result:
        """Number of stored records. Does not validate them."""
        try:
            document = await self.store.load()
            return Result.success(len(document[self.collection]))
        except Exception as e:
            return Result.from_exception(e, f"Error while counting {self.collection}")

    async def find_by_names(self, names: list[N]) -> Result:
        """Look up each name, partitioning into found entities and absent names.

        Order follows ``names``. Only absent records go to ``not_found``; an
        invalid stored record fails the whole call.
        """
        try:
            document = await self.store.load()
            records = document[self.collection]
            found = []
            not_found = []
            for name in names:
                index = self._index_of(records, name)
                if index < 0:
                    not_found.append(name)
                    continue
                result = self._build(records[index])
                if not result.ok:
                    return result
                found.append(result.value)
            return Result.success(LookupResult(found=found, not_found=not_found))
        except Exception as e:
            return Result.from_exception(e, f"Error while fetching {self.collection} by name")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def save(self, entity: E) -> Result:
        """Replace the record with the same name, or append it."""
        try:
            async with self.store.lock:
                document = await self.store.load()
                records = document[self.collection]
                index = self._index_of(records, entity.name)
                is_update = index >= 0
                if is_update:
                    records[index] = entity.data
                else:
                    records.append(entity.data)
                await self.store.persist(document)

            logger.info(f"{'Updated' if is_update else 'Added'} {self.label} '{entity.name}'")
            return Result.success(OperationResult(is_update=is_update))
        except Exception as e:
            return Result.from_exception(e, f"Error while saving {self.label} '{entity.name}'")

    async def delete(self, name: N) -> Result:
        """Remove the named record. Absent records leave the file untouched."""
        try:
            async with self.store.lock:
                document = await self.store.load()
                records = document[self.collection]
                index = self._index_of(records, name)
                if index < 0:
                    return Result.success(DeletionResult(found=False))
                del records[index]
                await self.store.persist(document)

            logger.info(f"Deleted {self.label} '{name}'")
            return Result.success(DeletionResult(found=True))
        except Exception as e:
            return Result.from_exception(e, f"Error while deleting {self.label} '{name}'")


class FeatureRepository(_RecordRepository[Feature, FeatureName]):
    """Feature definitions stored under ``features``."""

    collection = "features"
    section = "feature"
    entity_type = Feature
    label = "feature"

    def _summarize(self, record: Any) -> FeatureSummary:
        info = record.get("feature") if isinstance(record, dict) else None
        info = info if isinstance(info, dict) else {}
        return FeatureSummary(
            name=_text(info.get("name")),
            purpose=_text(info.get("purpose")),
        )


class TermRepository(_RecordRepository[Term, TermName]):
    """Ubiquitous-language terms stored under ``terms``."""

    collection = "terms"
    section = "term"
    entity_type = Term
    label = "term"

    def _summarize(self, record: Any) -> TermSummary:
        record = record if isinstance(record, dict) else {}
        info = record.get("term") if isinstance(record.get("term"), dict) else {}
        details = record.get("details") if isinstance(record.get("details"), dict) else {}
        return TermSummary(
            name=_text(info.get("name")),
            definition=_text(info.get("definition")),
            category=_text(details.get("category")),
        )

    async def _filter(self, predicate: Callable[[Term], bool]) -> Result:
        result = await self.find_all()
        if not result.ok:
            return result
        return Result.success([term for term in result.value if predicate(term)])

    async def find_by_category(self, category: str) -> Result:
        return await self._filter(lambda term: term.category == category)

    async def find_by_bounded_context(self, bounded_context: str) -> Result:
        return await self._filter(lambda term: term.bounded_context == bounded_context)

    async def find_by_associated_function(self, function_name: str) -> Result:
        return await self._filter(lambda term: term.is_associated_with_function(function_name))


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
