"""Wiring of store, repositories and use cases for one design document."""

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .config import SERVER_VERSION
from .errors import Result
from .models import Statistics
from .repository import DocumentStore, FeatureRepository, TermRepository
from .usecases import (
    AddOrUpdateFeatureUseCase,
    AddOrUpdateTermUseCase,
    DeleteFeatureUseCase,
    DeleteTermUseCase,
    GetDetailsUseCase,
)


@dataclass
class KnowledgeBase:
    """Everything a transport needs to serve one design document."""

    store: DocumentStore
    features: FeatureRepository
    terms: TermRepository
    add_or_update_feature: AddOrUpdateFeatureUseCase
    delete_feature: DeleteFeatureUseCase
    add_or_update_term: AddOrUpdateTermUseCase
    delete_term: DeleteTermUseCase
    get_details: GetDetailsUseCase
    started_at: float = field(default_factory=time.monotonic)

    @classmethod
    def open(cls, data_file: str | Path | None = None) -> "KnowledgeBase":
        store = DocumentStore(data_file)
        features = FeatureRepository(store)
        terms = TermRepository(store)
        return cls(
            store=store,
            features=features,
            terms=terms,
            add_or_update_feature=AddOrUpdateFeatureUseCase(features),
            delete_feature=DeleteFeatureUseCase(features),
            add_or_update_term=AddOrUpdateTermUseCase(terms),
            delete_term=DeleteTermUseCase(terms),
            get_details=GetDetailsUseCase(features, terms),
        )

    async def statistics(self) -> Result:
        feature_count = await self.features.count()
        if not feature_count.ok:
            return feature_count
        term_count = await self.terms.count()
        if not term_count.ok:
            return term_count
        return Result.success(Statistics(
            feature_count=feature_count.value,
            term_count=term_count.value,
        ))

    async def health(self) -> dict[str, Any]:
        """Liveness of both repositories, measured by a document read each."""
        feature_ok = (await self.features.count()).ok
        term_ok = (await self.terms.count()).ok
        return {
            "status": "healthy" if feature_ok and term_ok else "unhealthy",
            "details": {
                "featureRepository": feature_ok,
                "termRepository": term_ok,
            },
            "version": SERVER_VERSION,
            "uptime": round(time.monotonic() - self.started_at, 3),
        }


def utc_timestamp() -> str:
    """Current time as an ISO 8601 string with a UTC offset."""
    return datetime.now(UTC).isoformat()
