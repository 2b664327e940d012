"""Application operations over the feature and term repositories.

Each use case offers a cheap synchronous ``validate_input`` for transports to
call first, and an async ``execute`` that does the real work. Neither raises:
failures come back as :class:`~design_kb.errors.Result`.
"""

import logging
from typing import Any

from .entities import Feature, Term
from .errors import Result, ValidationError
from .identity import FeatureName, TermName
from .models import DetailsResponse, NotFoundNames
from .repository import FeatureRepository, LookupResult, TermRepository

logger = logging.getLogger("design_kb.usecases")


def _check_payload(raw: Any, section: str, name_type: type[FeatureName] | type[TermName]) -> Result:
    if not isinstance(raw, dict) or not raw:
        return Result.failure(ValidationError(f"No {section} data was provided"))
    if not isinstance(raw.get(section), dict):
        return Result.failure(ValidationError(f"'{section}' must be an object"))

    name = raw[section].get("name")
    if not isinstance(name, str) or not name:
        return Result.failure(ValidationError(f"{name_type.label} is missing or not a string"))
    if not name_type.is_valid(name):
        return Result.failure(ValidationError(f"{name_type.label} has an invalid format: '{name}'"))
    return Result.success()


def _check_name(raw: Any, name_type: type[FeatureName] | type[TermName]) -> Result:
    if not isinstance(raw, str) or not raw:
        return Result.failure(ValidationError(f"{name_type.label} is required"))
    if not name_type.is_valid(raw):
        return Result.failure(ValidationError(f"{name_type.label} has an invalid format: '{raw}'"))
    return Result.success()


# ============================================================================
# Features
# ============================================================================


class AddOrUpdateFeatureUseCase:
    """Validate a feature payload and upsert it by name."""

    def __init__(self, feature_repository: FeatureRepository):
        self.feature_repository = feature_repository

    def validate_input(self, raw: Any) -> Result:
        return _check_payload(raw, "feature", FeatureName)

    async def execute(self, raw: Any) -> Result:
        try:
            created = Feature.create(raw)
            if not created.ok:
                return created
            feature = created.value

            exists = await self.feature_repository.exists(feature.name)
            if not exists.ok:
                return exists
            logger.debug(f"Feature '{feature.name}' exists: {exists.value}")

            if exists.value:
                permitted = await self.check_update_permission(feature.name)
                if not permitted.ok:
                    return permitted

            dependencies = await self.validate_dependencies(feature)
            if not dependencies.ok:
                return dependencies

            return await self.feature_repository.save(feature)
        except Exception as e:
            logger.error(f"Unexpected error while saving feature: {e}", exc_info=True)
            return Result.from_exception(e, "Unexpected error while adding or updating feature")

    async def validate_dependencies(self, feature: Feature) -> Result:
        """Check cross-record references. Nothing is enforced yet."""
        return Result.success()

    async def check_update_permission(self, name: FeatureName) -> Result:
        """Authorization hook for updates. Always allows."""
        return Result.success(True)


class DeleteFeatureUseCase:
    """Remove a feature by name."""

    def __init__(self, feature_repository: FeatureRepository):
        self.feature_repository = feature_repository

    def validate_input(self, raw_name: Any) -> Result:
        return _check_name(raw_name, FeatureName)

    async def execute(self, raw_name: Any) -> Result:
        try:
            parsed = FeatureName.create(raw_name)
            if not parsed.ok:
                return parsed
            name = parsed.value

            permitted = await self._check_delete_permission(name)
            if not permitted.ok:
                return permitted

            dependencies = await self._check_dependencies(name)
            if not dependencies.ok:
                return dependencies

            return await self.feature_repository.delete(name)
        except Exception as e:
            logger.error(f"Unexpected error while deleting feature: {e}", exc_info=True)
            return Result.from_exception(e, "Unexpected error while deleting feature")

    async def check_existence(self, raw_name: Any) -> Result:
        """Whether a feature with this name is stored."""
        parsed = FeatureName.create(raw_name)
        if not parsed.ok:
            return parsed
        return await self.feature_repository.exists(parsed.value)

    async def _check_delete_permission(self, name: FeatureName) -> Result:
        return Result.success()

    async def _check_dependencies(self, name: FeatureName) -> Result:
        # Terms may list this feature in associatedFunctions; that is not enforced
        return Result.success()


# ============================================================================
# Terms
# ============================================================================


class AddOrUpdateTermUseCase:
    """Validate a term payload and upsert it by name."""

    def __init__(self, term_repository: TermRepository):
        self.term_repository = term_repository

    def validate_input(self, raw: Any) -> Result:
        return _check_payload(raw, "term", TermName)

    async def execute(self, raw: Any) -> Result:
        try:
            created = Term.create(raw)
            if not created.ok:
                return created
            term = created.value

            exists = await self.term_repository.exists(term.name)
            if not exists.ok:
                return exists
            logger.debug(f"Term '{term.name}' exists: {exists.value}")

            if exists.value:
                permitted = await self.check_update_permission(term.name)
                if not permitted.ok:
                    return permitted

            dependencies = await self.validate_dependencies(term)
            if not dependencies.ok:
                return dependencies

            return await self.term_repository.save(term)
        except Exception as e:
            logger.error(f"Unexpected error while saving term: {e}", exc_info=True)
            return Result.from_exception(e, "Unexpected error while adding or updating term")

    async def validate_dependencies(self, term: Term) -> Result:
        """Check related terms and associated functions. Nothing is enforced yet."""
        return Result.success()

    async def check_update_permission(self, name: TermName) -> Result:
        """Authorization hook for updates. Always allows."""
        return Result.success(True)


class DeleteTermUseCase:
    """Remove a term by name."""

    def __init__(self, term_repository: TermRepository):
        self.term_repository = term_repository

    def validate_input(self, raw_name: Any) -> Result:
        return _check_name(raw_name, TermName)

    async def execute(self, raw_name: Any) -> Result:
        try:
            parsed = TermName.create(raw_name)
            if not parsed.ok:
                return parsed
            name = parsed.value

            permitted = await self._check_delete_permission(name)
            if not permitted.ok:
                return permitted

            dependencies = await self._check_dependencies(name)
            if not dependencies.ok:
                return dependencies

            return await self.term_repository.delete(name)
        except Exception as e:
            logger.error(f"Unexpected error while deleting term: {e}", exc_info=True)
            return Result.from_exception(e, "Unexpected error while deleting term")

    async def check_existence(self, raw_name: Any) -> Result:
        """Whether a term with this name is stored."""
        parsed = TermName.create(raw_name)
        if not parsed.ok:
            return parsed
        return await self.term_repository.exists(parsed.value)

    async def _check_delete_permission(self, name: TermName) -> Result:
        return Result.success()

    async def _check_dependencies(self, name: TermName) -> Result:
        # Other terms may reference this one in relatedTerms; that is not enforced
        return Result.success()


# ============================================================================
# Details
# ============================================================================


class GetDetailsUseCase:
    """Fetch full records for lists of feature and term names.

    An absent or empty list means that kind was not asked for; it is not
    reported as missing.
    """

    def __init__(self, feature_repository: FeatureRepository, term_repository: TermRepository):
        self.feature_repository = feature_repository
        self.term_repository = term_repository

    def validate_input(self, feature_names: Any = None, term_names: Any = None) -> Result:
        for raw_names, name_type in ((feature_names, FeatureName), (term_names, TermName)):
            if raw_names is None:
                continue
            if not isinstance(raw_names, list):
                return Result.failure(ValidationError(f"{name_type.label}s must be a list"))
            for raw in raw_names:
                if not isinstance(raw, str):
                    return Result.failure(ValidationError(f"{name_type.label} must be a string"))
                if not name_type.is_valid(raw):
                    return Result.failure(ValidationError(f"Invalid {name_type.label.lower()}: '{raw}'"))
        return Result.success()

    async def execute(
        self,
        feature_names: list[str] | None = None,
        term_names: list[str] | None = None,
    ) -> Result:
        try:
            features = await self._lookup(feature_names, FeatureName, self.feature_repository)
            if not features.ok:
                return features

            terms = await self._lookup(term_names, TermName, self.term_repository)
            if not terms.ok:
                return terms

            return Result.success(DetailsResponse(
                features=[f.data for f in features.value.found],
                terms=[t.data for t in terms.value.found],
                not_found=NotFoundNames(
                    feature_names=[n.value for n in features.value.not_found],
                    term_names=[n.value for n in terms.value.not_found],
                ),
            ))
        except Exception as e:
            logger.error(f"Unexpected error while fetching details: {e}", exc_info=True)
            return Result.from_exception(e, "Unexpected error while fetching details")

    async def get_all_features(self) -> Result:
        return await self.feature_repository.find_all()

    async def get_all_terms(self) -> Result:
        return await self.term_repository.find_all()

    async def _lookup(self, raw_names, name_type, repository) -> Result:
        if not raw_names:
            return Result.success(LookupResult())

        parsed = [name_type.create(raw) for raw in raw_names]
        errors = [r.error.message for r in parsed if not r.ok]
        if errors:
            return Result.failure(ValidationError(
                f"Invalid {name_type.label.lower()}s: {', '.join(errors)}"
            ))

        return await repository.find_by_names([r.value for r in parsed])
