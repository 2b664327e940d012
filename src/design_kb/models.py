"""Data models for design-kb.

Record schemas (``FeatureData``, ``TermData``) describe the JSON shape stored
in the design document. They run in strict mode so a wrong container type is
reported instead of silently coerced. Field names are snake_case in Python and
camelCase on the wire.
"""

from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


# A string that must contain something other than whitespace
NonBlankStr = Annotated[str, AfterValidator(_require_text)]


class CamelModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class RecordModel(CamelModel):
    """Base for stored record shapes. Unknown keys are tolerated."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        extra="allow",
    )


# ============================================================================
# Feature definition
# ============================================================================


class FeatureInfo(RecordModel):
    """Basic information about a feature."""

    name: str = Field(..., description="Feature name, e.g. 'KeywordExtractor'")
    purpose: NonBlankStr = Field(..., description="What the feature achieves, in 1-2 sentences")
    user_stories: list[str] = Field(..., description="User scenarios this feature addresses")


class InputParameter(RecordModel):
    """An input the feature receives."""

    name: NonBlankStr = Field(..., description="Conceptual name of the input")
    data_type_description: NonBlankStr = Field(..., description="Language-neutral description of the data")
    constraints: list[str] = Field(..., description="Constraints on the value")
    purpose: NonBlankStr = Field(..., description="How the feature uses this input")


class OutputSpec(RecordModel):
    """An output the feature produces under some condition."""

    condition: NonBlankStr = Field(..., description="When this output is produced")
    data_description: NonBlankStr = Field(..., description="Language-neutral description of the output")
    structure_hint: dict[str, Any] = Field(..., description="Free-form hint about the output structure")


class CoreLogicStep(RecordModel):
    """One step of the feature's core logic."""

    step_number: int = Field(..., ge=1, description="Step number, unique within the feature")
    description: NonBlankStr
    inputs: list[str]
    output: NonBlankStr


class ErrorHandlingSpec(RecordModel):
    """How one error condition is detected and handled."""

    error_condition: str
    detection_point: str
    handling_strategy_description: str
    resulting_output_condition: str


class NonFunctionalRequirement(RecordModel):
    """A non-functional requirement and what it means for the logic."""

    requirement: str
    considerations_for_logic: str


class FeatureData(RecordModel):
    """A complete feature definition record."""

    feature: FeatureInfo
    inputs: list[InputParameter]
    outputs: list[OutputSpec]
    core_logic_steps: list[CoreLogicStep]
    error_handling: list[ErrorHandlingSpec]
    non_functional_requirements: list[NonFunctionalRequirement]
    documentation_notes: list[str]


# ============================================================================
# Ubiquitous-language term
# ============================================================================


class TermContext(RecordModel):
    """Where a term applies."""

    bounded_context: NonBlankStr
    scope: NonBlankStr


class TermInfo(RecordModel):
    """Basic information about a term."""

    name: str = Field(..., description="Term name")
    definition: NonBlankStr = Field(..., description="What the term means in this domain")
    aliases: list[str] = Field(..., description="Other names for the same concept")
    context: TermContext


class TermExample(RecordModel):
    """A usage example of a term."""

    scenario: NonBlankStr
    description: NonBlankStr


class TermDetails(RecordModel):
    """Category, examples and boundaries of a term."""

    category: NonBlankStr
    examples: list[TermExample]
    ambiguities_and_boundaries: list[str]


class RelatedTerm(RecordModel):
    """A typed link to another term."""

    term_name: NonBlankStr
    relationship_type: NonBlankStr


class TermRelationships(RecordModel):
    """Links to other terms and to features (by feature name, not enforced)."""

    related_terms: list[RelatedTerm]
    associated_functions: list[str]


class TermImplementation(RecordModel):
    """How a term maps onto code."""

    code_mapping: NonBlankStr
    data_structure_hint: dict[str, Any]
    constraints: list[str]


class TermData(RecordModel):
    """A complete ubiquitous-language term record."""

    term: TermInfo
    details: TermDetails
    relationships: TermRelationships
    implementation: TermImplementation


# ============================================================================
# Projections and operation outcomes
# ============================================================================


class FeatureSummary(CamelModel):
    """Lightweight feature entry for index views."""

    name: str
    purpose: str


class TermSummary(CamelModel):
    """Lightweight term entry for index views."""

    name: str
    definition: str
    category: str


class Statistics(CamelModel):
    """Record counts of the design document."""

    feature_count: int
    term_count: int


class OperationResult(CamelModel):
    """Outcome of an upsert."""

    is_update: bool


class DeletionResult(CamelModel):
    """Outcome of a delete. ``found=False`` means nothing was removed."""

    found: bool


class NotFoundNames(CamelModel):
    feature_names: list[str] = Field(default_factory=list)
    term_names: list[str] = Field(default_factory=list)


class DetailsResponse(CamelModel):
    """Full records for the requested names plus the names that were absent."""

    features: list[dict[str, Any]] = Field(default_factory=list)
    terms: list[dict[str, Any]] = Field(default_factory=list)
    not_found: NotFoundNames = Field(default_factory=NotFoundNames)
