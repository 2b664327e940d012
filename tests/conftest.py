"""Pytest configuration for design-kb tests.

Logs are redirected to a temporary directory before any design_kb module is
imported, so test runs never write under the user's home directory.
"""

import copy
import json
import os
import tempfile

import pytest

os.environ.setdefault("DESIGN_KB_LOG_DIR", tempfile.mkdtemp(prefix="design-kb-logs-"))

from design_kb.repository import DocumentStore, FeatureRepository, TermRepository  # noqa: E402

SAMPLE_FEATURE = {
    "feature": {
        "name": "Checkout",
        "purpose": "Turn a shopping cart into a paid order.",
        "userStories": ["As a shopper I want to pay for my cart in one step"],
    },
    "inputs": [
        {
            "name": "cart",
            "dataTypeDescription": "List of line items with quantity and unit price",
            "constraints": ["at least one item"],
            "purpose": "What is being bought",
        }
    ],
    "outputs": [
        {
            "condition": "payment accepted",
            "dataDescription": "The created order",
            "structureHint": {"orderId": "string", "total": "number"},
        }
    ],
    "coreLogicSteps": [
        {"stepNumber": 1, "description": "Price the cart", "inputs": ["cart"], "output": "total"},
        {"stepNumber": 2, "description": "Charge the card", "inputs": ["total"], "output": "receipt"},
    ],
    "errorHandling": [
        {
            "errorCondition": "card declined",
            "detectionPoint": "step 2",
            "handlingStrategyDescription": "abort and keep the cart",
            "resultingOutputCondition": "payment rejected",
        }
    ],
    "nonFunctionalRequirements": [
        {"requirement": "p99 under 500ms", "considerationsForLogic": "no synchronous emails"}
    ],
    "documentationNotes": ["Prices are in minor units"],
}

SAMPLE_TERM = {
    "term": {
        "name": "注文",
        "definition": "A confirmed request from a customer to buy items.",
        "aliases": ["Order", "purchase order"],
        "context": {"boundedContext": "Sales", "scope": "Checkout and fulfilment"},
    },
    "details": {
        "category": "Entity",
        "examples": [{"scenario": "Checkout", "description": "Created when payment succeeds"}],
        "ambiguitiesAndBoundaries": ["A cart is not an order"],
    },
    "relationships": {
        "relatedTerms": [{"termName": "Cart", "relationshipType": "created from"}],
        "associatedFunctions": ["Checkout"],
    },
    "implementation": {
        "codeMapping": "class Order",
        "dataStructureHint": {"id": "string", "lines": "list"},
        "constraints": ["total >= 0"],
    },
}


def make_feature(name: str = "Checkout", **overrides) -> dict:
    """A valid feature payload with the given name and top-level overrides."""
    data = copy.deepcopy(SAMPLE_FEATURE)
    data["feature"]["name"] = name
    data.update(overrides)
    return data


def make_term(name: str = "注文", category: str = "Entity", bounded_context: str = "Sales") -> dict:
    """A valid term payload with the given name, category and context."""
    data = copy.deepcopy(SAMPLE_TERM)
    data["term"]["name"] = name
    data["details"]["category"] = category
    data["term"]["context"]["boundedContext"] = bounded_context
    return data


@pytest.fixture
def feature_payload():
    return make_feature()


@pytest.fixture
def term_payload():
    return make_term()


@pytest.fixture
def data_file(tmp_path):
    """Path of a design document that does not exist yet."""
    return tmp_path / "kb" / "design.json"


@pytest.fixture
def write_document(data_file):
    """Write raw content (dict as JSON, or str as-is) to the design document."""

    def _write(content):
        data_file.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            data_file.write_text(content, encoding="utf-8")
        else:
            data_file.write_text(json.dumps(content, ensure_ascii=False), encoding="utf-8")
        return data_file

    return _write


@pytest.fixture
def read_document(data_file):
    def _read():
        return json.loads(data_file.read_text(encoding="utf-8"))

    return _read


@pytest.fixture
def store(data_file):
    return DocumentStore(data_file)


@pytest.fixture
def feature_repo(store):
    return FeatureRepository(store)


@pytest.fixture
def term_repo(store):
    return TermRepository(store)
