"""User-facing messages shared by the MCP and REST transports."""

from .config import FEATURES_LIST_URI, TERMS_LIST_URI


def feature_saved(name: str, is_update: bool) -> str:
    return f"{'Updated' if is_update else 'Added'} feature '{name}'."


def feature_deleted(name: str) -> str:
    return f"Deleted feature '{name}'."


def feature_not_found(name: str) -> str:
    return f"Feature '{name}' was not found."


def term_saved(name: str, is_update: bool) -> str:
    return f"{'Updated' if is_update else 'Added'} term '{name}'."


def term_deleted(name: str) -> str:
    return f"Deleted term '{name}'."


def term_not_found(name: str) -> str:
    return f"Term '{name}' was not found."


DETAILS_RETRIEVED = "Retrieved details."
FEATURES_LISTED = "Retrieved feature list."
TERMS_LISTED = "Retrieved term list."
STATISTICS_RETRIEVED = "Retrieved statistics."

EMPTY_DETAILS_HINT = (
    "No featureNames or termNames were given. Browse the available items with:\n"
    f"- Feature list: {FEATURES_LIST_URI}\n"
    f"- Term list: {TERMS_LIST_URI}"
)


def route_not_found(method: str, path: str) -> str:
    return f"Endpoint {method} {path} was not found"


def details_summary(details) -> str:
    """Plain-text digest of a DetailsResponse: features, terms, then misses."""
    lines = [DETAILS_RETRIEVED, ""]

    if details.features:
        lines.append(f"Features ({len(details.features)}):")
        for data in details.features:
            lines.append(f"- {data['feature']['name']}: {data['feature']['purpose']}")
        lines.append("")

    if details.terms:
        lines.append(f"Terms ({len(details.terms)}):")
        for data in details.terms:
            lines.append(f"- {data['term']['name']}: {data['term']['definition']}")
        lines.append("")

    missing = details.not_found
    if missing.feature_names or missing.term_names:
        lines.append("Not found:")
        if missing.feature_names:
            lines.append(f"Features: {', '.join(missing.feature_names)}")
        if missing.term_names:
            lines.append(f"Terms: {', '.join(missing.term_names)}")

    if not (details.features or details.terms or missing.feature_names or missing.term_names):
        lines.append(EMPTY_DETAILS_HINT)

    return "\n".join(lines).rstrip()
