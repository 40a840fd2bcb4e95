"""Graph query-parameter builders for the search strategies.

Graph rejects ``$search`` combined with ``$orderby`` on the messages
endpoint, so every builder here emits at most one of the two.
"""

from mail_search.graph.config import DEFAULT_ORDERBY, DEFAULT_SELECT_FIELDS
from mail_search.search.types import FilterTerms, QueryParameters, SearchTerms

# Order in which field-scoped KQL clauses are appended to the combined search.
_COMBINED_FIELDS = ("subject", "from", "to")


def kql_clause(field_name: str, value: str) -> str:
    """Quote a single term, prefixing the field except for the bare query."""
    if field_name == "query":
        return f'"{value}"'
    return f'{field_name}:"{value}"'


def add_boolean_filters(params: QueryParameters, filters: FilterTerms) -> None:
    """Merge the active boolean filters into ``params["$filter"]`` in place."""
    conditions: list[str] = []
    if filters.has_attachments is True:
        conditions.append("hasAttachments eq true")
    if filters.unread_only is True:
        conditions.append("isRead eq false")

    if conditions:
        params["$filter"] = " and ".join(conditions)


def build_search_params(
    terms: SearchTerms,
    filters: FilterTerms,
    count: int,
    select_fields: str = DEFAULT_SELECT_FIELDS,
) -> QueryParameters:
    """Build the most specific parameter set: every present term in one ``$search``."""
    params: QueryParameters = {"$top": count, "$select": select_fields}

    clauses: list[str] = []
    if terms.query:
        clauses.append(kql_clause("query", terms.query))
    for field_name in _COMBINED_FIELDS:
        value = terms.get(field_name)
        if value:
            clauses.append(kql_clause(field_name, value))

    if clauses:
        params["$search"] = " ".join(clauses)
    else:
        params["$orderby"] = DEFAULT_ORDERBY

    add_boolean_filters(params, filters)
    return params


def build_single_term_params(
    field_name: str,
    value: str,
    filters: FilterTerms,
    count: int,
    select_fields: str = DEFAULT_SELECT_FIELDS,
) -> QueryParameters:
    """Build a parameter set searching on one field only (no ordering)."""
    params: QueryParameters = {
        "$top": count,
        "$select": select_fields,
        "$search": kql_clause(field_name, value),
    }
    add_boolean_filters(params, filters)
    return params


def build_filter_only_params(
    filters: FilterTerms,
    count: int,
    select_fields: str = DEFAULT_SELECT_FIELDS,
) -> QueryParameters:
    """Build a recent-first parameter set constrained only by boolean filters."""
    params: QueryParameters = {
        "$top": count,
        "$select": select_fields,
        "$orderby": DEFAULT_ORDERBY,
    }
    add_boolean_filters(params, filters)
    return params


def build_recent_params(count: int, select_fields: str = DEFAULT_SELECT_FIELDS) -> QueryParameters:
    return {"$top": count, "$select": select_fields, "$orderby": DEFAULT_ORDERBY}
