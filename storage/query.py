"""
Where-filters in the `{field: {operator: value}}` shape used by access rules
and callers, evaluated in memory or translated to a Mongo filter.
"""
from typing import Any, Dict, List, Optional

from bson import ObjectId

from access.rules import relation_id


def _resolve(doc: Dict[str, Any], path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return relation_id(value) if isinstance(value, dict) else value


def _match_condition(actual: Any, condition: Any) -> bool:
    if not isinstance(condition, dict):
        return actual == condition

    for operator, expected in condition.items():
        if operator == "equals" and actual != expected:
            return False
        if operator == "not_equals" and actual == expected:
            return False
        if operator == "in" and actual not in (expected or []):
            return False
        if operator == "exists" and (actual is not None) != bool(expected):
            return False
    return True


def matches_where(doc: Dict[str, Any], where: Optional[Dict[str, Any]]) -> bool:
    if not where:
        return True

    for key, condition in where.items():
        if key == "and":
            if not all(matches_where(doc, clause) for clause in condition):
                return False
        elif key == "or":
            if not any(matches_where(doc, clause) for clause in condition):
                return False
        elif not _match_condition(_resolve(doc, key), condition):
            return False
    return True


def combine_where(*clauses: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    present: List[Dict[str, Any]] = [c for c in clauses if c]
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return {"and": present}


def to_mongo_id(doc_id: Any) -> Any:
    """Ids that look like ObjectIds were assigned by Mongo and are stored as such."""
    if isinstance(doc_id, str) and ObjectId.is_valid(doc_id):
        return ObjectId(doc_id)
    return doc_id


def _id_condition(condition: Any) -> Any:
    if not isinstance(condition, dict):
        return to_mongo_id(condition)
    converted = {}
    for operator, expected in condition.items():
        if operator == "in":
            converted[operator] = [to_mongo_id(value) for value in expected or []]
        elif operator == "exists":
            converted[operator] = expected
        else:
            converted[operator] = to_mongo_id(expected)
    return converted


def to_mongo_filter(where: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not where:
        return {}

    clauses = []
    for key, condition in where.items():
        if key in ("and", "or"):
            clauses.append({f"${key}": [to_mongo_filter(c) for c in condition]})
            continue

        field = key
        if key == "id":
            field, condition = "_id", _id_condition(condition)
        if not isinstance(condition, dict):
            clauses.append({field: condition})
            continue

        for operator, expected in condition.items():
            if operator == "equals":
                clauses.append({field: expected})
            elif operator == "not_equals":
                clauses.append({field: {"$ne": expected}})
            elif operator == "in":
                clauses.append({field: {"$in": list(expected or [])}})
            elif operator == "exists":
                clauses.append({field: {"$ne": None}} if expected else {field: None})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}
