"""
Graph — Entity/relationship records and the per-run job state.

Entities and relationships are plain dicts in the shape the asset graph
expects:

    entity:
        {"_key": "u1", "_type": "atspoke_user", "_class": "User",
         "name": "...", ..., "_rawData": [{"name": "default", "rawData": {...}}]}

    relationship:
        {"_key": "atspoke-account-acme|has|u1",
         "_type": "atspoke_account_has_user", "_class": "HAS",
         "_fromEntityKey": "atspoke-account-acme", "_toEntityKey": "u1",
         "displayName": "HAS"}

JobState is the working set for one run. It is append-only and keyed by
_key: emitting a key twice raises DuplicateKeyError, and a relationship whose
endpoints were never emitted raises MissingDependencyError instead of leaving
a dangling edge.
"""

from typing import Any, Dict, List, Optional

from .errors import DuplicateKeyError, MissingDependencyError

DATA_ACCOUNT_ENTITY = "DATA_ACCOUNT_ENTITY"


class RelationshipClass:
    HAS = "HAS"


def create_integration_entity(source: Dict[str, Any], assign: Dict[str, Any]) -> Dict[str, Any]:
    """Build an entity from a raw API record and the assigned properties.

    None values in `assign` are dropped. `_key`, `_type` and `_class` are
    required.
    """
    for required in ("_key", "_type", "_class"):
        if not assign.get(required):
            raise ValueError(f"Entity is missing required property {required}")

    entity = {k: v for k, v in assign.items() if v is not None}
    entity["_rawData"] = [{"name": "default", "rawData": source}]
    return entity


def generate_relationship_type(rel_class: str, from_type: str, to_type: str) -> str:
    """Join two entity types with the relationship class.

    The provider prefix shared by both types is not repeated:
    ("HAS", "atspoke_account", "atspoke_user") -> "atspoke_account_has_user".
    """
    prefix = from_type.split("_", 1)[0] + "_"
    target = to_type[len(prefix):] if to_type.startswith(prefix) else to_type
    return f"{from_type}_{rel_class.lower()}_{target}"


def create_direct_relationship(
    _class: str,
    from_entity: Dict[str, Any],
    to_entity: Dict[str, Any],
) -> Dict[str, Any]:
    rel_class = _class.upper()
    return {
        "_key": f"{from_entity['_key']}|{rel_class.lower()}|{to_entity['_key']}",
        "_type": generate_relationship_type(rel_class, from_entity["_type"], to_entity["_type"]),
        "_class": rel_class,
        "_fromEntityKey": from_entity["_key"],
        "_toEntityKey": to_entity["_key"],
        "displayName": rel_class,
    }


class JobState:
    """Append-only graph working set for a single run.

    Entities and relationships are kept in emission order. Arbitrary
    run-scoped values (the account entity) are stored with set_data().
    """

    def __init__(self):
        self._entities: Dict[str, Dict[str, Any]] = {}
        self._relationships: Dict[str, Dict[str, Any]] = {}
        self._data: Dict[str, Any] = {}

    def add_entity(self, entity: Dict[str, Any]) -> Dict[str, Any]:
        key = entity["_key"]
        if key in self._entities:
            raise DuplicateKeyError(key)
        self._entities[key] = entity
        return entity

    def add_relationship(self, relationship: Dict[str, Any]) -> Dict[str, Any]:
        for endpoint in ("_fromEntityKey", "_toEntityKey"):
            if relationship[endpoint] not in self._entities:
                raise MissingDependencyError(relationship[endpoint])

        key = relationship["_key"]
        if key in self._relationships:
            raise DuplicateKeyError(key)
        self._relationships[key] = relationship
        return relationship

    def find_entity(self, key: str) -> Optional[Dict[str, Any]]:
        return self._entities.get(key)

    def set_data(self, key: str, value: Any):
        self._data[key] = value

    def get_data(self, key: str) -> Any:
        return self._data.get(key)

    @property
    def collected_entities(self) -> List[Dict[str, Any]]:
        return list(self._entities.values())

    @property
    def collected_relationships(self) -> List[Dict[str, Any]]:
        return list(self._relationships.values())

    @property
    def encountered_types(self) -> List[str]:
        types = {e["_type"] for e in self._entities.values()}
        types.update(r["_type"] for r in self._relationships.values())
        return sorted(types)

    def entities_of_type(self, _type: str) -> List[Dict[str, Any]]:
        return [e for e in self._entities.values() if e["_type"] == _type]

    def relationships_of_type(self, _type: str) -> List[Dict[str, Any]]:
        return [r for r in self._relationships.values() if r["_type"] == _type]

    def get_payload(self) -> Dict[str, Any]:
        return {
            "entities": self.collected_entities,
            "relationships": self.collected_relationships,
            "encounteredTypes": self.encountered_types,
        }
