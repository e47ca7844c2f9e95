import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Union

CLASSIC_MAP_FILE = Path(__file__).parent / 'data' / 'territories.json'


@dataclass(frozen=True)
class Territory:
    """Read-only snapshot of a territory as stored by the caller."""
    territory_id: str
    name: str  # key into the WorldMap
    owner: Optional[str] = None  # player_id
    army_count: int = 0

    def is_owned_by(self, player_id: str) -> bool:
        """Check if territory is owned by the specified player."""
        return self.owner == player_id

    def can_attack_from(self) -> bool:
        """Check if this territory can launch attacks (has more than 1 army)."""
        return self.army_count > 1

    def with_armies(self, army_count: int) -> 'Territory':
        return replace(self, army_count=army_count)

    def with_owner(self, player_id: Optional[str], army_count: int) -> 'Territory':
        return replace(self, owner=player_id, army_count=army_count)

    def to_dict(self) -> dict:
        """Convert territory to dictionary for serialization."""
        return {
            'territory_id': self.territory_id,
            'name': self.name,
            'owner': self.owner,
            'army_count': self.army_count
        }


@dataclass(frozen=True)
class Continent:
    name: str
    bonus: int
    territories: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class TerritoryDefinition:
    name: str
    continent: str
    adjacent_territories: FrozenSet[str] = field(default_factory=frozenset)


class WorldMap:
    """Static territory graph: continents, membership and adjacency."""

    def __init__(self, territory_data: dict):
        self.definitions: Dict[str, TerritoryDefinition] = {}
        self.continents: Dict[str, Continent] = {}

        for name, data in territory_data['continents'].items():
            self.continents[name] = Continent(
                name=name,
                bonus=int(data.get('bonus', 0)),
                territories=frozenset(data.get('territories', []))
            )

        for name, data in territory_data['territories'].items():
            self.definitions[name] = TerritoryDefinition(
                name=name,
                continent=data['continent'],
                adjacent_territories=frozenset(data.get('adjacent', []))
            )

    @classmethod
    def from_dict(cls, territory_data: dict) -> 'WorldMap':
        return cls(territory_data)

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'WorldMap':
        """Load territory data from a JSON file."""
        with open(path, 'r', encoding='utf-8') as f:
            return cls(json.load(f))

    @classmethod
    def classic(cls) -> 'WorldMap':
        """The 42-territory world map shipped with the package."""
        return cls.load(CLASSIC_MAP_FILE)

    @property
    def territory_names(self) -> List[str]:
        return list(self.definitions)

    def get_definition(self, name: str) -> Optional[TerritoryDefinition]:
        return self.definitions.get(name)

    def continent_of(self, name: str) -> Optional[str]:
        definition = self.definitions.get(name)
        return definition.continent if definition else None

    def adjacent_to(self, name: str) -> FrozenSet[str]:
        """Adjacent territory names; unknown names have no neighbours."""
        definition = self.definitions.get(name)
        return definition.adjacent_territories if definition else frozenset()

    def are_adjacent(self, territory1: str, territory2: str) -> bool:
        """Check if two territories are adjacent.

        Adjacency lists in the map data are not guaranteed to be
        bidirectional, so either direction counts.
        """
        return (territory2 in self.adjacent_to(territory1)
                or territory1 in self.adjacent_to(territory2))

    def neighbours(self, name: str) -> FrozenSet[str]:
        """Symmetric neighbourhood, including one-directional entries pointing at `name`."""
        inbound = {
            other for other, definition in self.definitions.items()
            if name in definition.adjacent_territories
        }
        return self.adjacent_to(name) | frozenset(inbound)

    def get_continent_bonus(self, continent: str) -> int:
        """Get the army bonus for controlling a continent."""
        found = self.continents.get(continent)
        return found.bonus if found else 0

    def get_continent_territories(self, continent: str) -> FrozenSet[str]:
        """Get all territory names in a continent."""
        found = self.continents.get(continent)
        return found.territories if found else frozenset()

    def controls_continent(self, owned_names: Iterable[str], continent: str) -> bool:
        """Check if a set of territory names covers a whole continent."""
        members = self.get_continent_territories(continent)
        return bool(members) and members <= set(owned_names)

    def to_dict(self) -> dict:
        """Convert the map back to the territory data format."""
        return {
            'continents': {
                c.name: {'bonus': c.bonus, 'territories': sorted(c.territories)}
                for c in self.continents.values()
            },
            'territories': {
                d.name: {'continent': d.continent, 'adjacent': sorted(d.adjacent_territories)}
                for d in self.definitions.values()
            }
        }
