from __future__ import annotations

import json

from riskengine.territory import Territory, WorldMap
from tests.helpers.factories import LINE_MAP_DATA, line_map


def test_classic_map_shape() -> None:
    world_map = WorldMap.classic()
    assert len(world_map.territory_names) == 42
    assert len(world_map.continents) == 6
    bonuses = {name: c.bonus for name, c in world_map.continents.items()}
    assert sorted(bonuses.values()) == [2, 2, 3, 5, 5, 7]


def test_classic_map_is_consistent() -> None:
    world_map = WorldMap.classic()
    members = set()
    for continent in world_map.continents.values():
        assert not members & continent.territories
        members |= continent.territories
    assert members == set(world_map.territory_names)

    for name in world_map.territory_names:
        for other in world_map.adjacent_to(name):
            assert world_map.get_definition(other) is not None
            assert world_map.are_adjacent(other, name)


def test_adjacency_lookups() -> None:
    world_map = line_map()
    assert world_map.are_adjacent("A", "B")
    assert world_map.are_adjacent("B", "A")
    assert not world_map.are_adjacent("A", "C")
    assert world_map.adjacent_to("Atlantis") == frozenset()
    assert world_map.neighbours("B") == {"A", "C"}
    assert world_map.continent_of("E") == "East"
    assert world_map.continent_of("Atlantis") is None


def test_continent_lookups() -> None:
    world_map = line_map()
    assert world_map.get_continent_bonus("East") == 3
    assert world_map.get_continent_bonus("Nowhere") == 0
    assert world_map.get_continent_territories("West") == {"A", "B"}
    assert world_map.controls_continent({"A", "B", "C"}, "West")
    assert not world_map.controls_continent({"A"}, "West")
    assert not world_map.controls_continent({"A", "B"}, "Nowhere")


def test_load_and_round_trip(tmp_path) -> None:
    path = tmp_path / "line.json"
    path.write_text(json.dumps(LINE_MAP_DATA))
    loaded = WorldMap.load(path)
    assert WorldMap.from_dict(loaded.to_dict()).to_dict() == loaded.to_dict()
    assert loaded.territory_names == ["A", "B", "C", "D", "E"]


def test_territory_snapshot_helpers() -> None:
    t = Territory(territory_id="g1:A", name="A", owner="p0", army_count=1)
    assert t.is_owned_by("p0")
    assert not t.can_attack_from()

    bigger = t.with_armies(4)
    assert bigger.can_attack_from()
    assert t.army_count == 1

    taken = bigger.with_owner("p1", 2)
    assert taken.owner == "p1" and taken.army_count == 2
    assert taken.territory_id == "g1:A"
    assert taken.to_dict()["owner"] == "p1"
