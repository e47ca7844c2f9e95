from typing import Dict, Iterable

from .player import Player
from .territory import Territory, WorldMap

MINIMUM_REINFORCEMENTS = 3
TERRITORIES_PER_ARMY = 3


def owned_territory_names(player_id: str, territories: Iterable[Territory]) -> set:
    return {t.name for t in territories if t.is_owned_by(player_id)}


def continent_bonuses(player_id: str, territories: Iterable[Territory],
                      world_map: WorldMap) -> Dict[str, int]:
    """Bonus per continent the player owns outright."""
    owned = owned_territory_names(player_id, territories)
    return {
        name: continent.bonus
        for name, continent in world_map.continents.items()
        if world_map.controls_continent(owned, name)
    }


def base_reinforcements(territory_count: int) -> int:
    """Territories / 3, never less than 3."""
    return max(MINIMUM_REINFORCEMENTS, territory_count // TERRITORIES_PER_ARMY)


def calculate_reinforcements(player: Player, territories: Iterable[Territory],
                             world_map: WorldMap) -> int:
    """
    Army income for the start of a player's turn.

    The minimum of 3 applies to the territory base only; continent bonuses
    are added on top of it.
    """
    territories = list(territories)
    owned = owned_territory_names(player.player_id, territories)
    bonus = sum(continent_bonuses(player.player_id, territories, world_map).values())
    return base_reinforcements(len(owned)) + bonus
