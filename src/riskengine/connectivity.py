from collections import deque
from typing import Iterable, Set

from .territory import Territory, WorldMap


def reachable_territories(start: str, player_id: str, territories: Iterable[Territory],
                          world_map: WorldMap) -> Set[str]:
    """Names reachable from `start` moving only through the player's own territories."""
    owned = {t.name for t in territories if t.is_owned_by(player_id)}
    if start not in owned:
        return set()

    visited = {start}
    queue = deque([start])

    while queue:
        current = queue.popleft()
        for adjacent in world_map.neighbours(current):
            if adjacent in owned and adjacent not in visited:
                visited.add(adjacent)
                queue.append(adjacent)

    return visited


def are_connected(from_territory: str, to_territory: str, player_id: str,
                  territories: Iterable[Territory], world_map: WorldMap) -> bool:
    """
    Breadth-first search over the player's owned subgraph.

    Armies may travel through any chain of the player's contiguous
    territories; a gap held by anyone else breaks the path.
    """
    return to_territory in reachable_territories(from_territory, player_id, territories, world_map)
