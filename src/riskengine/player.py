from dataclasses import dataclass, replace


@dataclass(frozen=True)
class Player:
    player_id: str
    name: str
    turn_order: int
    armies_available: int = 0
    is_eliminated: bool = False
    color: str = ""

    def with_armies_available(self, armies: int) -> 'Player':
        return replace(self, armies_available=armies)

    def eliminated(self) -> 'Player':
        """Elimination is permanent; the flag is never unset."""
        return replace(self, is_eliminated=True, armies_available=0)

    def to_dict(self) -> dict:
        """Convert player to dictionary for serialization."""
        return {
            'player_id': self.player_id,
            'name': self.name,
            'color': self.color,
            'turn_order': self.turn_order,
            'armies_available': self.armies_available,
            'is_eliminated': self.is_eliminated
        }
