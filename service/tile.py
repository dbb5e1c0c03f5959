from typing import Dict, Optional, Tuple

from directions import Cell


class Tile:
    """A numbered piece occupying one grid cell."""

    def __init__(self, position, value: int) -> None:
        self.x = position.x
        self.y = position.y
        self.value = value

        self.previous_position: Optional[Cell] = None
        self.merged_from: Optional[Tuple["Tile", "Tile"]] = None

    @property
    def position(self) -> Cell:
        return Cell(self.x, self.y)

    def save_position(self) -> None:
        self.previous_position = Cell(self.x, self.y)

    def update_position(self, position) -> None:
        self.x = position.x
        self.y = position.y

    def serialize(self) -> Dict:
        return {
            "position": {"x": self.x, "y": self.y},
            "value": self.value,
        }

    def __repr__(self) -> str:
        return f"Tile(x={self.x}, y={self.y}, value={self.value})"
