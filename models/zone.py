from dataclasses import dataclass


@dataclass
class Zone:
    zone_id: int
    name: str
    row_index: int      # lane in the layout grid, top to bottom

    def to_dict(self) -> dict:
        return {"zone_id": self.zone_id, "name": self.name, "row_index": self.row_index}

    @classmethod
    def from_dict(cls, data: dict) -> "Zone":
        zone_id = int(data.get("zone_id", data.get("id")))
        return cls(
            zone_id=zone_id,
            name=str(data.get("name") or f"Factory {zone_id + 1}"),
            row_index=int(data.get("row_index", zone_id)),
        )
