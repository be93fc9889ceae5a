"""Location fixes attributed to a single wireless source."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from wifiverify.geo import distance_m

MIN_SIGNAL_LEVEL = -200


@dataclass(frozen=True)
class Fix:
    latitude: float
    longitude: float
    accuracy: float  # meters, 68% radius
    signal_level: int = MIN_SIGNAL_LEVEL
    altitude: float | None = None
    source_id: str = field(default="", compare=False)
    verified_at: int | None = None  # epoch millis
    combined_of: int | None = field(default=None, compare=False)

    @property
    def has_altitude(self) -> bool:
        return self.altitude is not None

    def distance_to(self, other: Fix) -> float:
        return distance_m(self.latitude, self.longitude, other.latitude, other.longitude)

    def with_verified_at(self, timestamp: int) -> Fix:
        return replace(self, verified_at=timestamp)

    def to_dict(self) -> dict:
        d = {
            "source_id": self.source_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "signal_level": self.signal_level,
            "altitude": self.altitude,
            "verified_at": self.verified_at,
        }
        if self.combined_of is not None:
            d["combined_of"] = self.combined_of
        return d

    @classmethod
    def from_dict(cls, d: dict) -> Fix:
        altitude = d.get("altitude")
        verified_at = d.get("verified_at")
        combined_of = d.get("combined_of")
        return cls(
            latitude=float(d["latitude"]),
            longitude=float(d["longitude"]),
            accuracy=float(d["accuracy"]),
            signal_level=int(d.get("signal_level", d.get("signal", MIN_SIGNAL_LEVEL))),
            altitude=float(altitude) if isinstance(altitude, int | float) else None,
            source_id=str(d.get("source_id", d.get("mac", ""))),
            verified_at=int(verified_at) if isinstance(verified_at, int | float) else None,
            combined_of=int(combined_of) if isinstance(combined_of, int) else None,
        )
