"""Read-only location directory shared by every session.

A `LocationTable` is built once from a validated config and never mutated
afterwards, so concurrent sessions can read it without locking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from accessh.config.schema import AccesshConfig


@dataclass(frozen=True)
class Location:
    """One reachable service."""

    service_name: str
    description: str
    repository_url: str
    hostname: str
    port: int


@dataclass(frozen=True)
class LocationTable:
    """Destination name -> Location, plus the program text shown above the prompt."""

    title: str = ""
    description: str = ""
    locations: Mapping[str, Location] = field(default_factory=lambda: MappingProxyType({}))

    def lookup(self, destination: str) -> Optional[Location]:
        return self.locations.get(destination)

    def names(self) -> list[str]:
        """Destination names in display order."""
        return sorted(self.locations)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self.locations)

    def __contains__(self, destination: object) -> bool:
        return destination in self.locations


def build_location_table(config: Optional[AccesshConfig]) -> LocationTable:
    """Freeze a validated config into a LocationTable.

    A missing config (load failure) yields an empty table; the session shows
    the load error instead of the prompt.
    """
    if config is None:
        return LocationTable()

    locations = {
        name: Location(
            service_name=entry.service,
            description=entry.description,
            repository_url=entry.repo,
            hostname=entry.hostname,
            port=entry.port,
        )
        for name, entry in config.locations.items()
    }
    return LocationTable(
        title=config.settings.title,
        description=config.settings.description,
        locations=MappingProxyType(locations),
    )


def format_location_card(location: Location) -> str:
    """Fixed four-line card used by the help listing."""
    return (
        f"{location.service_name}\n"
        f"Location: {location.hostname}\n"
        f"Description: {location.description}\n"
        f"Source: {location.repository_url}"
    )


def format_location_cards(table: LocationTable) -> list[str]:
    return [format_location_card(table.locations[name]) for name in table.names()]


def format_access_instruction(location: Location) -> str:
    return f"Run this command to access {location.service_name}: ssh -p {location.port} {location.hostname}"


def format_not_found(destination: str) -> str:
    return f"no destination found at location: {destination}"
