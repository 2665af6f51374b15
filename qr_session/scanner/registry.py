"""Camera registry: the enumerated camera sequence and the current selection.

The registry is an immutable value. Every operation that changes the
selection returns a new registry, so a session state snapshot can hold one
without sharing mutable data with the controller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional


@dataclass(frozen=True)
class CameraDescriptor:
    """One enumerated capture device. ``id`` is opaque to the controller."""
    id: str
    label: str = ""

    @property
    def display_name(self) -> str:
        return self.label or self.id


@dataclass(frozen=True)
class CameraRegistry:
    cameras: tuple[CameraDescriptor, ...] = ()
    selected_index: Optional[int] = None

    def __post_init__(self) -> None:
        if self.selected_index is not None and not 0 <= self.selected_index < len(self.cameras):
            raise IndexError(
                f"Camera index {self.selected_index} out of range for {len(self.cameras)} camera(s)"
            )

    @classmethod
    def from_enumeration(cls, cameras: Iterable[CameraDescriptor]) -> "CameraRegistry":
        """Cache one enumeration result and select the last camera listed."""
        entries = tuple(cameras)
        return cls(entries, len(entries) - 1 if entries else None)

    def __len__(self) -> int:
        return len(self.cameras)

    def __iter__(self) -> Iterator[CameraDescriptor]:
        return iter(self.cameras)

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(camera.id for camera in self.cameras)

    @property
    def has_selection(self) -> bool:
        return self.selected_index is not None

    @property
    def selected(self) -> Optional[CameraDescriptor]:
        if self.selected_index is None:
            return None
        return self.cameras[self.selected_index]

    @property
    def selected_id(self) -> Optional[str]:
        selected = self.selected
        return selected.id if selected else None

    @property
    def can_switch(self) -> bool:
        return len(self.cameras) > 1

    def select(self, index: int) -> "CameraRegistry":
        return CameraRegistry(self.cameras, index)

    def advance(self) -> "CameraRegistry":
        """Move the selection to the next camera, wrapping at the end."""
        if not self.cameras:
            raise IndexError("No cameras enumerated")
        current = self.selected_index if self.selected_index is not None else -1
        return CameraRegistry(self.cameras, (current + 1) % len(self.cameras))

    def reset(self) -> "CameraRegistry":
        return CameraRegistry()


__all__ = ["CameraDescriptor", "CameraRegistry"]
