"""
Domain model for stored images.

ImageRef is what image-cataloging code keeps about an image once it has
been written to object storage. It has no dependency on how the image was
stored; turn `path` into a URL with StorageProvider.public_url().
"""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class ImageRef:
    """
    A stored image: its dimensions, a ThumbHash placeholder, and its storage path.

    Frozen because it describes an object that already exists in storage.
    """
    width: int
    height: int
    thumbhash: str
    path: str

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("Image dimensions cannot be negative")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImageRef":
        """Build from a catalog mapping. Extra keys are ignored."""
        return cls(
            width=int(data["width"]),
            height=int(data["height"]),
            thumbhash=data["thumbhash"],
            path=data["path"],
        )
