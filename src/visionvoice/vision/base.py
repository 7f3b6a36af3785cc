"""Abstract description provider."""

from abc import ABC, abstractmethod


class DescriptionProvider(ABC):
    """Turns an image reference into a description of the scene."""

    @abstractmethod
    async def describe(self, image_ref: str) -> str:
        """Describe the image. Raises FetchError on network or service failure."""
        ...
