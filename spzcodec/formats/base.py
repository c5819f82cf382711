from abc import ABC, abstractmethod
from ..structures import GaussianCloud


class BaseFormat(ABC):
    # File extensions handled by the format, lower case with leading dot
    extensions = ()

    @abstractmethod
    def read(self, path: str, **kwargs) -> GaussianCloud:
        """
        Reads the file and returns a Gaussian cloud.

        Args:
            path (str): Path to the file.
            **kwargs: Additional arguments.

        Returns:
            GaussianCloud: The decoded cloud.
        """
        pass

    @abstractmethod
    def write(self, cloud: GaussianCloud, path: str, **kwargs) -> None:
        """
        Writes the Gaussian cloud to the file.

        Args:
            cloud (GaussianCloud): The cloud to write.
            path (str): Path to the output file.
            **kwargs: Additional arguments.
        """
        pass
