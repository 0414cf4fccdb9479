# cmodfix/formats/base.py
from abc import ABC, abstractmethod
from typing import BinaryIO

from cmodfix.mesh.types import Model


class ModelCodec(ABC):
    """Converts between a Model and the bytes of one container format."""

    @abstractmethod
    def decode(self, data: bytes) -> Model:
        """
        Parse a whole model.
        Raises ModelFormatError on malformed input.
        """
        pass

    @abstractmethod
    def encode(self, model: Model) -> bytes:
        pass

    def load(self, stream: BinaryIO) -> Model:
        return self.decode(stream.read())

    def save(self, model: Model, stream: BinaryIO) -> None:
        stream.write(self.encode(model))
        stream.flush()
