# cmodfix/formats/__init__.py
from typing import BinaryIO, Optional

from cmodfix.formats.base import ModelCodec
from cmodfix.formats.binary import MAGIC, BinaryModelCodec
from cmodfix.formats.obj import ObjModelCodec
from cmodfix.mesh.types import Model


def get_codec(binary: bool) -> ModelCodec:
    return BinaryModelCodec() if binary else ObjModelCodec()


def load_model(stream: BinaryIO, binary: Optional[bool] = None) -> Model:
    """
    Read a whole model from a byte stream.
    The container is detected from its header when `binary` is None.
    """
    data = stream.read()
    if binary is None:
        binary = data.startswith(MAGIC)
    return get_codec(binary).decode(data)


def save_model(model: Model, stream: BinaryIO, binary: bool) -> None:
    get_codec(binary).save(model, stream)


__all__ = [
    "BinaryModelCodec",
    "ModelCodec",
    "ObjModelCodec",
    "get_codec",
    "load_model",
    "save_model",
]
