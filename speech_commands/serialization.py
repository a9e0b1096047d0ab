"""
Binary snapshot of a set of examples.

Layout:
    magic     8 bytes        SERIALIZATION_MAGIC
    version   uint32 LE
    length    uint32 LE      byte length of the manifest
    manifest  UTF-8 JSON     {"examples": [{"label", "frameSize", "numFrames"}, ...]}
    data      float32 LE     spectrogram buffers, concatenated in manifest order
"""
import json
import logging
import struct
from typing import Iterable, List

import numpy as np

from .config import SERIALIZATION_MAGIC, SERIALIZATION_VERSION
from .errors import InvalidArgumentError, SerializationError
from .types import Example, Spectrogram

logger = logging.getLogger(__name__)

_HEADER = struct.Struct('<II')
_FLOAT32_LE = np.dtype('<f4')


def serialize_examples(examples: Iterable[Example]) -> bytes:
    """Packs examples, in the given order, into a versioned byte buffer."""
    manifest = []
    buffers = []
    for example in examples:
        spec = example.spectrogram
        manifest.append({
            "label": example.label,
            "frameSize": spec.frame_size,
            "numFrames": spec.num_frames,
        })
        buffers.append(spec.data.astype(_FLOAT32_LE, copy=False).tobytes())

    manifest_bytes = json.dumps({"examples": manifest}).encode('utf-8')
    payload = b''.join(
        [SERIALIZATION_MAGIC, _HEADER.pack(SERIALIZATION_VERSION, len(manifest_bytes)), manifest_bytes] + buffers)
    logger.info(f"Serialized {len(manifest)} examples ({len(payload)} bytes, version {SERIALIZATION_VERSION})")
    return payload


def deserialize_examples(buffer: bytes) -> List[Example]:
    """Inverse of serialize_examples. Raises SerializationError on corrupt input."""
    buffer = bytes(buffer)
    prefix = len(SERIALIZATION_MAGIC) + _HEADER.size
    if len(buffer) < prefix or buffer[:len(SERIALIZATION_MAGIC)] != SERIALIZATION_MAGIC:
        raise SerializationError("Buffer is not a serialized speech-commands dataset")

    version, manifest_length = _HEADER.unpack_from(buffer, len(SERIALIZATION_MAGIC))
    if version != SERIALIZATION_VERSION:
        raise SerializationError(
            f"Unsupported snapshot version {version} (expected {SERIALIZATION_VERSION})")
    if prefix + manifest_length > len(buffer):
        raise SerializationError("Truncated manifest")

    try:
        manifest = json.loads(buffer[prefix:prefix + manifest_length].decode('utf-8'))
        entries = manifest["examples"]
    except (UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
        raise SerializationError(f"Malformed manifest: {e}") from e
    if not isinstance(entries, list):
        raise SerializationError(f"Manifest \"examples\" must be a list, but got {type(entries).__name__}")

    data = buffer[prefix + manifest_length:]
    if len(data) % _FLOAT32_LE.itemsize != 0:
        raise SerializationError(f"Data section of {len(data)} bytes is not float32-aligned")
    values = np.frombuffer(data, dtype=_FLOAT32_LE)

    examples = []
    offset = 0
    for entry in entries:
        try:
            label = entry["label"]
            frame_size = int(entry["frameSize"])
            count = frame_size * int(entry["numFrames"])
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"Malformed manifest entry {entry!r}: {e}") from e
        if not isinstance(label, str) or len(label) == 0:
            raise SerializationError(f"Manifest entry has an invalid label: {label!r}")
        if count < 0 or offset + count > len(values):
            raise SerializationError("Data section is shorter than the manifest describes")
        try:
            spectrogram = Spectrogram(data=values[offset:offset + count].astype(np.float32), frame_size=frame_size)
        except InvalidArgumentError as e:
            raise SerializationError(f"Invalid spectrogram in manifest entry {entry!r}: {e}") from e
        examples.append(Example(label=label, spectrogram=spectrogram))
        offset += count

    if offset != len(values):
        raise SerializationError(f"{len(values) - offset} trailing values after the last example")

    logger.info(f"Deserialized {len(examples)} examples (version {version})")
    return examples
