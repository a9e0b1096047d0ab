"""Exceptions raised by the dataset layer."""


class DatasetError(Exception):
    """Base class for all dataset failures."""


class InvalidArgumentError(DatasetError, ValueError):
    """Missing, empty or malformed input."""


class EmptyDatasetError(InvalidArgumentError):
    """The operation needs at least one example."""


class NotFoundError(DatasetError, KeyError):
    """A referenced uid or label does not exist."""

    def __str__(self):
        # KeyError quotes its message otherwise
        return str(self.args[0]) if self.args else ''


class ShapeMismatchError(DatasetError, ValueError):
    """Spectrograms in one batch disagree on numFrames or frameSize."""


class SerializationError(DatasetError, ValueError):
    """A snapshot buffer is corrupt or of an unsupported version."""
