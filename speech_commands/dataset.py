import logging
import uuid
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import torch
import torch.nn.functional as F
from torch.utils.data import Dataset as TorchDataset

from .config import TENSOR_DTYPE
from .errors import EmptyDatasetError, InvalidArgumentError, NotFoundError, ShapeMismatchError
from .serialization import deserialize_examples, serialize_examples
from .types import Example

logger = logging.getLogger(__name__)


def generate_uid() -> str:
    return str(uuid.uuid4())


def one_hot(indices: Sequence[int], depth: int) -> torch.Tensor:
    """One-hot encodes class indices as exact 0.0 / 1.0 floats, shape (len(indices), depth)."""
    if depth < 1:
        raise InvalidArgumentError(f"One-hot depth must be at least 1, but got {depth}")
    index_tensor = torch.tensor(list(indices), dtype=torch.long)
    return F.one_hot(index_tensor, num_classes=depth).to(TENSOR_DTYPE)


class Dataset:
    """
    Mutable in-memory set of labeled spectrogram Examples.

    Examples are keyed by a generated uid. A secondary index maps each label
    to its uids in insertion order; a label is present there only while at
    least one example carries it.
    """
    def __init__(self, artifacts: Optional[bytes] = None, uid_generator: Optional[Callable[[], str]] = None):
        self._uid_generator = uid_generator or generate_uid
        self._examples: Dict[str, Example] = {}
        self._label_to_ids: Dict[str, List[str]] = {}
        if artifacts is not None:
            for example in deserialize_examples(artifacts):
                self.add_example(example)

    def add_example(self, example: Example) -> str:
        """
        Adds an Example and returns its uid.
        The label must be a non-empty string.
        """
        if example is None:
            raise InvalidArgumentError("Got null or undefined example")
        label = getattr(example, 'label', None)
        if not isinstance(label, str) or len(label) == 0:
            raise InvalidArgumentError(f"Expected label to be a non-empty string, but got {label!r}")

        uid = self._uid_generator()
        if uid in self._examples:
            raise InvalidArgumentError(f"uid generator returned an id already in use: {uid}")
        self._examples[uid] = example
        self._label_to_ids.setdefault(label, []).append(uid)
        logger.debug(f"Added example {uid} with label '{label}'")
        return uid

    def get_example(self, uid: str) -> Example:
        if uid not in self._examples:
            raise NotFoundError(f"Nonexistent example UID: {uid}")
        return self._examples[uid]

    def get_example_counts(self) -> Dict[str, int]:
        """Map from label to the number of examples with that label."""
        counts: Dict[str, int] = {}
        for example in self._examples.values():
            counts[example.label] = counts.get(example.label, 0) + 1
        return counts

    def get_examples(self, label: str) -> List[Tuple[str, Example]]:
        """
        All (uid, example) pairs of a label, in the order they were added.
        """
        if label is None:
            raise InvalidArgumentError(f"Expected label to be a string, but got {label!r}")
        if label not in self._label_to_ids:
            raise NotFoundError(f"No example of label '{label}' exists in dataset")
        return [(uid, self._examples[uid]) for uid in self._label_to_ids[label]]

    def get_spectrograms_as_tensors(self, label: Optional[str] = None) -> Tuple[torch.Tensor, Optional[torch.Tensor]]:
        """
        Stacks spectrograms into xs of shape (num_examples, num_frames, frame_size, 1).

        With a label, only that label's examples are stacked and ys is None.
        Without one, every example is stacked and ys holds one-hot labels of
        shape (num_examples, vocabulary_size). Rows follow the sorted vocabulary,
        then insertion order within each label, so xs[i] and ys[i] line up.
        """
        if self.empty():
            raise EmptyDatasetError("Cannot get spectrograms as tensors because the dataset is empty")
        vocab = self.get_vocabulary()
        if label is not None:
            if label not in vocab:
                raise NotFoundError(f"Label {label} is not in the vocabulary ({vocab})")
        elif len(vocab) < 2:
            raise InvalidArgumentError(
                f"One-hot encoding of labels requires the vocabulary to have at least two words, "
                f"but it has only {len(vocab)} word.")

        unique_num_frames = None
        unique_frame_size = None
        label_indices = []
        with torch.no_grad():
            x_tensors = []
            for i, current_label in enumerate(vocab):
                if label is not None and label != current_label:
                    continue
                for uid in self._label_to_ids[current_label]:
                    spectrogram = self._examples[uid].spectrogram
                    frame_size = spectrogram.frame_size
                    num_frames = spectrogram.num_frames
                    if unique_num_frames is None:
                        unique_num_frames = num_frames
                    elif num_frames != unique_num_frames:
                        raise ShapeMismatchError(f"Mismatch in numFrames ({num_frames} vs {unique_num_frames})")
                    if unique_frame_size is None:
                        unique_frame_size = frame_size
                    elif frame_size != unique_frame_size:
                        raise ShapeMismatchError(f"Mismatch in frameSize ({frame_size} vs {unique_frame_size})")

                    x_tensors.append(
                        torch.tensor(spectrogram.data, dtype=TENSOR_DTYPE).reshape(num_frames, frame_size, 1))
                    if label is None:
                        label_indices.append(i)

            xs = torch.stack(x_tensors)
            del x_tensors
            ys = one_hot(label_indices, len(vocab)) if label is None else None

        logger.info(f"Assembled xs {tuple(xs.shape)}" + (f", ys {tuple(ys.shape)}" if ys is not None else ""))
        return xs, ys

    def remove_example(self, uid: str) -> None:
        if uid not in self._examples:
            raise NotFoundError(f"Nonexistent example UID: {uid}")
        label = self._examples.pop(uid).label
        ids = self._label_to_ids[label]
        ids.remove(uid)
        if not ids:
            del self._label_to_ids[label]
        logger.debug(f"Removed example {uid} with label '{label}'")

    def size(self) -> int:
        return len(self._examples)

    def empty(self) -> bool:
        return self.size() == 0

    def clear(self) -> None:
        """Removes all examples; the label index is cleared with them."""
        self._examples = {}
        self._label_to_ids = {}

    def get_vocabulary(self) -> List[str]:
        """Sorted unique labels of the examples currently held."""
        return sorted({example.label for example in self._examples.values()})

    def serialize(self) -> bytes:
        """
        Snapshot of all examples, in vocabulary then insertion order.
        Pass the result to Dataset(artifacts=...) to restore it; uids are not kept.
        """
        ordered = [self._examples[uid] for label in self.get_vocabulary() for uid in self._label_to_ids[label]]
        return serialize_examples(ordered)

    def __len__(self):
        return self.size()

    def __contains__(self, uid):
        return uid in self._examples


class AudioDataset(TorchDataset):
    """PyTorch Dataset over the tensors from Dataset.get_spectrograms_as_tensors."""
    def __init__(self, xs: torch.Tensor, ys: Optional[torch.Tensor] = None, transform=None):
        self.features = xs.permute(0, 3, 1, 2) # (N, 1, num_frames, frame_size), channel first
        # CrossEntropyLoss wants class indices, not one-hot rows
        self.labels = ys.argmax(dim=1) if ys is not None else None
        self.transform = transform

    def __len__(self):
        return len(self.features)

    def __getitem__(self, idx):
        x = self.features[idx]
        if self.transform:
            x = self.transform(x)
        if self.labels is None:
            return x
        return x, self.labels[idx]
