import numpy as np
import pytest
import torch
import sys
import os

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from speech_commands.dataset import Dataset, one_hot
from speech_commands.errors import (
    EmptyDatasetError, InvalidArgumentError, NotFoundError, ShapeMismatchError
)
from speech_commands.types import Example, Spectrogram


def make_example(label, frame_size=40, num_frames=10, fill=0.0):
    data = np.full(frame_size * num_frames, fill, dtype=np.float32)
    return Example(label=label, spectrogram=Spectrogram(data=data, frame_size=frame_size))


def make_abc_dataset():
    dataset = Dataset()
    a1 = dataset.add_example(make_example('a', fill=1.0))
    b1 = dataset.add_example(make_example('b', fill=3.0))
    a2 = dataset.add_example(make_example('a', fill=2.0))
    return dataset, (a1, a2, b1)


def test_add_example_returns_unique_ids():
    dataset = Dataset()
    uids = set()
    for i in range(50):
        uid = dataset.add_example(make_example('up' if i % 2 else 'down'))
        assert uid not in uids
        uids.add(uid)
        assert dataset.size() == i + 1


def test_add_example_rejects_invalid_input():
    dataset = Dataset()
    dataset.add_example(make_example('up'))
    with pytest.raises(InvalidArgumentError):
        dataset.add_example(None)
    with pytest.raises(InvalidArgumentError):
        dataset.add_example(make_example(''))
    with pytest.raises(InvalidArgumentError):
        dataset.add_example(make_example(None))
    assert dataset.size() == 1
    assert dataset.get_vocabulary() == ['up']


def test_injected_uid_generator():
    counter = iter(range(100))
    dataset = Dataset(uid_generator=lambda: f"id-{next(counter)}")
    assert dataset.add_example(make_example('up')) == 'id-0'
    assert dataset.add_example(make_example('up')) == 'id-1'
    assert 'id-1' in dataset


def test_repeated_uid_is_rejected():
    dataset = Dataset(uid_generator=lambda: 'same-id')
    dataset.add_example(make_example('up'))
    with pytest.raises(InvalidArgumentError):
        dataset.add_example(make_example('down'))
    assert dataset.size() == 1
    assert dataset.get_example_counts() == {'up': 1}
    assert dataset.get_vocabulary() == ['up']


def test_counts_and_vocabulary():
    dataset = Dataset()
    for label in ['up', 'down', 'up']:
        dataset.add_example(make_example(label))
    assert dataset.get_example_counts() == {'up': 2, 'down': 1}
    assert dataset.get_vocabulary() == ['down', 'up']


def test_get_examples_preserves_insertion_order():
    dataset = Dataset()
    first = make_example('up', fill=1.0)
    uid_first = dataset.add_example(first)
    dataset.add_example(make_example('down'))
    second = make_example('up', fill=2.0)
    uid_second = dataset.add_example(second)

    pairs = dataset.get_examples('up')
    assert [uid for uid, _ in pairs] == [uid_first, uid_second]
    assert pairs[0][1] is first
    assert pairs[1][1] is second


def test_get_examples_errors():
    dataset = Dataset()
    dataset.add_example(make_example('up'))
    with pytest.raises(InvalidArgumentError):
        dataset.get_examples(None)
    with pytest.raises(NotFoundError):
        dataset.get_examples('left')


def test_remove_example():
    dataset = Dataset()
    up = dataset.add_example(make_example('up'))
    down1 = dataset.add_example(make_example('down'))
    down2 = dataset.add_example(make_example('down'))

    with pytest.raises(NotFoundError):
        dataset.remove_example('no-such-id')
    assert dataset.size() == 3

    dataset.remove_example(down1)
    assert dataset.size() == 2
    assert [uid for uid, _ in dataset.get_examples('down')] == [down2]

    dataset.remove_example(up)
    assert dataset.size() == 1
    assert dataset.get_vocabulary() == ['down']
    with pytest.raises(NotFoundError):
        dataset.get_examples('up')
    with pytest.raises(NotFoundError):
        dataset.get_example(up)


def test_clear_resets_store_and_label_index():
    dataset, _ = make_abc_dataset()
    dataset.clear()
    assert dataset.size() == 0
    assert dataset.empty()
    assert len(dataset) == 0
    assert dataset.get_vocabulary() == []
    assert dataset.get_example_counts() == {}
    with pytest.raises(NotFoundError):
        dataset.get_examples('a')


def test_tensors_for_all_labels():
    dataset, _ = make_abc_dataset()
    xs, ys = dataset.get_spectrograms_as_tensors()

    assert tuple(xs.shape) == (3, 10, 40, 1)
    assert xs.dtype == torch.float32
    assert tuple(ys.shape) == (3, 2)
    assert ys.dtype == torch.float32
    assert torch.equal(ys, torch.tensor([[1.0, 0.0], [1.0, 0.0], [0.0, 1.0]]))
    # sorted label, then insertion order: a(1.0), a(2.0), b(3.0)
    assert xs[:, 0, 0, 0].tolist() == [1.0, 2.0, 3.0]


def test_tensors_for_single_label():
    dataset, _ = make_abc_dataset()
    xs, ys = dataset.get_spectrograms_as_tensors('a')
    assert tuple(xs.shape) == (2, 10, 40, 1)
    assert ys is None
    assert xs[:, 0, 0, 0].tolist() == [1.0, 2.0]


def test_tensors_keep_frame_layout():
    dataset = Dataset()
    frames = np.arange(12, dtype=np.float32).reshape(3, 4)
    dataset.add_example(Example('a', Spectrogram.from_frames(frames)))
    xs, _ = dataset.get_spectrograms_as_tensors('a')
    assert torch.equal(xs[0, :, :, 0], torch.from_numpy(frames))


def test_tensors_precondition_errors():
    with pytest.raises(EmptyDatasetError):
        Dataset().get_spectrograms_as_tensors()

    dataset = Dataset()
    dataset.add_example(make_example('a'))
    with pytest.raises(NotFoundError):
        dataset.get_spectrograms_as_tensors('x')
    # a single-word vocabulary cannot be one-hot encoded
    with pytest.raises(InvalidArgumentError):
        dataset.get_spectrograms_as_tensors()


def test_tensors_shape_mismatch():
    dataset = Dataset()
    dataset.add_example(make_example('a', frame_size=40, num_frames=10))
    dataset.add_example(make_example('b', frame_size=20, num_frames=20))
    with pytest.raises(ShapeMismatchError):
        dataset.get_spectrograms_as_tensors()

    dataset = Dataset()
    dataset.add_example(make_example('a', frame_size=40, num_frames=10))
    dataset.add_example(make_example('a', frame_size=40, num_frames=12))
    with pytest.raises(ShapeMismatchError):
        dataset.get_spectrograms_as_tensors('a')


def test_one_hot():
    encoded = one_hot([2, 0], 3)
    assert encoded.dtype == torch.float32
    assert encoded.tolist() == [[0.0, 0.0, 1.0], [1.0, 0.0, 0.0]]
    with pytest.raises(InvalidArgumentError):
        one_hot([0], 0)


def test_spectrogram_validation():
    with pytest.raises(InvalidArgumentError):
        Spectrogram(data=np.zeros(10), frame_size=3)
    with pytest.raises(InvalidArgumentError):
        Spectrogram(data=np.zeros(10), frame_size=0)
    spec = Spectrogram(data=[0.0] * 12, frame_size=4)
    assert spec.num_frames == 3
    assert spec.data.dtype == np.float32


if __name__ == "__main__":
    sys.exit(pytest.main([__file__]))
