import glob
import logging
import os

from speech_commands.config import SAMPLE_RATE, HIGH_PASS_CUTOFF, LOW_PASS_CUTOFF, DATAFOLDER, OUTPUT_PATH, LOG_FORMAT
from speech_commands.audio_processing import load_audio, pad_or_trim, apply_band_pass_filter, spectrogram_from_waveform
from speech_commands.dataset import Dataset
from speech_commands.types import Example

# Setup Logging
os.makedirs(os.path.dirname(OUTPUT_PATH), exist_ok=True)
log_file_path = os.path.join(os.path.dirname(OUTPUT_PATH), "build_dataset.log")

logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
    handlers=[
        logging.FileHandler(log_file_path),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)


def collect_examples(folder_path: str, dataset: Dataset, method: str = 'logmel') -> int:
    """
    Adds one Example per WAV file found under <folder_path>/<label>/.
    Returns the number of examples added.
    """
    folder_path = os.path.expanduser(folder_path)
    wav_files = sorted(glob.glob(os.path.join(folder_path, "*", "*.wav")))

    added = 0
    for file_path in wav_files:
        label = os.path.basename(os.path.dirname(file_path))
        if label.startswith('_'):
            # e.g. _background_noise_
            logger.warning(f"Skipping {file_path}: reserved label directory '{label}'")
            continue

        y = load_audio(file_path, sr=SAMPLE_RATE)
        y = pad_or_trim(y, SAMPLE_RATE)
        y = apply_band_pass_filter(y, SAMPLE_RATE, HIGH_PASS_CUTOFF, LOW_PASS_CUTOFF)
        dataset.add_example(Example(label=label, spectrogram=spectrogram_from_waveform(y, SAMPLE_RATE, method)))
        added += 1

    if added == 0:
        raise ValueError(f"No valid wav files found in {folder_path} matching <label>/<clip>.wav")
    return added


if __name__ == "__main__":
    dataset = Dataset()
    try:
        count = collect_examples(DATAFOLDER, dataset)
    except Exception as e:
        logger.error(f"Failed to load data from {DATAFOLDER}: {e}")
        raise

    logger.info(f"Loaded {count} examples from {DATAFOLDER}")
    logger.info(f"Vocabulary: {dataset.get_vocabulary()}")
    logger.info(f"Class distribution: {dataset.get_example_counts()}")

    with open(OUTPUT_PATH, 'wb') as f:
        f.write(dataset.serialize())
    logger.info(f"Wrote dataset snapshot to {OUTPUT_PATH}")
