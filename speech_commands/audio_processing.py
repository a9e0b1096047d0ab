import logging

import numpy as np
import librosa
from scipy.signal import butter, lfilter

from .config import SAMPLE_RATE, DURATION, N_MELS, HOP_LENGTH
from .types import Spectrogram

logger = logging.getLogger(__name__)


def load_audio(file_path: str, sr: int = SAMPLE_RATE) -> np.ndarray:
    """Loads audio file using librosa."""
    try:
        y, _ = librosa.load(file_path, sr=sr)
    except Exception as e:
        logger.error(f"Error loading {file_path}: {e}")
        raise
    return y


def pad_or_trim(y: np.ndarray, sr: int, duration: float = DURATION) -> np.ndarray:
    """Zero-pads or cuts the clip so every spectrogram has the same number of frames."""
    target = int(duration * sr)
    if len(y) >= target:
        return y[:target]
    return np.pad(y, (0, target - len(y)), mode='constant')


def apply_band_pass_filter(y: np.ndarray, sr: int, low_cutoff: int, high_cutoff: int, order: int = 6) -> np.ndarray:
    """Applies a band-pass Butterworth filter."""
    nyquist = 0.5 * sr
    if low_cutoff <= 0 or high_cutoff >= nyquist or low_cutoff >= high_cutoff:
        logger.warning(f"Band {low_cutoff}-{high_cutoff} Hz is invalid at sr={sr}, skipping filter")
        return y
    b, a = butter(order, [low_cutoff / nyquist, high_cutoff / nyquist], btype='band', analog=False)
    return lfilter(b, a, y)


def compute_spectrogram(y: np.ndarray, sr: int, method: str = 'logmel') -> np.ndarray:
    """Computes a (n_mels, time_steps) spectrogram."""
    S = librosa.feature.melspectrogram(y=y, sr=sr, n_mels=N_MELS, hop_length=HOP_LENGTH)

    if method == 'pcen':
        return librosa.pcen(S * (2**31), sr=sr, hop_length=HOP_LENGTH)
    elif method == 'logmel':
        return librosa.power_to_db(S, ref=np.max)
    raise ValueError(f"Unknown spectrogram method: {method}")


def spectrogram_from_waveform(y: np.ndarray, sr: int = SAMPLE_RATE, method: str = 'logmel') -> Spectrogram:
    """
    Turns a waveform into a Spectrogram whose frames are time steps,
    each frame holding N_MELS values.
    """
    S = compute_spectrogram(y, sr, method=method)
    return Spectrogram.from_frames(S.T)
