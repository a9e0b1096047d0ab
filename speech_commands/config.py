import torch

SAMPLE_RATE = 22050
DURATION = 1.0  # seconds, one spoken command per clip
N_MELS = 128
HOP_LENGTH = 512
LOW_PASS_CUTOFF = 8000 # Hz
HIGH_PASS_CUTOFF = 100 # Hz
TENSOR_DTYPE = torch.float32

# Snapshot format
SERIALIZATION_MAGIC = b"SCDSET\x00\x00"
SERIALIZATION_VERSION = 1

DATAFOLDER = "~/speech_commands/recordings" # <label>/<clip>.wav
OUTPUT_PATH = "artifacts/speech_commands.scds"
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
