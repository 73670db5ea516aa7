"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings with env var overrides."""

    # Audio
    sample_rate: int = 44100
    mono: bool = False

    # Offline analysis
    default_algorithm: str = "onset"
    default_sensitivity: float = 1.0
    frame_size: int = 2048
    hop_size: int = 512
    max_beats: int = 20
    min_beats: int = 1
    default_tempo: float = 120.0

    # Tempo estimation
    min_tempo: float = 60.0
    max_tempo: float = 200.0
    tempo_smoothing: float = 0.8
    tempo_window_seconds: float = 4.0

    # Live meter
    fft_size: int = 2048
    smoothing_time_constant: float = 0.8
    max_frequency: float = 5000.0
    history_size: int = 100
    window_size: int = 40  # flux samples in the local average
    flux_threshold: float = 0.1
    threshold_multiplier: float = 1.5
    min_onset_gap_ms: int = 100
    stream_buffer_seconds: float = 10.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    max_upload_mb: int = 100

    model_config = {"env_prefix": "BEATCUT_"}


settings = Settings()
