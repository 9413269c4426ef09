"""
LabDigest Configuration Module
Centralized configuration for the document ingestion pipeline.

Two layers:
1. Module constants read from the environment (backends, timeouts, paths).
2. ProcessingConfig, loaded from config/document_processing.yaml, holding the
   segmentation, context and analysis constants used by the pipelines.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from labdigest.exceptions import ConfigError

# Debug Mode Configuration
DEBUG_MODE = os.environ.get('DEBUG', 'false').lower() == 'true'

# Application Paths
APP_NAME = "LabDigest"
APPDATA_DIR = Path(os.environ.get('LABDIGEST_HOME', os.path.expanduser('~/.config'))) / APP_NAME
LOGS_DIR = APPDATA_DIR / "logs"
DEBUG_DIR = APPDATA_DIR / "debug"

# Ensure directories exist
for directory in [APPDATA_DIR, LOGS_DIR]:
    directory.mkdir(parents=True, exist_ok=True)

# Completion Backends
# Groq is the primary backend when an API key is present; Ollama is the fallback
GROQ_API_KEY = os.environ.get('GROQ_API_KEY', '')
GROQ_API_BASE = os.environ.get('GROQ_API_BASE', "https://api.groq.com/openai/v1")
GROQ_MODEL_NAME = os.environ.get('GROQ_MODEL', "llama3-8b-8192")
GROQ_TEMPERATURE = 0.7
GROQ_TIMEOUT_SECONDS = 120

OLLAMA_API_BASE = os.environ.get('OLLAMA_URL', "http://localhost:11434")
OLLAMA_MODEL_NAME = os.environ.get('OLLAMA_MODEL', "llama3.2:latest")
OLLAMA_TIMEOUT_SECONDS = 600  # 10 minutes for long sections on CPU
OLLAMA_CONTEXT_WINDOW = 8192  # Tokens

# Retry behaviour for a single backend (exponential backoff between tries)
COMPLETION_MAX_TRIES = int(os.environ.get('COMPLETION_MAX_TRIES', '3'))
COMPLETION_BACKOFF_FACTOR = 1.0  # Seconds; doubled on every retry

# Whole-document abort, applied around one pipeline run
DOCUMENT_TIMEOUT_SECONDS = 300

# Processing Types accepted at the upload boundary
PROCESSING_TYPES = ("hierarchical", "semantic")
DEFAULT_PROCESSING_TYPE = "hierarchical"

# Logging Configuration
LOG_FILE = LOGS_DIR / "processing.log"
DEBUG_LOG_FILE = LOGS_DIR / "debug_flow.txt"
LOG_FORMAT = "[%(levelname)s %(asctime)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# Document processing YAML
PROCESSING_CONFIG_FILE = Path(__file__).parent.parent / "config" / "document_processing.yaml"


@dataclass(frozen=True)
class ProcessingConfig:
    """
    Segmentation, context and analysis constants for one pipeline run.

    Defaults match config/document_processing.yaml; the YAML file only needs
    to list the values it overrides.
    """

    # Structural (header-driven) segmentation
    min_section_chars: int = 100
    max_section_chars: int = 3000
    section_overlap_chars: int = 500
    split_ratio: float = 0.8

    # Sentence (semantic) segmentation
    max_chunk_chars: int = 4000
    overlap_sentences: int = 2

    # Context digest
    context_window: int = 2
    context_preview_chars: int = 200
    previous_summary_sentences: int = 2

    # Analysis
    continuation_threshold: float = 0.7
    reading_chars_per_minute: int = 1000

    # Guard rails
    max_chunks: int | None = None
    save_debug_csv: bool = False
    debug_files_to_keep: int = 5

    def __post_init__(self):
        """Reject values that would break segmentation."""
        if self.min_section_chars < 0:
            raise ConfigError("min_section_chars must be >= 0")
        if self.max_section_chars <= 0 or self.max_chunk_chars <= 0:
            raise ConfigError("chunk budgets must be positive")
        if not 0 < self.split_ratio <= 1:
            raise ConfigError("split_ratio must be in (0, 1]")
        if not 0 <= self.section_overlap_chars < self.max_section_chars * self.split_ratio:
            raise ConfigError(
                "section_overlap_chars must be smaller than the split point "
                f"({self.max_section_chars * self.split_ratio:.0f} chars)"
            )
        if self.overlap_sentences < 0 or self.context_window < 0:
            raise ConfigError("overlap_sentences and context_window must be >= 0")
        if not 0 <= self.continuation_threshold <= 1:
            raise ConfigError("continuation_threshold must be in [0, 1]")
        if self.reading_chars_per_minute <= 0:
            raise ConfigError("reading_chars_per_minute must be positive")
        if self.max_chunks is not None and self.max_chunks <= 0:
            raise ConfigError("max_chunks must be positive when set")

    @classmethod
    def load(cls, config_path: Path | None = None) -> "ProcessingConfig":
        """
        Load processing configuration from YAML.

        Args:
            config_path: Path to document_processing.yaml. If None, uses default.

        Returns:
            ProcessingConfig with file values layered over the defaults.
        """
        from labdigest.logging_config import debug_log

        if config_path is None:
            config_path = PROCESSING_CONFIG_FILE

        try:
            with open(config_path, encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            debug_log(f"[Config] Processing config not found at {config_path}. Using defaults.")
            return cls()
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse {config_path}: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "ProcessingConfig":
        """Build a config from nested YAML sections, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {}
        for section in data.values() if isinstance(data, dict) else []:
            if not isinstance(section, dict):
                continue
            for key, value in section.items():
                if key in known:
                    values[key] = value
        return cls(**values)
