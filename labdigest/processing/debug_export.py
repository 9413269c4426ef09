"""
Debug export of processed chunks.

Writes one CSV per run to the debug directory so a run's summaries can be
inspected next to the text they came from. Long text columns are truncated
for readability; only the newest files are kept.
"""

from datetime import datetime
from pathlib import Path
from typing import Sequence

import pandas as pd

from labdigest.config import DEBUG_DIR
from labdigest.logging_config import debug_log, error, info

from .models import Chunk, Section


def chunks_to_dataframe(chunks: Sequence[Chunk]) -> pd.DataFrame:
    """One row per processed chunk."""
    data = []
    for position, chunk in enumerate(chunks):
        is_section = isinstance(chunk, Section)
        data.append({
            'position': position,
            'chunk_id': chunk.section_id if is_section else chunk.chunk_id,
            'title': chunk.title,
            'level': chunk.level,
            'length': len(chunk.content),
            'content': chunk.content,
            'summary': chunk.summary,
            'key_concepts': "; ".join(chunk.key_concepts),
        })

    return pd.DataFrame(
        data,
        columns=['position', 'chunk_id', 'title', 'level', 'length', 'content', 'summary', 'key_concepts'],
    )


def save_debug_dataframe(
    chunks: Sequence[Chunk],
    output_dir: Path | None = None,
    keep: int = 5,
) -> Path:
    """
    Save processed chunks to CSV for debugging.

    Args:
        chunks: Processed sections or semantic chunks
        output_dir: Directory to save to. Defaults to the app debug folder.
        keep: Number of most recent CSV files to keep (<= 0 keeps all)

    Returns:
        Path to saved CSV file
    """
    if output_dir is None:
        output_dir = DEBUG_DIR

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    filename = output_dir / f"summarization_{timestamp}.csv"

    df_display = chunks_to_dataframe(chunks)
    df_display['content'] = df_display['content'].str[:100] + "..."
    df_display['summary'] = df_display['summary'].str[:75] + "..."

    df_display.to_csv(filename, index=False)
    info(f"[DEBUG EXPORT] Saved debug DataFrame to {filename}")

    cleanup_old_debug_files(output_dir, keep)
    return filename


def cleanup_old_debug_files(debug_dir: Path, keep_count: int) -> list[Path]:
    """Remove old debug CSV files, keeping only the most recent. Returns removed paths."""
    csv_files = sorted(
        debug_dir.glob("summarization_*.csv"),
        key=lambda p: (p.stat().st_mtime, p.name),
    )
    if keep_count <= 0 or len(csv_files) <= keep_count:
        return []

    removed = []
    for old_file in csv_files[:-keep_count]:
        try:
            old_file.unlink()
        except OSError as e:
            error(f"[DEBUG EXPORT] Failed to remove old debug file {old_file}: {e}")
            continue
        removed.append(old_file)
        debug_log(f"[DEBUG EXPORT] Cleaned up old debug file: {old_file}")
    return removed
