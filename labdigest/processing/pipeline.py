"""
Document Processing Pipelines

Orchestrates one document run:

    raw text -> Segmenter -> [per chunk: ContextBuilder -> ChunkSummarizer]
             -> Structure Analyzer -> HierarchicalReducer -> result

Two processors share this flow:
- HierarchicalDocumentProcessor: header-driven sections, summary + key
  concepts per section, structure report
- SemanticDocumentProcessor: sentence-packed chunks, topic + summary per
  chunk, topic flow map

Chunks are processed strictly in order; each chunk's context is built from
the already-processed chunks before it. Processing is all-or-nothing: a
failed completion call raises ChunkProcessingError and no result is returned.

process_uploaded_text() is the entry point for the upload layer. It bounds
the whole run with a timeout and reports any failure as a single
DocumentProcessingError.
"""

import asyncio
from dataclasses import replace
from pathlib import Path
from typing import Callable, Sequence

from labdigest.ai.completion_service import CompletionService
from labdigest.config import DEFAULT_PROCESSING_TYPE, DOCUMENT_TIMEOUT_SECONDS, PROCESSING_TYPES, ProcessingConfig
from labdigest.exceptions import DocumentProcessingError, DocumentTooLargeError
from labdigest.logging_config import Timer, debug_log, error, info

from .chunk_summarizer import ChunkSummarizer
from .context_builder import ContextBuilder
from .debug_export import save_debug_dataframe
from .models import Chunk, HierarchicalResult, SemanticResult
from .reducer import HierarchicalReducer
from .segmenter import SentenceSegmenter, StructuralSegmenter
from .structure_analyzer import analyze_document_structure, collect_key_points, create_document_map

# Progress callback type: (phase, current, total, message)
ProgressCallback = Callable[[str, int, int, str], None]


class _DocumentProcessor:
    """Shared plumbing for both pipelines."""

    log_tag = "PIPELINE"

    def __init__(
        self,
        completion_service: CompletionService,
        config: ProcessingConfig | None = None,
        debug_dir: Path | None = None,
    ):
        """
        Initialize the processor.

        Args:
            completion_service: Backend used for every completion call
            config: Processing constants (defaults when None)
            debug_dir: Where debug CSVs go when config.save_debug_csv is set
        """
        self.completion_service = completion_service
        self.config = config or ProcessingConfig()
        self.debug_dir = debug_dir
        self.summarizer = ChunkSummarizer(completion_service)
        self.reducer = HierarchicalReducer(completion_service)

    def _check_chunk_limit(self, chunk_count: int) -> None:
        max_chunks = self.config.max_chunks
        if max_chunks is not None and chunk_count > max_chunks:
            error(f"[{self.log_tag}] {chunk_count} chunks exceeds limit of {max_chunks}")
            raise DocumentTooLargeError(chunk_count, max_chunks)

    def _export_debug(self, chunks: Sequence[Chunk]) -> None:
        if not self.config.save_debug_csv:
            return
        try:
            save_debug_dataframe(chunks, self.debug_dir, keep=self.config.debug_files_to_keep)
        except OSError as e:
            error(f"[{self.log_tag}] Could not write debug CSV: {e}")

    def _notify_progress(
        self,
        callback: ProgressCallback | None,
        phase: str,
        current: int,
        total: int,
        message: str,
    ) -> None:
        """Send progress update if callback provided."""
        if callback:
            try:
                callback(phase, current, total, message)
            except Exception as e:
                debug_log(f"[{self.log_tag}] Progress callback error: {e}")


class HierarchicalDocumentProcessor(_DocumentProcessor):
    """
    Header-driven pipeline.

    Example:
        processor = HierarchicalDocumentProcessor(service)
        result = await processor.process_document(text)
        payload = result.to_dict()
    """

    log_tag = "HIERARCHICAL"

    def __init__(
        self,
        completion_service: CompletionService,
        config: ProcessingConfig | None = None,
        debug_dir: Path | None = None,
    ):
        super().__init__(completion_service, config, debug_dir)
        self.segmenter = StructuralSegmenter(self.config)

    async def process_document(
        self,
        text: str,
        progress_callback: ProgressCallback | None = None,
    ) -> HierarchicalResult:
        """
        Segment, summarize and reduce one document.

        Args:
            text: Raw extracted document text
            progress_callback: Optional (phase, current, total, message) callback

        Returns:
            HierarchicalResult; empty for blank input

        Raises:
            DocumentTooLargeError: More sections than config.max_chunks
            ChunkProcessingError: Any completion call failed
        """
        if not text or not text.strip():
            debug_log(f"[{self.log_tag}] Empty document; nothing to process")
            return HierarchicalResult()

        timing: dict[str, float] = {}

        with Timer(f"[{self.log_tag}] Segmentation") as timer:
            sections = self.segmenter.segment(text)
        timing["segmentation"] = timer.duration_ms

        if not sections:
            debug_log(f"[{self.log_tag}] No sections with content; nothing to process")
            return HierarchicalResult(timing=timing)

        total = len(sections)
        self._check_chunk_limit(total)
        info(f"[{self.log_tag}] Document split into {total} sections")
        self._notify_progress(progress_callback, "segmentation", 0, total, f"Split into {total} sections")

        context_builder = ContextBuilder(self.config)
        working = list(sections)

        with Timer(f"[{self.log_tag}] Section summarization") as timer:
            for index in range(total):
                section = working[index]
                self._notify_progress(
                    progress_callback, "summarization", index + 1, total,
                    f"Summarizing section {index + 1}/{total}: '{section.title}'",
                )
                context = context_builder.build(working, index)
                summary = await self.summarizer.summarize(section.content, context, index)
                key_concepts = await self.summarizer.extract_key_concepts(section.content, index)
                working[index] = replace(
                    section,
                    summary=summary,
                    key_concepts=tuple(key_concepts),
                    context=context.summary,
                )
        timing["summarization"] = timer.duration_ms

        structure = analyze_document_structure(
            working, context_builder.document_type, self.config.reading_chars_per_minute
        )
        key_points = collect_key_points(working)

        self._notify_progress(progress_callback, "reduction", total, total, "Creating final summary...")
        with Timer(f"[{self.log_tag}] Final reduction") as timer:
            final_summary = await self.reducer.reduce_sections(working)
        timing["reduction"] = timer.duration_ms

        self._export_debug(working)

        timing["total"] = sum(timing.values())
        self._notify_progress(
            progress_callback, "complete", total, total,
            f"Processed {total} sections in {timing['total'] / 1000:.1f}s",
        )
        debug_log(f"[{self.log_tag}] Timing breakdown: {timing}")

        return HierarchicalResult(
            sections=working,
            final_summary=final_summary,
            key_points=key_points,
            structure=structure,
            timing=timing,
        )


class SemanticDocumentProcessor(_DocumentProcessor):
    """
    Sentence-driven pipeline.

    Example:
        processor = SemanticDocumentProcessor(service)
        result = await processor.process_document(text)
        payload = result.to_dict()
    """

    log_tag = "SEMANTIC"

    def __init__(
        self,
        completion_service: CompletionService,
        config: ProcessingConfig | None = None,
        debug_dir: Path | None = None,
    ):
        super().__init__(completion_service, config, debug_dir)
        self.segmenter = SentenceSegmenter(self.config)

    async def process_document(
        self,
        text: str,
        progress_callback: ProgressCallback | None = None,
    ) -> SemanticResult:
        """
        Segment into sentence chunks, label and summarize each, then reduce.

        Raises:
            DocumentTooLargeError: More chunks than config.max_chunks
            ChunkProcessingError: Any completion call failed
        """
        if not text or not text.strip():
            debug_log(f"[{self.log_tag}] Empty document; nothing to process")
            return SemanticResult()

        timing: dict[str, float] = {}

        with Timer(f"[{self.log_tag}] Segmentation") as timer:
            chunks = self.segmenter.segment(text)
        timing["segmentation"] = timer.duration_ms

        if not chunks:
            debug_log(f"[{self.log_tag}] No sentences found; nothing to process")
            return SemanticResult(timing=timing)

        total = len(chunks)
        self._check_chunk_limit(total)
        info(f"[{self.log_tag}] Document packed into {total} chunks")
        self._notify_progress(progress_callback, "segmentation", 0, total, f"Packed into {total} chunks")

        context_builder = ContextBuilder(self.config)
        working = list(chunks)

        with Timer(f"[{self.log_tag}] Chunk summarization") as timer:
            for index in range(total):
                chunk = working[index]
                self._notify_progress(
                    progress_callback, "summarization", index + 1, total,
                    f"Summarizing chunk {index + 1}/{total}",
                )
                context = context_builder.build(working, index)
                topic = await self.summarizer.extract_topic(chunk.text, index)
                summary = await self.summarizer.summarize(chunk.text, context, index)
                working[index] = replace(chunk, topic=topic, summary=summary, context=context.summary)
        timing["summarization"] = timer.duration_ms

        document_map = create_document_map(working, self.config.continuation_threshold)

        self._notify_progress(progress_callback, "reduction", total, total, "Creating final summary...")
        with Timer(f"[{self.log_tag}] Final reduction") as timer:
            final_summary = await self.reducer.reduce_semantic(working, document_map)
        timing["reduction"] = timer.duration_ms

        self._export_debug(working)

        timing["total"] = sum(timing.values())
        self._notify_progress(
            progress_callback, "complete", total, total,
            f"Processed {total} chunks in {timing['total'] / 1000:.1f}s",
        )
        debug_log(f"[{self.log_tag}] Timing breakdown: {timing}")

        return SemanticResult(
            semantic_chunks=working,
            document_map=document_map,
            final_summary=final_summary,
            timing=timing,
        )


PROCESSOR_CLASSES = {
    "hierarchical": HierarchicalDocumentProcessor,
    "semantic": SemanticDocumentProcessor,
}


async def process_uploaded_text(
    text: str,
    processing_type: str = DEFAULT_PROCESSING_TYPE,
    completion_service: CompletionService | None = None,
    config: ProcessingConfig | None = None,
    timeout_seconds: float | None = DOCUMENT_TIMEOUT_SECONDS,
    progress_callback: ProgressCallback | None = None,
) -> HierarchicalResult | SemanticResult:
    """
    Process the extracted text of an uploaded document.

    Args:
        text: Raw extracted text
        processing_type: "hierarchical" (default) or "semantic"
        completion_service: Backend to use; the default Groq/Ollama chain when None
        config: Processing constants; loaded from YAML when None
        timeout_seconds: Abort the whole run after this long (None disables)
        progress_callback: Optional (phase, current, total, message) callback

    Returns:
        HierarchicalResult or SemanticResult; call to_dict() for the upload payload

    Raises:
        ValueError: Unknown processing_type
        DocumentProcessingError: The run failed or timed out
    """
    if processing_type not in PROCESSOR_CLASSES:
        raise ValueError(
            f"Unknown processing type '{processing_type}'. Expected one of: {', '.join(PROCESSING_TYPES)}"
        )

    try:
        if completion_service is None:
            from labdigest.ai.fallback import create_completion_service
            completion_service = create_completion_service()
        if config is None:
            config = ProcessingConfig.load()

        processor = PROCESSOR_CLASSES[processing_type](completion_service, config)
        return await asyncio.wait_for(
            processor.process_document(text, progress_callback),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError as e:
        error(f"[UPLOAD] Document processing timed out after {timeout_seconds} seconds")
        raise DocumentProcessingError(
            f"Document processing failed: timed out after {timeout_seconds} seconds"
        ) from e
    except Exception as e:
        error(f"[UPLOAD] Document processing failed: {e}", exc_info=True)
        raise DocumentProcessingError(f"Document processing failed: {e}") from e
