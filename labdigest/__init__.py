"""
LabDigest: document ingestion for lab-material generation.

Splits uploaded documents into context-preserving chunks, summarizes them
through a text-completion backend and reduces the summaries into one
synthesis for the lab-generation prompts.
"""

__version__ = "0.1.0"
