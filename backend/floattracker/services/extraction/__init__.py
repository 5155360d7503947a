"""
extraction package — Filing extraction & reconciliation engine.

Stages (leaf-first): normalizer → sections → heuristics / llm_extractor →
merger → reconciler → upserter → tracker, orchestrated by pipeline.
"""

from .pipeline import FilingParsePipeline, build_pipeline, process_filings  # noqa: F401
