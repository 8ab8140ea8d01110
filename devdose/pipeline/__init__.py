from devdose.pipeline.orchestrator import STAGES, Pipeline, PipelineError, summarize

__all__ = ["STAGES", "Pipeline", "PipelineError", "summarize"]
