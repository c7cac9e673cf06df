from swap_supply.pipeline.sequencer import (
    PipelineResult,
    PipelineStep,
    SwapSupplyPipeline,
)

__all__ = ["PipelineResult", "PipelineStep", "SwapSupplyPipeline"]
