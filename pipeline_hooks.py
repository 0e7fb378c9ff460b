"""
Observability hooks fired at fixed pipeline checkpoints.

The pipeline never logs its progress inline; it calls whatever PipelineHooks
the caller injected. logging_hooks() is the default set and writes through the
standard logging module, so a plain run still shows every stage.

Checkpoints:
  pre_compression   : before the batch optimizer starts
  post_compression  : after every image has been optimized
  pre_inference     : right before the structured-generation call
  post_inference    : after a validated draft came back
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

STAGES = ("pre_compression", "post_compression", "pre_inference", "post_inference")


@dataclass(frozen=True)
class PipelineEvent:
    stage: str
    context: dict[str, Any] = field(default_factory=dict)


Hook = Callable[[PipelineEvent], None]


@dataclass
class PipelineHooks:
    pre_compression: Optional[Hook] = None
    post_compression: Optional[Hook] = None
    pre_inference: Optional[Hook] = None
    post_inference: Optional[Hook] = None

    def emit(self, stage: str, **context: Any) -> None:
        if stage not in STAGES:
            raise ValueError(f"Unknown pipeline stage: {stage}")
        hook = getattr(self, stage)
        if hook is not None:
            hook(PipelineEvent(stage=stage, context=context))


def _log_event(event: PipelineEvent) -> None:
    details = " ".join(f"{k}={v}" for k, v in event.context.items())
    logger.info("[%s] %s", event.stage, details)


def logging_hooks() -> PipelineHooks:
    return PipelineHooks(
        pre_compression=_log_event,
        post_compression=_log_event,
        pre_inference=_log_event,
        post_inference=_log_event,
    )


def resolve(hooks: Optional[PipelineHooks]) -> PipelineHooks:
    """Callers pass None for the default logging hooks."""
    return hooks if hooks is not None else logging_hooks()
