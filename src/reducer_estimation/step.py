"""Job step descriptors handed to estimators by the orchestrator."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from reducer_estimation.sources import InputSource
from serde_msgspec import StructBaseStrict


class StepIdentity(StructBaseStrict, frozen=True):
    """Identity used to find comparable historical runs of a step."""

    job_name: str
    step_name: str
    signature: str | None = None

    @property
    def key(self) -> str:
        """Return the history lookup key.

        Returns
        -------
        str
            ``job/step`` with an optional ``#signature`` suffix.
        """
        base = f"{self.job_name}/{self.step_name}"
        if self.signature:
            return f"{base}#{self.signature}"
        return base


@dataclass(frozen=True)
class JobStepInfo:
    """Everything an estimator may inspect about one pending step."""

    identity: StepIdentity
    inputs: InputSource
    config: Mapping[str, object] = field(default_factory=dict)
    explicit_workers: int | None = None

    @property
    def key(self) -> str:
        """Return the history lookup key of the step.

        Returns
        -------
        str
            Key derived from ``identity``.
        """
        return self.identity.key


__all__ = ["JobStepInfo", "StepIdentity"]
