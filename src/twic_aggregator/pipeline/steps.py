"""Per-issue step outcomes and the stop-on-skip rule."""

from enum import Enum

from schemas.build import BuildPolicy


class StepOutcome(Enum):
    """What the build loop does after processing one issue."""

    CONTINUE = "continue"
    SKIP_AND_CONTINUE = "skip_and_continue"
    SKIP_AND_STOP = "skip_and_stop"

    @property
    def skipped(self) -> bool:
        return self is not StepOutcome.CONTINUE

    @property
    def stops_build(self) -> bool:
        return self is StepOutcome.SKIP_AND_STOP


def classify(succeeded: bool, policy: BuildPolicy) -> StepOutcome:
    """Decide how the build proceeds after a step."""
    if succeeded:
        return StepOutcome.CONTINUE
    if policy.stop_on_first_skip:
        return StepOutcome.SKIP_AND_STOP
    return StepOutcome.SKIP_AND_CONTINUE
