# Suggestion application pipeline.
# Re-export entry-points so callers can ``from leasetrack.apply import apply_approved_suggestions``.
from leasetrack.apply.context import BatchResult  # noqa: F401
from leasetrack.apply.coordinator import (  # noqa: F401
    SuggestionBatchProcessor,
    apply_approved_suggestions,
    group_suggestions,
)
