from questline.authoring.builder import (
    BuilderReply,
    BuilderState,
    QuestBuilder,
    is_cancel,
    should_trigger,
)
from questline.authoring.extractor import extract_candidates

__all__ = [
    "BuilderReply",
    "BuilderState",
    "QuestBuilder",
    "extract_candidates",
    "is_cancel",
    "should_trigger",
]
