"""Tag validation, predicates, and tag-based selection."""

from .index import TagIndex
from .predicates import TagPredicate, all_of, any_of, both, none_of
from .text import is_valid_tag, normalize_tags, split_tags, validate_tag

__all__ = [
    "TagIndex",
    "TagPredicate",
    "all_of",
    "any_of",
    "both",
    "none_of",
    "is_valid_tag",
    "normalize_tags",
    "split_tags",
    "validate_tag",
]
