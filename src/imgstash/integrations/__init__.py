"""Optional external collaborators: git commits and a fuzzy picker."""

from .git import GitCommitter
from .picker import FuzzyPicker, PickerError

__all__ = ["GitCommitter", "FuzzyPicker", "PickerError"]
