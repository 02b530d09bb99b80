"""Identity resolution and admission of files into the store."""

from .detectors import HashComputer, IdentityResolver, is_valid_hash
from .discovery import DirectoryScanner
from .models import Annotation, Candidate, Identity
from .pipeline import AdmissionPipeline
from .prompts import NullPrompter, Prompter, TerminalPrompter

__all__ = [
    "AdmissionPipeline",
    "Annotation",
    "Candidate",
    "DirectoryScanner",
    "HashComputer",
    "Identity",
    "IdentityResolver",
    "NullPrompter",
    "Prompter",
    "TerminalPrompter",
    "is_valid_hash",
]
