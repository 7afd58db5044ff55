"""Column decoding: normalization, classification, hierarchy tracking, synthesis."""

from .classifier import ClassifierRules, RowClassifier
from .column_scan import ColumnScan, ColumnScanner
from .headers import get_header_strategy
from .hierarchy import HierarchyTracker
from .normalizer import Normalizer, TypoTableError
from .synthesizer import DropReason, RecordSynthesizer

__all__ = [
    "ClassifierRules",
    "RowClassifier",
    "ColumnScan",
    "ColumnScanner",
    "get_header_strategy",
    "HierarchyTracker",
    "Normalizer",
    "TypoTableError",
    "DropReason",
    "RecordSynthesizer",
]
