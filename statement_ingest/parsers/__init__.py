"""Per-source statement parsers.

Registration order is the selection priority: the manual-entry workbook first
(its filename hint is the most specific), the bank export last (its header
keywords are the most generic).
"""

from __future__ import annotations

from .base import InstallmentSectionScanner, SectionState, StatementParser
from .hyundai import HyundaiParser
from .kb import KBParser
from .lotte import LotteParser
from .manual import ManualEntryParser
from .samsung import SamsungParser
from .vouchers import OnnuriParser, SeongnamParser
from .woori import WooriParser, WooriRules

PARSERS: tuple[StatementParser, ...] = (
    ManualEntryParser(),
    HyundaiParser(),
    SamsungParser(),
    LotteParser(),
    KBParser(),
    OnnuriParser(),
    SeongnamParser(),
    WooriParser(),
)

__all__ = [
    "PARSERS",
    "HyundaiParser",
    "InstallmentSectionScanner",
    "KBParser",
    "LotteParser",
    "ManualEntryParser",
    "OnnuriParser",
    "SamsungParser",
    "SectionState",
    "SeongnamParser",
    "StatementParser",
    "WooriParser",
    "WooriRules",
]
