from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Dict, List

from i18n_tasks.key_tree import Forest


class AnalysisType(Enum):
    MISSING_PLURALS = auto()
    MISSING_KEYS = auto()
    NOT_IN_BASE = auto()


@dataclass
class LocaleWarning:
    """A problem that made an analysis skip or degrade one locale."""
    locale: str
    message: str

    def __str__(self):
        return f"{self.locale}: {self.message}"


@dataclass
class AnalysisResults:
    """Results of comparing target locales against a base locale."""
    analysis: AnalysisType
    base_locale: str
    target_locales: List[str]
    forest: Forest = field(default_factory=Forest)
    warnings: List[LocaleWarning] = field(default_factory=list)
    skipped_locales: List[str] = field(default_factory=list)
    analysis_timestamp: datetime = field(default_factory=datetime.now)

    # Plural groups found in the base tree, only filled for MISSING_PLURALS
    sites: List[str] = field(default_factory=list)

    def add_warning(self, locale: str, message: str, skipped: bool = False):
        self.warnings.append(LocaleWarning(locale, message))
        if skipped and locale not in self.skipped_locales:
            self.skipped_locales.append(locale)

    @property
    def has_errors(self) -> bool:
        """Whether any locale has something reported."""
        return bool(self.forest)

    def get_total_errors(self) -> Dict[str, int]:
        """Count of reported leaves per locale."""
        return {root.key: sum(1 for _ in root.leaves()) for root in self.forest}

    def get_invalid_locales(self) -> List[str]:
        return self.forest.locales

    def format_status_report(self) -> str:
        """Generate a human-readable report."""
        lines = [
            f"Analysis: {self.analysis.name} at {self.analysis_timestamp}",
            f"Base locale: {self.base_locale}",
            f"Target locales: {', '.join(self.target_locales) or '-'}",
        ]

        if self.warnings:
            lines.append("\nWarnings:")
            for warning in self.warnings:
                lines.append(f"- {warning}")

        if not self.forest:
            lines.append("\nNo problems found.")
            return "\n".join(lines)

        lines.append("\nProblems:")
        for leaf in self.forest.leaves():
            missing = leaf.data.get("missing_keys")
            if missing:
                lines.append(f"- {leaf.full_key}: missing {', '.join(missing)}")
            else:
                lines.append(f"- {leaf.full_key}")

        totals = self.get_total_errors()
        lines.append("\nTotals:")
        for locale, count in totals.items():
            lines.append(f"- {locale}: {count}")
        return "\n".join(lines)

