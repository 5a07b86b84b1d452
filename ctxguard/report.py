#=============================================================================
# File        : ctxguard/report.py
# Project     : ctxguard v1.0
# Component   : Report - Finding and Report Data Structures
# Description : Data structures for context leak findings and scan reports
#               " LeakFinding dataclass with validation and serialization
#               " Conversion of scan results into findings
#               " ScanReport with health score and deduplication stamp
#               " Report merging across scan batches
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.10+, Dataclasses, JSON
# Standards   : PEP 8, Type Hints, Immutable Data Structures
# Created     : 2025-08-19
# Modified    : 2025-09-02 (Context leak findings)
# Dependencies: json, time, hashlib, dataclasses, typing, scanner.engine
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : 100% coverage, all tests passing
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from __future__ import annotations

import json
import time
import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from .scanner.engine import ScanResult, ScanStatus

FindingPattern = Literal["context", "scan_failure", "uninspectable"]

# Severity ranking for proper comparison
SEVERITY_RANK = {
    'low': 1,
    'medium': 2,
    'high': 3,
    'critical': 4
}


class SeverityLevel(Enum):
    """Severity levels for leak findings."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self.value]

    def __lt__(self, other: "SeverityLevel") -> bool:
        return self.rank < other.rank

    def __le__(self, other: "SeverityLevel") -> bool:
        return self.rank <= other.rank

    def __gt__(self, other: "SeverityLevel") -> bool:
        return self.rank > other.rank

    def __ge__(self, other: "SeverityLevel") -> bool:
        return self.rank >= other.rank


class LeakCategory(Enum):
    """Categories of scan findings."""
    CONTEXT_LEAK = "context_leak"      # lifecycle-bound instance reachable
    SCAN_FAILURE = "scan_failure"      # depth bound hit or graph unreadable
    UNINSPECTABLE = "uninspectable"    # object skipped under the skip policy


_CATEGORY_FOR_PATTERN = {
    "context": LeakCategory.CONTEXT_LEAK,
    "scan_failure": LeakCategory.SCAN_FAILURE,
    "uninspectable": LeakCategory.UNINSPECTABLE,
}


@dataclass(frozen=True)
class LeakFinding:
    """
    Immutable representation of one scan finding.

    ``location`` is the field path from the scanned root, e.g.
    ``root.callback.__self__``.
    """
    pattern: FindingPattern
    label: str
    location: str
    detail: str
    confidence: float
    suggested_fix: str

    category: LeakCategory = field(default=LeakCategory.CONTEXT_LEAK)
    severity: SeverityLevel = field(default=SeverityLevel.HIGH)
    match_type: Optional[str] = None
    first_seen: float = field(default_factory=time.time)
    last_seen: float = field(default_factory=time.time)
    occurrence_count: int = field(default=1)

    def __post_init__(self):
        """Validate finding data on creation."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {self.confidence}")
        if self.pattern not in _CATEGORY_FOR_PATTERN:
            raise ValueError(f"Unknown finding pattern '{self.pattern}'")
        if self.last_seen < self.first_seen:
            raise ValueError("last_seen cannot be before first_seen")
        object.__setattr__(self, 'category', _CATEGORY_FOR_PATTERN[self.pattern])

    @property
    def key(self) -> str:
        return f"{self.pattern}:{self.label}:{self.location}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pattern': self.pattern,
            'label': self.label,
            'location': self.location,
            'detail': self.detail,
            'confidence': self.confidence,
            'suggested_fix': self.suggested_fix,
            'category': self.category.value,
            'severity': self.severity.value,
            'match_type': self.match_type,
            'first_seen': self.first_seen,
            'last_seen': self.last_seen,
            'occurrence_count': self.occurrence_count,
        }

    def merge_with(self, other: "LeakFinding") -> "LeakFinding":
        """Merge a repeat of the same finding, keeping the worst severity."""
        if self.key != other.key:
            raise ValueError("Can only merge findings with same pattern, label and location")

        return LeakFinding(
            pattern=self.pattern,
            label=self.label,
            location=self.location,
            detail=self.detail,
            confidence=max(self.confidence, other.confidence),
            suggested_fix=self.suggested_fix,
            severity=max(self.severity, other.severity),
            match_type=self.match_type or other.match_type,
            first_seen=min(self.first_seen, other.first_seen),
            last_seen=max(self.last_seen, other.last_seen),
            occurrence_count=self.occurrence_count + other.occurrence_count,
        )


def findings_from_result(label: str, result: ScanResult) -> List[LeakFinding]:
    """Convert one scan result into zero or more findings."""
    findings: List[LeakFinding] = []

    if result.status is ScanStatus.LEAK:
        findings.append(LeakFinding(
            pattern="context",
            label=label,
            location=result.path or "root",
            detail=(f"{result.root_type} holds a hard reference to {result.match_type} "
                    f"at depth {result.depth}"),
            confidence=1.0,
            suggested_fix=("Pass plain data or a weakref.ref to the lifecycle-bound object "
                           "instead of the object itself"),
            severity=SeverityLevel.CRITICAL if result.depth in (0, 1) else SeverityLevel.HIGH,
            match_type=result.match_type,
        ))
    elif result.status is ScanStatus.DEPTH_EXCEEDED:
        findings.append(LeakFinding(
            pattern="scan_failure",
            label=label,
            location=result.path or "root",
            detail=str(result.error),
            confidence=0.5,
            suggested_fix="Flatten the object graph or raise max_depth",
            severity=SeverityLevel.MEDIUM,
        ))
    elif result.status is ScanStatus.FAILED:
        findings.append(LeakFinding(
            pattern="scan_failure",
            label=label,
            location=result.path or "root",
            detail=str(result.error),
            confidence=0.5,
            suggested_fix="Register an enumerator for the type or use on_denied='skip'",
            severity=SeverityLevel.MEDIUM,
        ))

    for path in result.uninspectable:
        findings.append(LeakFinding(
            pattern="uninspectable",
            label=label,
            location=path,
            detail="Object refused introspection and was treated as terminal",
            confidence=0.3,
            suggested_fix="Register an enumerator for the type",
            severity=SeverityLevel.LOW,
        ))

    return findings


@dataclass(frozen=True)
class ScanReport:
    """Immutable report for a batch of scans."""
    created_at: float
    findings: List[LeakFinding]
    stamp: str

    scans: int = field(default=0)
    objects_visited: int = field(default=0)
    scan_duration_ms: float = field(default=0.0)
    memory_current_mb: float = field(default=0.0)

    # Environment context
    hostname: Optional[str] = None
    process_name: Optional[str] = None
    python_version: Optional[str] = None
    platform: Optional[str] = None

    @property
    def finding_count(self) -> int:
        return len(self.findings)

    @property
    def leak_findings(self) -> List[LeakFinding]:
        return [f for f in self.findings if f.category is LeakCategory.CONTEXT_LEAK]

    @property
    def failure_findings(self) -> List[LeakFinding]:
        return [f for f in self.findings if f.category is LeakCategory.SCAN_FAILURE]

    @property
    def has_leaks(self) -> bool:
        return bool(self.leak_findings)

    def filter_by_severity(self, min_severity: SeverityLevel) -> List[LeakFinding]:
        return [f for f in self.findings if f.severity >= min_severity]

    @property
    def health_score(self) -> int:
        """0-100, higher is better, weighted by finding severity."""
        if not self.findings:
            return 100

        severity_weights = {
            'low': 2,
            'medium': 5,
            'high': 12,
            'critical': 25
        }
        penalty = sum(severity_weights[f.severity.value] for f in self.findings)
        count_penalty = min(len(self.findings), 10) * 1.5
        return max(0, min(100, 100 - int(penalty + count_penalty)))

    @property
    def health_grade(self) -> str:
        score = self.health_score
        if score >= 90: return "A"
        elif score >= 80: return "B"
        elif score >= 70: return "C"
        elif score >= 60: return "D"
        else: return "F"

    def summary(self) -> str:
        if not self.findings:
            return f"No context leaks detected ({self.scans} scans)."

        lines = [
            f"ctxguard Report Summary ({self.finding_count} findings, {self.scans} scans)",
            f" Leaks: {len(self.leak_findings)}, Scan failures: {len(self.failure_findings)}",
            f" Health: {self.health_score}/100 ({self.health_grade})",
        ]
        for i, finding in enumerate(sorted(self.findings, key=lambda f: f.severity, reverse=True), 1):
            lines.append(f"  {i}. [{finding.severity.value.upper()}] {finding.label}: {finding.location}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'created_at': self.created_at,
            'stamp': self.stamp,
            'scans': self.scans,
            'objects_visited': self.objects_visited,
            'scan_duration_ms': self.scan_duration_ms,
            'memory_current_mb': self.memory_current_mb,
            'health_score': self.health_score,
            'hostname': self.hostname,
            'process_name': self.process_name,
            'python_version': self.python_version,
            'platform': self.platform,
            'findings': [f.to_dict() for f in self.findings],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)


def make_report_stamp(findings: List[LeakFinding]) -> str:
    """Stable hash of the findings for deduplication across runs."""
    if not findings:
        return hashlib.sha256(b"empty").hexdigest()[:16]

    stamp_string = "|".join(sorted(f.key for f in findings))
    return hashlib.sha256(stamp_string.encode('utf-8')).hexdigest()[:16]


def create_report(findings: List[LeakFinding], **kwargs) -> ScanReport:
    """Create a ScanReport with a generated timestamp and stamp."""
    return ScanReport(
        created_at=time.time(),
        findings=findings,
        stamp=make_report_stamp(findings),
        **kwargs
    )


def merge_reports(reports: List[ScanReport]) -> ScanReport:
    """Merge reports, deduplicating findings by pattern/label/location."""
    if not reports:
        return create_report([])
    if len(reports) == 1:
        return reports[0]

    merged: Dict[str, LeakFinding] = {}
    for report in reports:
        for finding in report.findings:
            if finding.key in merged:
                merged[finding.key] = merged[finding.key].merge_with(finding)
            else:
                merged[finding.key] = finding

    findings = list(merged.values())
    latest = max(reports, key=lambda r: r.created_at)
    return ScanReport(
        created_at=latest.created_at,
        findings=findings,
        stamp=make_report_stamp(findings),
        scans=sum(r.scans for r in reports),
        objects_visited=sum(r.objects_visited for r in reports),
        scan_duration_ms=sum(r.scan_duration_ms for r in reports),
        memory_current_mb=latest.memory_current_mb,
        hostname=latest.hostname,
        process_name=latest.process_name,
        python_version=latest.python_version,
        platform=latest.platform,
    )
