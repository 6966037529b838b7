"""
Project dependency detection and library recommendation.

Guesses which AntV libraries a project already uses by reading its
package.json and node_modules directory, then recommends a library for
a query with a fast-to-thorough cascade:

1. Exact match (the query names a slug or an "@antv/<slug>" package)
2. Feature match (characteristic vocabulary, English and Chinese); the
   library with the most distinct hits wins, and G2 loses ties since its
   chart vocabulary also appears in queries about the other libraries
3. Fuzzy match (RapidFuzz token set ratio against library descriptions)

Only tiers 1 and 2 are used to choose among installed libraries; when
nothing matches, the first installed library wins.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from rapidfuzz import fuzz, process, utils

from .libraries import LIBRARY_IDS, get_library_description
from .models import FUZZY_FLOOR, MatchResult

logger = logging.getLogger("antv-mcp")

PACKAGE_SCOPE = "@antv"

FEATURE_PATTERNS: Dict[str, "re.Pattern[str]"] = {
    "g2": re.compile(
        r"图表|柱状图|折线图|饼图|散点图|条形图|面积图|\b(?:charts?|bar|line|pie|scatter|area|histogram)\b",
        re.IGNORECASE,
    ),
    "g6": re.compile(
        r"网络图|关系图|组织架构|图分析|节点|\b(?:graphs?|network|nodes?|edges?)\b",
        re.IGNORECASE,
    ),
    "l7": re.compile(
        r"地图|地理|经纬度|坐标|区域|\b(?:maps?|geo\w*|gis)\b",
        re.IGNORECASE,
    ),
    "x6": re.compile(
        r"流程图|编辑|拖拽|连线|画布|\b(?:diagrams?|editor|flowcharts?)\b",
        re.IGNORECASE,
    ),
    "f2": re.compile(
        r"移动端|手机|触摸|小程序|\b(?:mobile|touch|mini[- ]?program)\b",
        re.IGNORECASE,
    ),
    "s2": re.compile(
        r"表格|透视表|行列|单元格|\b(?:tables?|pivot|spreadsheet|cells?)\b",
        re.IGNORECASE,
    ),
}


def _mention_pattern(library: str) -> "re.Pattern[str]":
    return re.compile(rf"(?<![a-z0-9])(?:{PACKAGE_SCOPE}/)?{library}(?![a-z0-9])", re.IGNORECASE)


_MENTION_PATTERNS = {lib: _mention_pattern(lib) for lib in LIBRARY_IDS}

# Library whose feature vocabulary overlaps the others
GENERIC_LIBRARY = "g2"


def feature_hits(query: str, library: str) -> int:
    """Number of distinct feature terms of a library found in the query."""
    return len({m.group(0).lower() for m in FEATURE_PATTERNS[library].finditer(query)})


class PackageDetector:
    """
    Detects installed AntV libraries in a JavaScript project.

    The detection result is cached on the instance until clear_cache()
    is called; the cache is not keyed by directory.
    """

    def __init__(self):
        self._cached: Optional[Set[str]] = None

    def detect_installed(self, project_dir: Optional[str] = None) -> Set[str]:
        """
        Return the set of AntV slugs found in the project.

        Args:
            project_dir: Project root, defaults to the current working directory

        Returns:
            Slugs found in package.json dependencies or node_modules. Empty
            when nothing is found or the filesystem cannot be read.
        """
        if self._cached is not None:
            return set(self._cached)

        base = Path(project_dir or os.getcwd())
        try:
            installed = self._from_package_json(base) | self._from_node_modules(base)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to detect installed AntV libraries: {e}")
            return set()

        self._cached = installed
        if installed:
            logger.info(f"Detected installed AntV libraries: {', '.join(sorted(installed))}")
        else:
            logger.info("No AntV libraries detected in project")
        return set(installed)

    def clear_cache(self) -> None:
        self._cached = None

    def _from_package_json(self, base: Path) -> Set[str]:
        manifest = base / "package.json"
        if not manifest.is_file():
            return set()
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"Failed to read {manifest}: {e}")
            return set()
        if not isinstance(data, dict):
            return set()

        names: Set[str] = set()
        for section in ("dependencies", "devDependencies"):
            deps = data.get(section) or {}
            if isinstance(deps, dict):
                names.update(deps)
        return {lib for lib in LIBRARY_IDS if f"{PACKAGE_SCOPE}/{lib}" in names}

    def _from_node_modules(self, base: Path) -> Set[str]:
        node_modules = base / "node_modules"
        if not node_modules.is_dir():
            return set()

        found: Set[str] = set()
        scoped = node_modules / PACKAGE_SCOPE
        if scoped.is_dir():
            found.update(entry.name for entry in scoped.iterdir() if entry.name in LIBRARY_IDS)
        found.update(lib for lib in LIBRARY_IDS if (node_modules / lib).exists())
        return found


def match_library(query: str, candidates: Optional[Iterable[str]] = None, fuzzy: bool = True) -> MatchResult:
    """
    Run the recommendation cascade against a set of candidate libraries.

    Args:
        query: User query text
        candidates: Slugs to choose from (all known libraries if omitted)
        fuzzy: Whether to fall through to the fuzzy description tier

    Returns:
        MatchResult with the matched slug (or None) and the tier that matched
    """
    pool: List[str] = [lib for lib in LIBRARY_IDS if candidates is None or lib in set(candidates)]

    for lib in pool:
        if _MENTION_PATTERNS[lib].search(query):
            return MatchResult(library=lib, score=100.0, tier="exact")

    hits = {lib: feature_hits(query, lib) for lib in pool}
    hits = {lib: count for lib, count in hits.items() if count}
    if hits:
        lib = max(hits, key=lambda candidate: (hits[candidate], candidate != GENERIC_LIBRARY))
        return MatchResult(library=lib, score=90.0, tier="feature")

    if fuzzy and pool:
        best = process.extractOne(
            query,
            {lib: get_library_description(lib) for lib in pool},
            scorer=fuzz.token_set_ratio,
            processor=utils.default_process,
            score_cutoff=FUZZY_FLOOR,
        )
        if best:
            _, score, lib = best
            return MatchResult(library=lib, score=float(score), tier="fuzzy")

    return MatchResult(library=None, score=0.0, tier="none")


def recommend_library(query: str, installed: Optional[Iterable[str]] = None) -> Optional[str]:
    """
    Recommend a library for a query.

    Args:
        query: User query text
        installed: Libraries already present in the project (detected if None)

    Returns:
        A slug, or None when nothing is installed and nothing in the query
        points at a library. Never None when at least one library is installed.
    """
    if installed is None:
        installed = package_detector.detect_installed()
    installed = [lib for lib in LIBRARY_IDS if lib in set(installed)]

    if not installed:
        return match_library(query).library

    match = match_library(query, installed, fuzzy=False)
    if match.library:
        return match.library
    return installed[0]


package_detector = PackageDetector()


def detect_installed(project_dir: Optional[str] = None) -> Set[str]:
    return package_detector.detect_installed(project_dir)


def clear_cache() -> None:
    package_detector.clear_cache()
