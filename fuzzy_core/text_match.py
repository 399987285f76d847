"""
text_match.py - Text Matching Tools

Provides similarity scoring, the score matrix, new-name building and
filename validation
"""

from array import array
from typing import Dict, Optional, Sequence, List, Tuple
import os

from rapidfuzz import process
from rapidfuzz.distance import Jaro, JaroWinkler, Levenshtein, DamerauLevenshtein

from .models_fs import NameEntry, ScoreMatrix, MatchOptions, SearchAlgorithm
from .logger_helper import get_logger

logger = get_logger(__name__)

_METRICS = {
    SearchAlgorithm.JARO: Jaro.normalized_similarity,
    SearchAlgorithm.JARO_WINKLER: JaroWinkler.normalized_similarity,
    SearchAlgorithm.LEVENSHTEIN: Levenshtein.normalized_similarity,
    SearchAlgorithm.DAMERAU_LEVENSHTEIN: DamerauLevenshtein.normalized_similarity,
}


def score(
    a: str,
    b: str,
    algorithm: SearchAlgorithm = SearchAlgorithm.LEVENSHTEIN,
    case_sensitive: bool = True
) -> float:
    """
    Similarity of two strings

    Args:
        a: First string
        b: Second string
        algorithm: Similarity metric
        case_sensitive: Whether case-sensitive

    Returns:
        Score in [0, 1]; 1.0 for identical strings
    """
    if not case_sensitive:
        a = a.casefold()
        b = b.casefold()

    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    value = _METRICS[algorithm](a, b)
    return min(1.0, max(0.0, float(value)))


def remove_extension(name: str) -> str:
    """Filename without its last extension"""
    return os.path.splitext(name)[0]


def build_new_name(source_name: str, target_name: str, keep_extension: bool = False) -> str:
    """
    Build the filename a source receives when matched to a target

    The source keeps its own extension; the body comes from the target.

    Args:
        source_name: Current filename (e.g., img1.jpg)
        target_name: Target name (e.g., vacation_01)
        keep_extension: Use the whole target name as the body, extension
            included (movie.mkv + .srt -> movie.mkv.srt)

    Returns:
        New filename (e.g., vacation_01.jpg)
    """
    suffix = os.path.splitext(source_name)[1]
    body = target_name if keep_extension else remove_extension(target_name)
    return f"{body}{suffix}"


def _compared_targets(source: NameEntry, targets: Sequence[NameEntry], options: MatchOptions) -> List[str]:
    """The strings a source is scored against, one per target"""
    if options.match_stems:
        return [remove_extension(t.text) for t in targets]
    return [build_new_name(source.text, t.text, options.keep_extension) for t in targets]


def build_score_matrix(
    sources: Sequence[NameEntry],
    targets: Sequence[NameEntry],
    options: Optional[MatchOptions] = None
) -> ScoreMatrix:
    """
    Score every source against every target

    The compared target strings only depend on the source's extension, so
    they are built once per extension and each source row is scored in one
    rapidfuzz call.

    Args:
        sources: Source entries
        targets: Target entries
        options: Matching options

    Returns:
        Score matrix indexed by entry index
    """
    if options is None:
        options = MatchOptions()

    scorer = _METRICS[options.algorithm]
    processor = None if options.case_sensitive else str.casefold
    choices_by_group: Dict[Optional[str], List[str]] = {}

    rows = []
    for source in sources:
        if options.match_stems:
            group, query = None, remove_extension(source.text)
        else:
            group, query = os.path.splitext(source.text)[1], source.text

        choices = choices_by_group.get(group)
        if choices is None:
            choices = choices_by_group[group] = _compared_targets(source, targets, options)

        row = array("d", [0.0]) * len(targets)
        for _, value, t in process.extract(query, choices, scorer=scorer, processor=processor, limit=None):
            row[t] = min(1.0, max(0.0, float(value)))
        rows.append(row)

    logger.debug("Scored %d sources x %d targets with %s", len(sources), len(targets),
                 options.algorithm.value)
    return ScoreMatrix(rows=tuple(rows), target_count=len(targets))


def expand_template(template: str, count: int, start: int = 1, padding: int = 0) -> List[str]:
    """
    Resolve a numbering template into concrete target names

    "{n}" is replaced with the number; a template without "{n}" gets the
    number appended.

    Args:
        template: Name template (e.g., "vacation_{n}")
        count: Number of names
        start: Starting number
        padding: Zero padding digits (0 means no padding)

    Returns:
        Target names
    """
    names = []
    for i in range(count):
        num = start + i
        num_str = str(num).zfill(padding) if padding > 0 else str(num)
        if "{n}" in template:
            names.append(template.replace("{n}", num_str))
        else:
            names.append(f"{template}{num_str}")
    return names


def is_valid_filename(name: str) -> Tuple[bool, Optional[str]]:
    """
    Check if filename is valid (mainly for Windows)

    Args:
        name: Filename

    Returns:
        (is_valid, error_reason)
    """
    if not name:
        return False, "Filename cannot be empty"

    # Windows invalid characters
    invalid_chars = '<>:"/\\|?*'
    for char in invalid_chars:
        if char in name:
            return False, f"Filename contains invalid character: {char}"

    # Trailing space or dot
    if name.endswith(' ') or name.endswith('.'):
        return False, "Filename cannot end with space or dot"

    # Windows reserved names
    reserved_names = {
        'CON', 'PRN', 'AUX', 'NUL',
        'COM1', 'COM2', 'COM3', 'COM4', 'COM5', 'COM6', 'COM7', 'COM8', 'COM9',
        'LPT1', 'LPT2', 'LPT3', 'LPT4', 'LPT5', 'LPT6', 'LPT7', 'LPT8', 'LPT9'
    }
    name_upper = name.upper().split('.')[0]
    if name_upper in reserved_names:
        return False, f"Filename is a Windows reserved name: {name_upper}"

    if len(name) > 255:
        return False, "Filename exceeds 255 characters"

    return True, None
