"""
sort_rules.py - Sorting Rules Module

Provides the orderings that fix source indices
"""

from typing import List, Callable
from .models_fs import FileItem, SortKey


def get_sort_key(sort_by: SortKey) -> Callable[[FileItem], tuple]:
    """
    Get sort key function

    Args:
        sort_by: Sorting method

    Returns:
        Sort key function
    """
    if sort_by == SortKey.MTIME:
        return lambda f: (f.mtime, f.name.lower(), f.name)
    elif sort_by == SortKey.SIZE:
        return lambda f: (f.size, f.name.lower(), f.name)
    else:
        return lambda f: (f.name.lower(), f.name)


def sort_files(
    files: List[FileItem],
    sort_by: SortKey = SortKey.NAME,
    reverse: bool = False
) -> List[FileItem]:
    """
    Sort file list

    Args:
        files: File list
        sort_by: Sorting method
        reverse: Whether to sort in reverse

    Returns:
        Sorted file list (new list)
    """
    key_func = get_sort_key(sort_by)
    return sorted(files, key=key_func, reverse=reverse)
