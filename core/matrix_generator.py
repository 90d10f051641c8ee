from typing import List

from core.locale_catalog import LocaleCatalog
from core.probe import ProbePair


def matrix_size(n: int) -> int:
    return n * (n - 1) if n > 1 else 0


def generate(catalog: LocaleCatalog) -> List[ProbePair]:
    """
    Every ordered (target, cookie) pair of distinct catalog locales.

    Outer loop is the target, inner loop the cookie, both in catalog order,
    so the same catalog always yields the same sequence.
    """
    locales = catalog.locales()
    return [
        ProbePair(target, cookie)
        for target in locales
        for cookie in locales
        if cookie != target
    ]
