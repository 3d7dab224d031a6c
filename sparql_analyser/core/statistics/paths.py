"""
Predicate resources inside property paths.

The counting rule is deliberately asymmetric and must stay that way for
compatibility with previously published statistics:

- BinaryPath: the right child counts when it is a bound property step;
  then the left child counts when it is a bound property step, is
  recursed into when it is another BinaryPath, and contributes nothing
  otherwise.
- UnaryPath: counts only when the wrapped path is a bound property step.

Left-deep chains (`a/b/c`, `a|b|c`) are therefore counted completely,
while right-nested ones such as `a/(b/c)` are undercounted.
"""

from sparql_analyser.core.types.algebra import BinaryPath, Path, PropertyStep, UnaryPath
from sparql_analyser.core.types.terms import IRI


def is_bound_step(path: Path) -> bool:
    """True if the path is a terminal step on a bound IRI."""
    return isinstance(path, PropertyStep) and isinstance(path.term, IRI)


def count_path_resources(path: Path) -> int:
    """
    Count bound predicate IRIs in a path.

    Args:
        path: Predicate path of a PathTriple

    Returns:
        Number of counted property steps
    """
    if isinstance(path, BinaryPath):
        return _count_binary(path)
    if isinstance(path, UnaryPath):
        return 1 if is_bound_step(path.inner) else 0
    if is_bound_step(path):
        return 1
    return 0


def _count_binary(path: BinaryPath) -> int:
    resources = 1 if is_bound_step(path.right) else 0

    left = path.left
    if is_bound_step(left):
        resources += 1
    elif isinstance(left, BinaryPath):
        resources += _count_binary(left)

    return resources
