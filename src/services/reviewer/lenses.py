"""Built-in review lenses."""

from typing import Iterable

from src.core.exceptions import InvalidInputError
from src.services.reviewer.schemas import Lens

LENSES: dict[str, Lens] = {
    "security": Lens(
        name="security",
        description="Vulnerabilities and unsafe handling of data",
        checklist=(
            "Injection (SQL, shell, template) through unvalidated input",
            "Secrets, tokens or credentials committed or logged",
            "Missing authentication or authorization checks",
            "Unsafe deserialization, path traversal, SSRF",
        ),
    ),
    "performance": Lens(
        name="performance",
        description="Avoidable cost in hot paths",
        checklist=(
            "N+1 queries and repeated remote calls inside loops",
            "Quadratic algorithms over unbounded input",
            "Blocking I/O on async code paths",
            "Unbounded memory growth or missing pagination",
        ),
    ),
    "correctness": Lens(
        name="correctness",
        description="Bugs and broken edge cases",
        checklist=(
            "Null/undefined handling and off-by-one errors",
            "Swallowed exceptions and missing error propagation",
            "Race conditions and shared mutable state",
            "Behavior changes not covered by tests",
        ),
    ),
    "maintainability": Lens(
        name="maintainability",
        description="Structure and readability over time",
        checklist=(
            "Functions doing too many things",
            "Duplicated logic that should be shared",
            "Leaky abstractions and tight coupling",
        ),
    ),
    "style": Lens(
        name="style",
        description="Consistency with the surrounding code",
        checklist=(
            "Naming that hides intent",
            "Dead code and stale comments",
        ),
    ),
}


def resolve_lenses(names: Iterable[str] | None, default: Iterable[str]) -> tuple[Lens, ...]:
    """Resolve lens names to lenses, keeping order and dropping duplicates."""
    requested = [n.strip().lower() for n in (names or []) if n and n.strip()]
    if not requested:
        requested = [n.strip().lower() for n in default]

    unknown = [n for n in requested if n not in LENSES]
    if unknown:
        raise InvalidInputError(
            f"Unknown review lens(es): {', '.join(unknown)}",
            {"available": sorted(LENSES)},
        )

    seen: set[str] = set()
    resolved = []
    for name in requested:
        if name not in seen:
            seen.add(name)
            resolved.append(LENSES[name])
    return tuple(resolved)
