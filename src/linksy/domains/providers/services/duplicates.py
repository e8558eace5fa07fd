# src/linksy/domains/providers/services/duplicates.py
"""
Duplicate provider detection by name similarity.
"""

from typing import Any, Dict, List


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit cost insert, delete and substitute."""
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], current[j - 1], previous[j]) + 1)
        previous = current
    return previous[-1]


def calculate_similarity(a: str, b: str) -> float:
    """1 - distance / len(longer), on a 0..1 scale. Two empty strings are identical."""
    longer, shorter = (a, b) if len(a) > len(b) else (b, a)
    if not longer:
        return 1.0
    return (len(longer) - levenshtein_distance(longer, shorter)) / len(longer)


def names_match(a: str, b: str, threshold: float) -> bool:
    return a == b or a in b or b in a or calculate_similarity(a, b) >= threshold


def find_duplicate_groups(providers: List[Dict[str, Any]], threshold: float = 0.7) -> List[List[Dict[str, Any]]]:
    """
    Group providers whose names look alike.

    Each unprocessed provider seeds a group; later providers join it when their
    lowercased, trimmed name matches the seed's. A provider belongs to at most
    one group. Only groups with more than one member are returned, in
    encounter order.
    """
    groups = []
    processed = set()

    for i, seed in enumerate(providers):
        if seed["id"] in processed:
            continue

        group = [seed]
        seed_name = (seed.get("name") or "").lower().strip()

        for candidate in providers[i + 1:]:
            if candidate["id"] in processed:
                continue
            candidate_name = (candidate.get("name") or "").lower().strip()
            if names_match(seed_name, candidate_name, threshold):
                group.append(candidate)
                processed.add(candidate["id"])

        if len(group) > 1:
            processed.add(seed["id"])
            groups.append(group)

    return groups
