"""Kinship rules and lineage queries over living people and the archive."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from chronicles.agents.person import Person


def are_siblings(a: Person, b: Person) -> bool:
    """Share a known mother or a known father. Half-siblings count."""
    same_mother = a.mother_id is not None and a.mother_id == b.mother_id
    same_father = a.father_id is not None and a.father_id == b.father_id
    return same_mother or same_father


def are_directly_related(a: Person, b: Person) -> bool:
    """One is the recorded mother or father of the other."""
    if b.mother_id == a.id or b.father_id == a.id:
        return True
    if a.mother_id == b.id or a.father_id == b.id:
        return True
    return False


def can_marry(a: Person, b: Person) -> bool:
    return a.id != b.id and not are_siblings(a, b) and not are_directly_related(a, b)


def parents_of(person: Person) -> list[int]:
    return [pid for pid in (person.mother_id, person.father_id) if pid is not None]


class FamilyRegistry:
    """Read-only lineage view across everyone who ever lived.

    Built from the living list plus the archive of the deceased; parents
    missing from both (pruned or never recorded) are treated as unknown.
    """

    def __init__(self, people: Iterable[Person], archive: Optional[Mapping[int, Person]] = None) -> None:
        self._by_id: dict[int, Person] = dict(archive or {})
        for p in people:
            self._by_id[p.id] = p
        self._generations: dict[int, int] = {}

    def get(self, person_id: int) -> Optional[Person]:
        return self._by_id.get(person_id)

    def __len__(self) -> int:
        return len(self._by_id)

    def children_of(self, person_id: int) -> list[Person]:
        return sorted(
            (p for p in self._by_id.values() if person_id in parents_of(p)),
            key=lambda p: p.id,
        )

    def ancestors_of(self, person_id: int) -> list[Person]:
        """All known ancestors, nearest generation first."""
        result: list[Person] = []
        seen: set[int] = set()
        start = self._by_id.get(person_id)
        frontier = parents_of(start) if start else []
        while frontier:
            next_frontier: list[int] = []
            for pid in frontier:
                if pid in seen:
                    continue
                seen.add(pid)
                parent = self._by_id.get(pid)
                if parent is None:
                    continue
                result.append(parent)
                next_frontier.extend(parents_of(parent))
            frontier = next_frontier
        return result

    def generation_of(self, person_id: int) -> int:
        """Founders are generation 0; others sit one below their deepest known parent."""
        if person_id in self._generations:
            return self._generations[person_id]

        # Iterative post-order walk; lineages can run deeper than the recursion limit.
        stack = [person_id]
        while stack:
            pid = stack[-1]
            person = self._by_id.get(pid)
            pending = [
                parent for parent in (parents_of(person) if person else [])
                if parent in self._by_id and parent not in self._generations
            ]
            if pending:
                stack.extend(pending)
                continue
            stack.pop()
            known = [self._generations[parent] for parent in (parents_of(person) if person else [])
                     if parent in self._generations]
            self._generations[pid] = max(known) + 1 if known else 0
        return self._generations[person_id]

    def family_tree(self) -> list[list[Person]]:
        """Everyone grouped by generation, ids ascending within each."""
        tree: dict[int, list[Person]] = {}
        for pid in sorted(self._by_id):
            tree.setdefault(self.generation_of(pid), []).append(self._by_id[pid])
        return [tree[g] for g in sorted(tree)]
