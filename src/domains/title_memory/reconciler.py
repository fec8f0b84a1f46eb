# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request-scoped skill identifier reconciliation.

Learning outcomes authored in the same request as new skills need to
reference those skills before the catalog has issued their ids. Each new
skill gets a generated id (a placeholder token). Once the catalog returns
the created skills, placeholders are bound to durable ids positionally.

Outcome skill references are resolved in this order:
1. generated id -> durable id
2. skill name -> generated id -> durable id
3. otherwise the reference is taken to be durable already

Example:
    >>> reconciler = IdentifierReconciler()
    >>> skills = reconciler.assign([SkillInput(name="Python")])
    >>> reconciler.bind(skills, ["6650a1"])
    >>> reconciler.resolve("Python")
    '6650a1'
"""

from typing import Callable, Iterable, Sequence
from uuid import uuid4

from src.models.title_memory import SkillInput


def _new_token() -> str:
    return f"gen-{uuid4().hex}"


class IdentifierReconciler:
    """Two lookup tables scoped to one merge: generated->durable and name->generated.

    Nothing here is persisted and nothing here fails; only the catalog
    calls around it can.
    """

    def __init__(self, token_factory: Callable[[], str] = _new_token) -> None:
        self._token_factory = token_factory
        self._durable_by_generated: dict[str, str] = {}
        self._generated_by_name: dict[str, str] = {}
        self._generated: set[str] = set()

    def assign(self, skills: Sequence[SkillInput]) -> list[SkillInput]:
        """Give every skill a generated id and index it by name.

        Skills that already carry a generated_id keep it. When two skills
        share a name, the first one owns the name.

        Returns:
            Copies of the skills, each with generated_id set.
        """
        assigned: list[SkillInput] = []
        for skill in skills:
            generated_id = skill.generated_id or self._unused_token()
            self._generated.add(generated_id)
            self._generated_by_name.setdefault(skill.name, generated_id)
            assigned.append(skill.model_copy(update={"generated_id": generated_id}))
        return assigned

    def bind(self, skills: Sequence[SkillInput], durable_ids: Sequence[str]) -> None:
        """Record the durable id the catalog issued for each assigned skill.

        The n-th durable id belongs to the n-th skill.
        """
        for skill, durable_id in zip(skills, durable_ids, strict=True):
            if skill.generated_id:
                self._durable_by_generated[skill.generated_id] = durable_id

    def resolve(self, reference: str) -> str:
        """Map a skill reference to a durable id where possible."""
        if reference in self._durable_by_generated:
            return self._durable_by_generated[reference]

        generated_id = self._generated_by_name.get(reference)
        if generated_id is not None and generated_id in self._durable_by_generated:
            return self._durable_by_generated[generated_id]

        return reference

    def resolve_all(self, references: Iterable[str]) -> list[str]:
        """Resolve references, keeping their order."""
        return [self.resolve(reference) for reference in references]

    def unresolved(self, references: Iterable[str]) -> list[str]:
        """References that are still placeholders of this reconciler."""
        return [reference for reference in references if reference in self._generated]

    def _unused_token(self) -> str:
        token = self._token_factory()
        while token in self._generated:
            token = self._token_factory()
        return token
