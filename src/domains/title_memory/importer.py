# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bulk import of title memories from JSON files.

Each file holds a JSON array of title memory objects. Every record of
every file is checked before anything is created; all violations are
reported together, each prefixed with its location:

    programs.json[2]: missing required field 'name'
"""

import json
import logging
from typing import Sequence

from pydantic import ValidationError

from src.domains.title_memory.exceptions import TitleMemoryValidationError
from src.models.title_memory import ImportFile, TitleMemoryCreate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "titleCode",
    "universities",
    "centers",
    "name",
    "academicLevel",
    "branch",
    "academicField",
    "status",
    "yearDelivery",
    "totalCredits",
    "distributedCredits",
    "skills",
    "learningOutcomes",
)


class TitleMemoryImporter:
    """Parses and validates import files into creation requests."""

    def parse(self, files: Sequence[ImportFile]) -> list[TitleMemoryCreate]:
        """Parse every file, failing on the first batch with any violation.

        Args:
            files: Uploaded files, each a JSON array of title memories.

        Returns:
            Creation requests in file order, then array order.

        Raises:
            TitleMemoryValidationError: With one entry per violation.
        """
        errors: list[str] = []
        requests: list[TitleMemoryCreate] = []

        for file in files:
            records = self._load(file, errors)
            for index, record in enumerate(records):
                request = self._validate(f"{file.filename}[{index}]", record, errors)
                if request is not None:
                    requests.append(request)

        if errors:
            logger.warning("Import rejected with %d errors across %d files", len(errors), len(files))
            raise TitleMemoryValidationError("Import rejected", errors)

        logger.info("Import parsed: %d title memories from %d files", len(requests), len(files))
        return requests

    @staticmethod
    def _load(file: ImportFile, errors: list[str]) -> list:
        try:
            payload = json.loads(file.content)
        except json.JSONDecodeError as e:
            errors.append(f"{file.filename}: invalid JSON ({e.msg} at line {e.lineno})")
            return []

        if not isinstance(payload, list):
            errors.append(f"{file.filename}: expected a JSON array of title memories")
            return []
        return payload

    @staticmethod
    def _validate(location: str, record: object, errors: list[str]) -> TitleMemoryCreate | None:
        if not isinstance(record, dict):
            errors.append(f"{location}: expected an object")
            return None

        missing = [field for field in REQUIRED_FIELDS if field not in record]
        if missing:
            errors.extend(f"{location}: missing required field '{field}'" for field in missing)
            return None

        try:
            return TitleMemoryCreate.model_validate(record)
        except ValidationError as e:
            for error in e.errors():
                path = ".".join(str(part) for part in error["loc"])
                errors.append(f"{location}: {path}: {error['msg']}")
            return None
