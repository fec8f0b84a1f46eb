"""Title Memory Service.

Manages title memory records: accreditation documents describing an
academic program's credits, skills, learning outcomes and delivering
institutions.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
