# src/tasktracker/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .ports import TaskRepo


@dataclass(slots=True)
class AppState:
    """
    Runtime state shared by connectors and command handlers.

    Note: settings is typed as Any to avoid import cycles and to allow test doubles.
    """

    settings: Any
    tasks: TaskRepo
