from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from PySide6.QtWidgets import QApplication

from principal_console.data import PrincipalNode
from tests.factories import make_forest


os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qt_app() -> Iterator[QApplication]:
    """Ensure a QApplication instance exists for UI tests."""

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def forest() -> list[PrincipalNode]:
    """Fresh Users/Groups/Roles forest; new node objects on every call."""

    return make_forest()
