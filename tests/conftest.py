import sys
from pathlib import Path

import pytest

# Ensure project root is importable
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from assessment.content import SECTIONS  # noqa: E402


@pytest.fixture()
def all_max_answers():
    return {q.id: 3 for s in SECTIONS for q in s.questions}


@pytest.fixture()
def assets_dir():
    return ROOT / "assets"
