from pathlib import Path

import pytest

EXAMPLES_DIR = Path(__file__).resolve().parents[1] / 'examples'


@pytest.fixture
def example():
    """Path of an example program by number."""
    def _example(n: int) -> str:
        return str(EXAMPLES_DIR / f'program_{n}.sb')
    return _example
