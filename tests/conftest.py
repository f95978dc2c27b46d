import pytest

from hana_vocab.models import VocabItem


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_hana.db")
    return db_path


def make_item(n: int, korean: str | None = None, **kwargs) -> VocabItem:
    return VocabItem(
        id=kwargs.pop("id", f"w{n:03d}"),
        korean=korean or f"단어{n}",
        meaning=kwargs.pop("meaning", f"词{n}"),
        meaning_en=kwargs.pop("meaning_en", f"word {n}"),
        pos=kwargs.pop("pos", "명"),
        level=kwargs.pop("level", "A"),
        frequency=kwargs.pop("frequency", n),
        **kwargs,
    )


@pytest.fixture
def words():
    """Thirty distinct vocabulary items."""
    return [make_item(n) for n in range(1, 31)]
