import pytest

from osmxml.osm.dataset import Dataset
from tests.utils import SAMPLE_DOCUMENT
from tests.utils import parse_document


@pytest.fixture
def sample_dataset() -> Dataset:
    return parse_document(SAMPLE_DOCUMENT)


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "sample.osm"
    path.write_text(SAMPLE_DOCUMENT, encoding="utf-8")
    return path
