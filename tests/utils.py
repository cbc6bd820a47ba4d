from __future__ import annotations

import io
from textwrap import dedent

from osmxml.osm.dataset import Dataset
from osmxml.osm.reader import read_xml

SAMPLE_DOCUMENT = """\
<?xml version="1.0" encoding="UTF-8"?>
<osm version="0.6" generator="test">
  <bounds minlat="52.0" minlon="13.0" maxlat="53.0" maxlon="14.0"/>
  <node id="1" lat="52.1" lon="13.4"><tag k="name" v="A"/></node>
  <way id="10"><nd ref="1"/><tag k="highway" v="residential"/></way>
  <relation id="100"><member type="way" ref="10" role="outer"/></relation>
</osm>
"""


def parse_document(document: str, chunk_size: int = 7) -> Dataset:
    # a tiny chunk size makes elements span several parser feeds
    return read_xml(io.BytesIO(dedent(document).encode("utf-8")), chunk_size=chunk_size)
