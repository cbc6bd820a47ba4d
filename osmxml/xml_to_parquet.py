from __future__ import annotations

import argparse
import logging

import fsspec
from tqdm import tqdm

from osmxml.arrow import WriterConfig
from osmxml.arrow import write_dataset
from osmxml.osm.dataset import Dataset
from osmxml.osm.errors import OsmXmlError
from osmxml.osm.reader import read_xml

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convert OSM XML to Parquet")
    parser.add_argument("--xml_filename", type=str, required=True, help="Path or URI of the OSM XML file")
    parser.add_argument("--output_path", type=str, required=True, help="Path to the output directory")
    parser.add_argument("--max_file_size_mb", type=int, default=128, help="Maximum file size in MB")
    parser.add_argument("--batch_size", type=int, default=10_000, help="Elements per record batch")
    parser.add_argument("--chunk_size_kb", type=int, default=64, help="Bytes read from the input per step, in KB")
    parser.add_argument("--log_level", type=str, default="INFO", help="Logging level")
    parser.add_argument("--no_progress", action="store_true", help="Disable the progress bar")
    return parser


def read_dataset(xml_filename: str, chunk_size: int, progress: bool = True) -> Dataset:
    openfile = fsspec.open(xml_filename, "rb")
    size = openfile.fs.size(openfile.path)
    with openfile as fin:
        with tqdm.wrapattr(fin, "read", total=size, desc="Reading XML", disable=not progress) as source:
            return read_xml(source, chunk_size=chunk_size)


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        dataset = read_dataset(args.xml_filename, args.chunk_size_kb * 1024, progress=not args.no_progress)
    except OsmXmlError as e:
        logger.error("Failed to read %s: %s", args.xml_filename, e)
        return 1

    logger.info("%s", dataset.stats())

    config = WriterConfig(max_file_size=args.max_file_size_mb * 1024 * 1024)
    write_dataset(dataset, args.output_path, config, batch_size=args.batch_size)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
