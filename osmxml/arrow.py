from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import pyarrow as pa
import pyarrow.fs
import pyarrow.parquet as pq
from more_itertools import batched

from osmxml.osm.dataset import Dataset
from osmxml.osm.types import Info
from osmxml.osm.types import OsmEntity
from osmxml.osm.types import Point
from osmxml.osm.types import Polyline
from osmxml.osm.types import Relationship

logger = logging.getLogger(__name__)


def join_path(root: str, *parts: str) -> str:
    return "/".join([root.rstrip("/"), *(part.strip("/") for part in parts)])


ARROW_TAGS_TYPE = pa.map_(pa.string(), pa.string())

ARROW_MEMBER_TYPE = pa.struct(
    [
        pa.field("id", pa.int64()),
        pa.field("role", pa.string()),
        pa.field("type", pa.string()),
    ]
)

ARROW_INFO_FIELDS = [
    pa.field("version", pa.int32()),
    pa.field("timestamp", pa.int64()),
    pa.field("changeset", pa.int64()),
    pa.field("uid", pa.int64()),
    pa.field("user", pa.string()),
    pa.field("visible", pa.bool_()),
]

ARROW_POINT_SCHEMA = pa.schema(
    [
        pa.field("id", pa.int64()),
        pa.field("tags", ARROW_TAGS_TYPE),
        pa.field("latitude", pa.float64()),
        pa.field("longitude", pa.float64()),
        *ARROW_INFO_FIELDS,
    ]
)

ARROW_POLYLINE_SCHEMA = pa.schema(
    [
        pa.field("id", pa.int64()),
        pa.field("tags", ARROW_TAGS_TYPE),
        pa.field("nodes", pa.list_(pa.int64())),
        *ARROW_INFO_FIELDS,
    ]
)

ARROW_RELATIONSHIP_SCHEMA = pa.schema(
    [
        pa.field("id", pa.int64()),
        pa.field("tags", ARROW_TAGS_TYPE),
        pa.field("members", pa.list_(ARROW_MEMBER_TYPE)),
        *ARROW_INFO_FIELDS,
    ]
)


def tags_array(elements: Sequence[OsmEntity]) -> pa.Array:
    return pa.array([list(element.tags.items()) for element in elements], type=ARROW_TAGS_TYPE)


def info_arrays(infos: Sequence[Info]) -> list[pa.Array]:
    return [
        pa.array([info.version for info in infos], type=pa.int32()),
        pa.array([info.timestamp for info in infos], type=pa.int64()),
        pa.array([info.changeset for info in infos], type=pa.int64()),
        pa.array([info.uid for info in infos], type=pa.int64()),
        pa.array([info.user for info in infos], type=pa.string()),
        pa.array([info.visible for info in infos], type=pa.bool_()),
    ]


def record_batch_for_points(points: Sequence[Point]) -> pa.RecordBatch | None:
    if not points:
        return None

    arrays = [
        pa.array([point.id for point in points], type=pa.int64()),
        tags_array(points),
        pa.array([point.latitude for point in points], type=pa.float64()),
        pa.array([point.longitude for point in points], type=pa.float64()),
        *info_arrays([point.info for point in points]),
    ]

    return pa.RecordBatch.from_arrays(arrays, schema=ARROW_POINT_SCHEMA)


def record_batch_for_polylines(polylines: Sequence[Polyline]) -> pa.RecordBatch | None:
    if not polylines:
        return None

    arrays = [
        pa.array([polyline.id for polyline in polylines], type=pa.int64()),
        tags_array(polylines),
        pa.array([list(polyline.nodes) for polyline in polylines], type=pa.list_(pa.int64())),
        *info_arrays([polyline.info for polyline in polylines]),
    ]

    return pa.RecordBatch.from_arrays(arrays, schema=ARROW_POLYLINE_SCHEMA)


def record_batch_for_relationships(relationships: Sequence[Relationship]) -> pa.RecordBatch | None:
    if not relationships:
        return None

    members = []
    for relationship in relationships:
        members.append([{"id": m.id, "role": m.role, "type": m.kind.value} for m in relationship.members])

    arrays = [
        pa.array([relationship.id for relationship in relationships], type=pa.int64()),
        tags_array(relationships),
        pa.array(members, type=pa.list_(ARROW_MEMBER_TYPE)),
        *info_arrays([relationship.info for relationship in relationships]),
    ]

    return pa.RecordBatch.from_arrays(arrays, schema=ARROW_RELATIONSHIP_SCHEMA)


@dataclass
class WriterConfig:
    max_rows_per_group: int | None = None
    max_rows_per_file: int | None = None
    max_file_size: int | None = None


@dataclass
class Writer:
    filename: str
    writer: pq.ParquetWriter
    written_rows: int = 0
    written_batches: int = 0
    row_group_size: int | None = None

    def write(self, batch: pa.RecordBatch) -> None:
        self.writer.write_batch(batch, row_group_size=self.row_group_size)
        self.written_rows += batch.num_rows
        self.written_batches += 1

    def close(self) -> None:
        self.writer.close()


class ParquetBatchWriter:
    def __init__(
        self, fs: pa.fs.FileSystem, base_path: str, filename_template: str, schema: pa.Schema, config: WriterConfig
    ) -> None:
        self.fs = fs
        self.base_path = base_path
        self.filename_template = filename_template
        self.schema = schema
        self.writer_config = config
        self.unique_id = str(uuid.uuid4()).replace("-", "_")
        self._file_index = 0
        self.filenames: list[str] = []

        self.fs.create_dir(base_path, recursive=True)
        self._writer: Writer | None = None

    def _get_writer(self) -> Writer:
        if self._writer is None:
            self._file_index += 1
            filename = join_path(
                self.base_path, self.filename_template.format(file_id=self.unique_id, index=self._file_index)
            )
            writer = pq.ParquetWriter(
                filename,
                schema=self.schema,
                flavor="spark",
                filesystem=self.fs,
            )
            self._writer = Writer(
                filename=filename,
                writer=writer,
                row_group_size=self.writer_config.max_rows_per_group,
            )
            self.filenames.append(filename)
            logger.debug("Opened %s", filename)

        return self._writer

    def write(self, batch: pa.RecordBatch | None) -> None:
        if batch is None:
            return
        writer = self._get_writer()
        writer.write(batch)
        if self._should_switch_writer():
            self.close()

    def _should_switch_writer(self) -> bool:
        if self._writer is None:
            return False

        if self.writer_config.max_rows_per_file:
            if self._writer.written_rows >= self.writer_config.max_rows_per_file:
                return True

        if self.writer_config.max_file_size is not None:
            if self._writer.written_batches % 10 == 0:
                if self.fs.get_file_info(self._writer.filename).size >= self.writer_config.max_file_size:
                    return True

        return False

    def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None

    def __enter__(self) -> ParquetBatchWriter:
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        self.close()


def prepare_output_path(output_path: str) -> tuple[pa.fs.FileSystem, str]:
    fs, path = pa.fs.FileSystem.from_uri(output_path)
    fs.create_dir(path, recursive=True)
    fs.delete_dir_contents(path)
    return fs, path


def write_header(fs: pa.fs.FileSystem, base_path: str, header: dict[str, str]) -> None:
    with fs.open_output_stream(join_path(base_path, "header.json"), compression=None) as stream:
        stream.write(json.dumps(header).encode())


def write_batches(
    writer: ParquetBatchWriter,
    elements: Iterable[OsmEntity],
    to_batch: Callable[[Sequence[OsmEntity]], pa.RecordBatch | None],
    batch_size: int,
) -> None:
    with writer:
        for chunk in batched(elements, batch_size):
            writer.write(to_batch(chunk))


def write_dataset(dataset: Dataset, output_path: str, config: WriterConfig, batch_size: int = 10_000) -> None:
    fs, base_path = prepare_output_path(output_path)

    write_header(fs, base_path, dataset.header)

    for name, schema, elements, to_batch in [
        ("points", ARROW_POINT_SCHEMA, dataset.points.values(), record_batch_for_points),
        ("polylines", ARROW_POLYLINE_SCHEMA, dataset.polylines.values(), record_batch_for_polylines),
        ("relationships", ARROW_RELATIONSHIP_SCHEMA, dataset.relationships.values(), record_batch_for_relationships),
    ]:
        writer = ParquetBatchWriter(
            fs=fs,
            base_path=join_path(base_path, name),
            filename_template=name + "_{file_id}_{index:05d}.parquet",
            schema=schema,
            config=config,
        )
        write_batches(writer, elements, to_batch, batch_size)
        logger.info("Wrote %d %s to %d files", len(elements), name, len(writer.filenames))
