"""Listing map-art files, turning block CSVs into commands and ordering them for building."""

from __future__ import annotations

import math
import os
import re
import struct
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tiff", ".webp")
CSV_HEADER_FIELDS = ("x", "z", "block_id")
IMAGE_WIDTH = 128
CHUNK_SIZE = 32
CHUNKS_PER_SIDE = IMAGE_WIDTH // CHUNK_SIZE

_WHITESPACE = " \t\n\v\f\r"
_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1
_DECIMAL = r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
_STREAM_FLOAT_RE = re.compile(_DECIMAL)
_LEADING_FLOAT_RE = re.compile(rf"{_DECIMAL}|[+-]?(?:inf(?:inity)?|nan)", re.IGNORECASE)
_F32 = struct.Struct("<f")

PathLike = str | os.PathLike


class CsvFormatError(ValueError):
    """A block CSV file is malformed."""


@dataclass(frozen=True)
class PointBlock:
    """One block of the map: its position in the image and its block id."""

    x: int
    z: int
    block_id: str


def _f32(value: float) -> float:
    return _F32.unpack(_F32.pack(value))[0]


def _round_half_away(value: float) -> int:
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def is_image_file(path: PathLike) -> bool:
    """Whether ``path`` has an image file extension."""
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS


def is_csv_file(path: PathLike) -> bool:
    """Whether ``path`` has a ``.csv`` extension."""
    return Path(path).suffix.lower() == ".csv"


def _collect(directory: PathLike, accept: Callable[[Path], bool]) -> list[str]:
    root = Path(directory)
    try:
        if not root.is_dir():
            return []
        return sorted(
            entry.name for entry in root.iterdir() if entry.is_file() and accept(entry)
        )
    except OSError:
        return []


def list_image_and_output_files(
    img_dir: PathLike, out_dir: PathLike
) -> tuple[list[tuple[int, str]], list[tuple[int, str]]]:
    """List image files in ``img_dir`` and CSV files in ``out_dir``.

    Each list is sorted by name and numbered from 1; a missing directory
    gives an empty list.
    """
    images = list(enumerate(_collect(img_dir, is_image_file), start=1))
    outputs = list(enumerate(_collect(out_dir, is_csv_file), start=1))
    return images, outputs


def _trim(text: str) -> str:
    return text.strip(_WHITESPACE)


def _split_fields(line: str) -> tuple[str, str, str] | None:
    parts = line.split(",")
    if len(parts) < 3 or (len(parts) == 3 and parts[2] == ""):
        return None
    return parts[0], parts[1], parts[2]


def _parse_int(text: str, line_num: int, axis: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise CsvFormatError(f"line {line_num}: {axis} value is not an integer: {text!r}")
    value = int(text)
    if not _INT_MIN <= value <= _INT_MAX:
        raise CsvFormatError(f"line {line_num}: {axis} value out of range: {text!r}")
    return value


def _read_points(csv_path: PathLike) -> list[PointBlock]:
    with open(csv_path, encoding="utf-8", newline="") as fh:
        text = fh.read()
    if not text:
        raise CsvFormatError("CSV file is empty")

    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()

    header = lines[0].removesuffix("\r")
    fields = _split_fields(header)
    if fields is None:
        raise CsvFormatError('CSV header has too few columns, expected "x,z,block_id"')
    columns = tuple(_trim(field) for field in fields)
    if columns != CSV_HEADER_FIELDS:
        raise CsvFormatError(
            f'CSV header mismatch: expected "x,z,block_id", got "{",".join(columns)}"'
        )

    points: list[PointBlock] = []
    for line_num, line in enumerate(lines[1:], start=2):
        if not line:
            continue
        fields = _split_fields(line.removesuffix("\r"))
        if fields is None:
            raise CsvFormatError(f"line {line_num}: too few fields (need x,z,block_id)")
        x_text, z_text, block_id = (_trim(field) for field in fields)
        if not block_id:
            raise CsvFormatError(f"line {line_num}: block_id is empty")
        x = _parse_int(x_text, line_num, "x")
        z = _parse_int(z_text, line_num, "z")
        points.append(PointBlock(x, z, block_id))
    return points


def generate_setblock_commands(
    csv_path: PathLike, origin_x: float, origin_y: float, origin_z: float
) -> list[str]:
    """Read a block CSV and produce a ``tp`` then a ``setblock`` command per block.

    Coordinates are offset from the origin and rounded to whole blocks.
    Raises :class:`CsvFormatError` for malformed content and ``OSError``
    when the file cannot be read.
    """
    points = _read_points(csv_path)
    fx, fy, fz = _f32(origin_x), _f32(origin_y), _f32(origin_z)
    world_y = _round_half_away(fy)
    commands: list[str] = []
    for point in points:
        world_x = _round_half_away(_f32(fx + point.x))
        world_z = _round_half_away(_f32(fz + point.z))
        commands.append(f"tp @s {world_x} {world_y} {world_z}")
        commands.append(f"setblock {world_x} {world_y} {world_z} {point.block_id}")
    return commands


def partition_commands(commands: Sequence[str]) -> list[list[str]]:
    """Group the command pairs of a 128x128 map into 32x32 chunks.

    Chunk rows are walked in a serpentine order: left to right on even rows,
    right to left on odd ones. Input of any other size gives an empty list.
    """
    if len(commands) != 2 * IMAGE_WIDTH * IMAGE_WIDTH:
        return []

    chunks: list[list[str]] = []
    for cz in range(CHUNKS_PER_SIDE):
        xs = range(CHUNKS_PER_SIDE)
        order = reversed(xs) if cz % 2 == 1 else xs
        for cx in order:
            start_x, start_z = cx * CHUNK_SIZE, cz * CHUNK_SIZE
            chunk: list[str] = []
            for z in range(start_z, min(start_z + CHUNK_SIZE, IMAGE_WIDTH)):
                for x in range(start_x, min(start_x + CHUNK_SIZE, IMAGE_WIDTH)):
                    index = (z * IMAGE_WIDTH + x) * 2
                    chunk.extend(commands[index:index + 2])
            if chunk:
                chunks.append(chunk)
    return chunks


def _stream_float(token: str) -> float | None:
    if not _STREAM_FLOAT_RE.fullmatch(token):
        return None
    try:
        return _f32(float(token))
    except OverflowError:
        return None


def _leading_float(token: str) -> float | None:
    match = _LEADING_FLOAT_RE.match(token)
    if match is None:
        return None
    try:
        return _f32(float(match.group()))
    except OverflowError:
        return None


def extract_tp_coordinates(command: str) -> tuple[float, float, float] | None:
    """Return the target of a ``tp [@s] x y z`` command, or ``None`` for anything else."""
    tokens = command.split()
    if len(tokens) < 2 or tokens[0] != "tp":
        return None
    if tokens[1] == "@s":
        if len(tokens) != 5:
            return None
        x = _stream_float(tokens[2])
        rest = tokens[3:]
    else:
        if len(tokens) != 4:
            return None
        x = _leading_float(tokens[1])
        rest = tokens[2:]
    if x is None:
        return None
    y, z = (_stream_float(token) for token in rest)
    if y is None or z is None:
        return None
    return (x, y, z)