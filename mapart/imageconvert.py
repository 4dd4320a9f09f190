"""Loading images, fitting them to a 128x128 map and turning them into block data."""

from __future__ import annotations

import logging
import math
import os
import struct
from collections.abc import Iterable, Iterator
from enum import IntEnum
from pathlib import Path

from PIL import Image

from .palette import MapBlock, best_block

log = logging.getLogger(__name__)

MAP_SIZE = 128
SUPPORTED_FORMATS = (
    ".png", ".jpg", ".jpeg", ".bmp", ".tga",
    ".psd", ".gif", ".hdr", ".pic", ".pnm",
)
CSV_HEADER = "x,z,block_id"

_F32 = struct.Struct("<f")

PathLike = str | os.PathLike


class ImageConvertError(Exception):
    """An image could not be read or converted."""


class SizeStatus(IntEnum):
    """How an image's size compares with the 128x128 map."""

    SMALLER = -1
    EXACT = 0
    LARGER = 1


def _f32(value: float) -> float:
    return _F32.unpack(_F32.pack(value))[0]


def _round_half_away(value: float) -> int:
    return int(math.floor(value + 0.5)) if value >= 0 else -int(math.floor(-value + 0.5))


def file_extension(path: PathLike) -> str:
    """Return the lower-cased extension of ``path``, dot included."""
    return Path(path).suffix.lower()


def is_supported_image_format(path: PathLike) -> bool:
    """Whether the file's extension names a supported image format."""
    return file_extension(path) in SUPPORTED_FORMATS


def _load_rgb(path: PathLike) -> Image.Image:
    try:
        with Image.open(path) as img:
            return img.convert("RGB")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageConvertError(f"cannot load image {path}: {exc}") from exc


def check_image_size(path: PathLike) -> SizeStatus:
    """Compare an image's dimensions with 128x128."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"file does not exist: {path}")
    if not is_supported_image_format(path):
        raise ImageConvertError(
            f"unsupported image format: {path} "
            f"(supported: {', '.join(ext[1:].upper() for ext in SUPPORTED_FORMATS)})"
        )
    try:
        with Image.open(path) as img:
            img.load()
            width, height = img.size
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageConvertError(f"cannot load image {path}: {exc}") from exc

    if width == MAP_SIZE and height == MAP_SIZE:
        return SizeStatus.EXACT
    if width >= MAP_SIZE and height >= MAP_SIZE:
        return SizeStatus.LARGER
    return SizeStatus.SMALLER


def resize_to_128(data: bytes, width: int, height: int, channels: int) -> bytes:
    """Fit interleaved pixel data to 128x128 with nearest-neighbour sampling.

    Images at least 128 on both sides are centre-cropped to a square and
    scaled down; smaller ones are scaled keeping their aspect ratio and
    centred on a black background.
    """
    if width <= 0 or height <= 0 or channels <= 0:
        raise ValueError("width, height and channels must be positive")
    data = bytes(data)
    if len(data) != width * height * channels:
        raise ValueError(
            f"expected {width * height * channels} bytes, got {len(data)}"
        )

    if width == MAP_SIZE and height == MAP_SIZE:
        return data

    row_stride = width * channels

    def sample_row(src_y: int, columns: Iterable[int]) -> bytes:
        start = src_y * row_stride
        return b"".join(
            data[start + sx * channels:start + (sx + 1) * channels] for sx in columns
        )

    crop_size = min(width, height)
    if crop_size >= MAP_SIZE:
        offset_x = (width - crop_size) // 2
        offset_y = (height - crop_size) // 2
        scale = _f32(MAP_SIZE / crop_size)

        def source(pos: int, offset: int, limit: int) -> int:
            in_crop = min(int(_f32(pos / scale)), crop_size - 1)
            return min(offset + in_crop, limit - 1)

        columns = [source(x, offset_x, width) for x in range(MAP_SIZE)]
        rows = [source(y, offset_y, height) for y in range(MAP_SIZE)]
        return b"".join(sample_row(src_y, columns) for src_y in rows)

    scale = min(_f32(MAP_SIZE / width), _f32(MAP_SIZE / height))
    new_w = _round_half_away(_f32(width * scale))
    new_h = _round_half_away(_f32(height * scale))
    offset_x = (MAP_SIZE - new_w) // 2
    offset_y = (MAP_SIZE - new_h) // 2

    columns = [min(int(_f32(x / scale)), width - 1) for x in range(new_w)]
    resized = bytearray(MAP_SIZE * MAP_SIZE * channels)
    for y in range(new_h):
        src_y = min(int(_f32(y / scale)), height - 1)
        dst = ((offset_y + y) * MAP_SIZE + offset_x) * channels
        resized[dst:dst + new_w * channels] = sample_row(src_y, columns)
    return bytes(resized)


def convert_to_128_image(path: PathLike) -> bytes:
    """Load an image as RGB and fit it to 128x128; returns 128*128*3 bytes."""
    if not is_supported_image_format(path):
        raise ImageConvertError(f"unsupported image format: {path}")
    img = _load_rgb(path)
    width, height = img.size
    log.info("loaded image %s size %dx%d", path, width, height)
    pixels = img.tobytes()
    if width == MAP_SIZE and height == MAP_SIZE:
        return pixels
    return resize_to_128(pixels, width, height, 3)


def _map_blocks(pixels: bytes) -> Iterator[tuple[int, int, MapBlock]]:
    pixels = bytes(pixels)
    if len(pixels) != MAP_SIZE * MAP_SIZE * 3:
        raise ValueError(
            f"expected {MAP_SIZE * MAP_SIZE * 3} bytes of RGB data, got {len(pixels)}"
        )
    for z in range(MAP_SIZE):
        for x in range(MAP_SIZE):
            idx = (z * MAP_SIZE + x) * 3
            r, g, b = pixels[idx:idx + 3]
            yield x, z, best_block(r, g, b)


def image_to_csv(pixels: bytes, output_path: PathLike) -> Path:
    """Write the best-matching block for each pixel of a 128x128 RGB image as CSV."""
    output = Path(output_path)
    with output.open("w", encoding="utf-8") as out:
        out.write(CSV_HEADER + "\n")
        out.writelines(f"{x},{z},{block.internal_id}\n" for x, z, block in _map_blocks(pixels))
    return output


def convert_image_to_csv(input_path: PathLike, output_path: PathLike) -> Path:
    """Convert any supported image into a 128x128 block CSV."""
    if not os.path.exists(input_path):
        raise FileNotFoundError(f"input file does not exist: {input_path}")
    if not is_supported_image_format(input_path):
        raise ImageConvertError(f"unsupported image format: {input_path}")
    check_image_size(input_path)
    pixels = convert_to_128_image(input_path)
    return image_to_csv(pixels, output_path)


def generate_preview_image(pixels: bytes, output_path: PathLike) -> Path:
    """Save a PNG showing the image as it will look in blocks."""
    preview = bytearray()
    for _, _, block in _map_blocks(pixels):
        preview.extend(block.rgb)
    output = Path(output_path)
    Image.frombytes("RGB", (MAP_SIZE, MAP_SIZE), bytes(preview)).save(output, format="PNG")
    return output


def convert_many(input_paths: Iterable[PathLike], output_dir: PathLike = "./output") -> bool:
    """Convert several images into ``<stem>_mc_data.csv`` files.

    Returns whether at least one conversion succeeded.
    """
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    succeeded = 0
    for input_path in input_paths:
        target = out_dir / f"{Path(input_path).stem}_mc_data.csv"
        try:
            convert_image_to_csv(input_path, target)
        except (ImageConvertError, OSError) as exc:
            log.warning("conversion failed for %s: %s", input_path, exc)
        else:
            succeeded += 1
    return succeeded > 0