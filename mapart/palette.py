"""Block palette for map art and nearest-colour matching in CIE Lab space."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache

Lab = tuple[float, float, float]

_REF_X = 0.95047
_REF_Y = 1.00000
_REF_Z = 1.08883


def _linearize(channel: int) -> float:
    value = channel / 255.0
    if value > 0.04045:
        return ((value + 0.055) / 1.055) ** 2.4
    return value / 12.92


def _lab_f(t: float) -> float:
    if t > 0.008856:
        return t ** (1.0 / 3.0)
    return 7.787 * t + 16.0 / 116.0


def rgb_to_lab(r: int, g: int, b: int) -> Lab:
    """Convert an sRGB colour (0-255 channels) to CIE Lab."""
    rl, gl, bl = _linearize(r), _linearize(g), _linearize(b)
    x = (rl * 0.4124 + gl * 0.3576 + bl * 0.1805) / _REF_X
    y = (rl * 0.2126 + gl * 0.7152 + bl * 0.0722) / _REF_Y
    z = (rl * 0.0193 + gl * 0.1192 + bl * 0.9505) / _REF_Z
    fx, fy, fz = _lab_f(x), _lab_f(y), _lab_f(z)
    return (116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz))


@dataclass(frozen=True)
class MapBlock:
    """A placeable block with its representative colour."""

    internal_id: str
    r: int
    g: int
    b: int
    lab: Lab = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "lab", rgb_to_lab(self.r, self.g, self.b))

    @property
    def rgb(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def distance_sq(self, lab: Lab) -> float:
        """Squared Euclidean distance between this block's colour and ``lab``."""
        return sum((mine - other) ** 2 for mine, other in zip(self.lab, lab))


_PALETTE_DATA: tuple[tuple[str, int, int, int], ...] = (
    # basic blocks
    ("minecraft:grass_block", 109, 153, 48),
    ("minecraft:white_wool", 171, 171, 171),
    ("minecraft:white_concrete", 220, 220, 220),
    ("minecraft:stone", 97, 97, 97),
    ("minecraft:dirt", 130, 94, 66),
    ("minecraft:oak_planks", 124, 100, 61),
    ("minecraft:deepslate", 55, 55, 55),
    # teal
    ("minecraft:diamond_block", 81, 189, 184),
    ("minecraft:prismarine_bricks", 94, 142, 134),
    ("minecraft:warped_planks", 41, 89, 101),
    ("minecraft:cyan_concrete", 66, 109, 134),
    ("minecraft:warped_wart_block", 20, 180, 133),
    ("minecraft:sea_lantern", 172, 209, 201),
    ("minecraft:prismarine", 102, 153, 153),
    ("minecraft:cyan_wool", 76, 127, 153),
    # light pink
    ("minecraft:cherry_planks", 233, 175, 175),
    ("minecraft:cherry_leaves", 214, 117, 151),
    ("minecraft:pink_wool", 242, 127, 165),
    ("minecraft:pink_concrete", 210, 109, 138),
    # yellow
    ("minecraft:bamboo_planks", 197, 175, 43),
    ("minecraft:yellow_wool", 253, 216, 61),
    ("minecraft:gold_block", 215, 194, 58),
    ("minecraft:sponge", 215, 194, 58),
    # blue
    ("minecraft:lapis_block", 64, 101, 220),
    ("minecraft:blue_concrete", 43, 55, 134),
    ("minecraft:light_blue_wool", 102, 153, 216),
    # red / purple
    ("minecraft:red_concrete", 134, 31, 31),
    ("minecraft:netherrack", 97, 0, 0),
    ("minecraft:crimson_nylium", 163, 22, 109),
    ("minecraft:magenta_concrete", 154, 61, 179),
    ("minecraft:amethyst_block", 134, 61, 179),
    # green
    ("minecraft:emerald_block", 0, 187, 49),
    ("minecraft:slime_block", 109, 153, 48),
    ("minecraft:moss_block", 101, 119, 64),
    # dark
    ("minecraft:black_concrete", 22, 22, 22),
    ("minecraft:obsidian", 22, 13, 31),
    ("minecraft:netherite_block", 43, 39, 43),
    # greys
    ("minecraft:polished_andesite", 132, 135, 134),
    ("minecraft:polished_diorite", 191, 191, 191),
    ("minecraft:quartz_block", 220, 215, 205),
    # red / orange
    ("minecraft:red_wool", 150, 50, 50),
    ("minecraft:redstone_block", 171, 50, 44),
    ("minecraft:orange_wool", 240, 118, 19),
    ("minecraft:acacia_planks", 169, 91, 50),
    ("minecraft:brown_mushroom_block", 149, 85, 50),
    # yellow-green
    ("minecraft:lime_wool", 112, 185, 25),
    # blue-purple
    ("minecraft:purple_wool", 121, 42, 150),
    ("minecraft:blue_ice", 116, 167, 253),
    ("minecraft:packed_ice", 141, 184, 255),
    # glazed terracotta
    ("minecraft:white_glazed_terracotta", 189, 196, 199),
    ("minecraft:silver_glazed_terracotta", 137, 141, 144),
    ("minecraft:gray_glazed_terracotta", 76, 81, 86),
    ("minecraft:black_glazed_terracotta", 44, 29, 34),
    ("minecraft:brown_glazed_terracotta", 125, 85, 59),
    ("minecraft:red_glazed_terracotta", 179, 59, 57),
    ("minecraft:orange_glazed_terracotta", 224, 117, 51),
    ("minecraft:yellow_glazed_terracotta", 232, 171, 59),
    ("minecraft:lime_glazed_terracotta", 129, 183, 63),
    ("minecraft:green_glazed_terracotta", 95, 139, 70),
    ("minecraft:cyan_glazed_terracotta", 50, 118, 119),
    ("minecraft:light_blue_glazed_terracotta", 103, 138, 169),
    ("minecraft:blue_glazed_terracotta", 71, 74, 142),
    ("minecraft:purple_glazed_terracotta", 118, 70, 142),
    ("minecraft:magenta_glazed_terracotta", 169, 78, 143),
    ("minecraft:pink_glazed_terracotta", 221, 141, 167),
    # copper
    ("minecraft:copper_block", 216, 127, 51),
    ("minecraft:exposed_copper", 135, 107, 98),
    ("minecraft:weathered_copper", 58, 142, 140),
    ("minecraft:oxidized_copper", 22, 126, 134),
    # terracotta
    ("minecraft:white_terracotta", 209, 177, 161),
    ("minecraft:light_gray_terracotta", 135, 107, 98),
    ("minecraft:gray_terracotta", 57, 41, 35),
    ("minecraft:black_terracotta", 37, 22, 16),
    ("minecraft:brown_terracotta", 76, 50, 35),
    ("minecraft:red_terracotta", 142, 60, 46),
    ("minecraft:orange_terracotta", 159, 82, 36),
    ("minecraft:yellow_terracotta", 186, 133, 36),
    ("minecraft:lime_terracotta", 103, 117, 53),
    ("minecraft:green_terracotta", 76, 82, 42),
    ("minecraft:cyan_terracotta", 87, 92, 92),
    ("minecraft:light_blue_terracotta", 112, 108, 138),
    ("minecraft:blue_terracotta", 76, 62, 92),
    ("minecraft:purple_terracotta", 122, 73, 88),
    ("minecraft:magenta_terracotta", 149, 87, 108),
    ("minecraft:pink_terracotta", 160, 77, 78),
)


def build_palette() -> tuple[MapBlock, ...]:
    """Build the palette of blocks with their Lab colours precomputed."""
    return tuple(MapBlock(block_id, r, g, b) for block_id, r, g, b in _PALETTE_DATA)


PALETTE: tuple[MapBlock, ...] = build_palette()


@lru_cache(maxsize=65536)
def best_block(r: int, g: int, b: int) -> MapBlock:
    """Return the palette block closest in Lab space; ties go to the earlier block."""
    target = rgb_to_lab(r, g, b)
    return min(PALETTE, key=lambda block: block.distance_sq(target))