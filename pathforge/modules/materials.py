"""
Block material catalog.
Knows which block names exist, resolves slab/stair variants of a base
material and converts horizontal directions into cardinal facings.
"""
from typing import Dict, FrozenSet, List, Optional, Tuple


AIR = "AIR"
LIQUIDS = frozenset({"WATER", "LAVA"})
NONE_MATERIAL = "none"

# Full block name -> (variant stem, has slab, has stairs, has wall)
_FAMILIES: Dict[str, Tuple[str, bool, bool, bool]] = {
    'STONE': ('STONE', True, True, False),
    'COBBLESTONE': ('COBBLESTONE', True, True, True),
    'MOSSY_COBBLESTONE': ('MOSSY_COBBLESTONE', True, True, True),
    'SMOOTH_STONE': ('SMOOTH_STONE', True, False, False),
    'STONE_BRICKS': ('STONE_BRICK', True, True, True),
    'MOSSY_STONE_BRICKS': ('MOSSY_STONE_BRICK', True, True, True),
    'ANDESITE': ('ANDESITE', True, True, True),
    'POLISHED_ANDESITE': ('POLISHED_ANDESITE', True, True, False),
    'DIORITE': ('DIORITE', True, True, True),
    'POLISHED_DIORITE': ('POLISHED_DIORITE', True, True, False),
    'GRANITE': ('GRANITE', True, True, True),
    'POLISHED_GRANITE': ('POLISHED_GRANITE', True, True, False),
    'SANDSTONE': ('SANDSTONE', True, True, True),
    'SMOOTH_SANDSTONE': ('SMOOTH_SANDSTONE', True, True, False),
    'RED_SANDSTONE': ('RED_SANDSTONE', True, True, True),
    'BRICKS': ('BRICK', True, True, True),
    'MUD_BRICKS': ('MUD_BRICK', True, True, True),
    'NETHER_BRICKS': ('NETHER_BRICK', True, True, True),
    'RED_NETHER_BRICKS': ('RED_NETHER_BRICK', True, True, True),
    'END_STONE_BRICKS': ('END_STONE_BRICK', True, True, True),
    'PRISMARINE': ('PRISMARINE', True, True, True),
    'PRISMARINE_BRICKS': ('PRISMARINE_BRICK', True, True, False),
    'QUARTZ_BLOCK': ('QUARTZ', True, True, False),
    'PURPUR_BLOCK': ('PURPUR', True, True, False),
    'BLACKSTONE': ('BLACKSTONE', True, True, True),
    'POLISHED_BLACKSTONE': ('POLISHED_BLACKSTONE', True, True, True),
    'POLISHED_BLACKSTONE_BRICKS': ('POLISHED_BLACKSTONE_BRICK', True, True, True),
    'COBBLED_DEEPSLATE': ('COBBLED_DEEPSLATE', True, True, True),
    'POLISHED_DEEPSLATE': ('POLISHED_DEEPSLATE', True, True, True),
    'DEEPSLATE_BRICKS': ('DEEPSLATE_BRICK', True, True, True),
    'DEEPSLATE_TILES': ('DEEPSLATE_TILE', True, True, True),
    'OAK_PLANKS': ('OAK', True, True, False),
    'SPRUCE_PLANKS': ('SPRUCE', True, True, False),
    'BIRCH_PLANKS': ('BIRCH', True, True, False),
    'JUNGLE_PLANKS': ('JUNGLE', True, True, False),
    'ACACIA_PLANKS': ('ACACIA', True, True, False),
    'DARK_OAK_PLANKS': ('DARK_OAK', True, True, False),
    'MANGROVE_PLANKS': ('MANGROVE', True, True, False),
    'CHERRY_PLANKS': ('CHERRY', True, True, False),
    'CRIMSON_PLANKS': ('CRIMSON', True, True, False),
    'WARPED_PLANKS': ('WARPED', True, True, False),
}

# Blocks that have no slab/stair variants
_PLAIN_BLOCKS = frozenset({
    'GRASS_BLOCK', 'DIRT', 'COARSE_DIRT', 'DIRT_PATH', 'PODZOL', 'MUD',
    'SAND', 'RED_SAND', 'GRAVEL', 'CLAY', 'SNOW_BLOCK', 'ICE', 'PACKED_ICE',
    'GLASS', 'OAK_LOG', 'SPRUCE_LOG', 'BIRCH_LOG', 'OAK_FENCE',
    'SPRUCE_FENCE', 'IRON_BARS', 'DEEPSLATE', 'BEDROCK', 'NETHERRACK',
    'TERRACOTTA', 'WHITE_CONCRETE', 'GRAY_CONCRETE', 'LIGHT_GRAY_CONCRETE',
    'BLACK_CONCRETE', 'OBSIDIAN', 'TORCH', 'LANTERN',
})


def _build_catalog() -> FrozenSet[str]:
    names = {AIR, *LIQUIDS, *_PLAIN_BLOCKS}
    for full_name, (stem, has_slab, has_stairs, has_wall) in _FAMILIES.items():
        names.add(full_name)
        if has_slab:
            names.add(f"{stem}_SLAB")
        if has_stairs:
            names.add(f"{stem}_STAIRS")
        if has_wall:
            names.add(f"{stem}_WALL")
    return frozenset(names)


MATERIALS: FrozenSet[str] = _build_catalog()

_VARIANT_SUFFIXES = ('_SLAB', '_STAIRS', '_WALL')


def normalize_material(name: str) -> str:
    """Upper-case a material name, keeping the ``none`` sentinel as is."""
    if name is None:
        return NONE_MATERIAL
    name = str(name).strip()
    if name.lower() == NONE_MATERIAL:
        return NONE_MATERIAL
    return name.upper()


def is_known_material(name: str) -> bool:
    return normalize_material(name) in MATERIALS


def is_slab(name: str) -> bool:
    return name.endswith('_SLAB')


def is_stairs(name: str) -> bool:
    return name.endswith('_STAIRS')


def _candidate_stems(name: str) -> List[str]:
    """
    Candidate stems for variant lookup, most specific first.

    ``STONE_BRICKS`` -> ``STONE_BRICK``, ``OAK_PLANKS`` -> ``OAK``,
    ``DEEPSLATE_TILES`` -> ``DEEPSLATE_TILE``, ``STONE_BRICK_SLAB`` ->
    ``STONE_BRICK``; the raw name is always the last candidate.
    """
    stems = []
    family = _FAMILIES.get(name)
    if family:
        stems.append(family[0])

    for suffix in _VARIANT_SUFFIXES:
        if name.endswith(suffix):
            stems.append(name[:-len(suffix)])

    if name.endswith('_PLANKS'):
        stems.append(name[:-len('_PLANKS')])
    if name == 'BRICKS' or name.endswith('_BRICKS'):
        stems.append(name[:-1])
    if name.endswith('_TILES'):
        stems.append(name[:-1])
    if name.endswith('_BLOCK'):
        stems.append(name[:-len('_BLOCK')])

    stems.append(name)

    unique = []
    for stem in stems:
        if stem not in unique:
            unique.append(stem)
    return unique


def _find_variant(material: str, suffix: str) -> Optional[str]:
    material = normalize_material(material)
    if material.endswith(suffix) and material in MATERIALS:
        return material
    for stem in _candidate_stems(material):
        candidate = f"{stem}{suffix}"
        if candidate in MATERIALS:
            return candidate
    return None


def find_slab_variant(material: str) -> Optional[str]:
    """Return the slab variant of a material, or None if there is none."""
    return _find_variant(material, '_SLAB')


def find_stair_variant(material: str) -> Optional[str]:
    """Return the stair variant of a material, or None if there is none."""
    return _find_variant(material, '_STAIRS')


def facing_from_vector(dx: float, dz: float) -> str:
    """Convert a horizontal direction into a cardinal facing (x axis wins only on a strict majority)."""
    if abs(dx) > abs(dz):
        return 'east' if dx > 0 else 'west'
    return 'south' if dz > 0 else 'north'


def opposite_facing(facing: str) -> str:
    return {'north': 'south', 'south': 'north', 'east': 'west', 'west': 'east'}[facing]
