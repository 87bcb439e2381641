"""Genome assembly alias registry."""

from __future__ import annotations

# Known assemblies and the names tracks and hubs commonly use for them
GENOME_ASSEMBLIES: dict[str, dict] = {
    "hg38": {
        "aliases": ["grch38", "grch38.p13", "grch38.p14"],
        "description": "Human genome build 38 (Dec 2013)",
    },
    "hg19": {
        "aliases": ["grch37", "b37", "hs37d5"],
        "description": "Human genome build 37 (Feb 2009)",
    },
    "mm10": {
        "aliases": ["grcm38"],
        "description": "Mouse genome build 38 (Dec 2011)",
    },
    "mm39": {
        "aliases": ["grcm39"],
        "description": "Mouse genome build 39 (Jun 2020)",
    },
    "rn6": {
        "aliases": ["rnor_6.0"],
        "description": "Rat genome Rnor_6.0 (Jul 2014)",
    },
    "danRer11": {
        "aliases": ["grcz11"],
        "description": "Zebrafish genome GRCz11 (May 2017)",
    },
}


def normalize_genome_name(name: str) -> str:
    """Normalize assembly aliases to canonical UCSC-style names.

    Unrecognized names are returned unchanged so that custom assemblies
    still compare by their literal name.

    Examples:
        >>> normalize_genome_name("GRCh38")
        'hg38'
        >>> normalize_genome_name("myAssembly")
        'myAssembly'
    """
    name_lower = name.lower()

    for canonical, info in GENOME_ASSEMBLIES.items():
        if name_lower == canonical.lower():
            return canonical
        if name_lower in info["aliases"]:
            return canonical

    return name


def same_genome(a: str | None, b: str | None) -> bool:
    """Check whether two assembly names refer to the same genome."""
    if a is None or b is None:
        return False
    return normalize_genome_name(a) == normalize_genome_name(b)
