"""
Indexing pipeline for WAD files stored in zip archives.

Modules:
    wad: WAD header/directory parser and level marker detection
    keysum: Keysums (base-36 join keys) and MD5/SHA-1 checksums
    archive: Zip listing and scoped member extraction
    scanner: Deterministic directory walk and root validation
    reference: Optional idGames dump cross-referencing
    stats: Run statistics
    runner: WADIndexer orchestrator

Subpackages:
    loaders: Destination store loader with insert-if-absent writes

Architecture:
    For every zip archive found below the input root:

    1. Checksum - keysum from (filename, size), MD5/SHA-1 of the content
    2. List - find .wad members (case-insensitive)
    3. Extract - one scoped scratch directory per archive
    4. Parse - lump count and level markers per WAD
    5. Load - wads and levels_to_wads rows, then the zipfiles row

    Per-item failures are counted and logged; the walk always continues.

Usage:
    from indexer.runner import WADIndexer

Example:
    indexer = WADIndexer(session, max_files=100)
    stats = await indexer.run("/srv/idgames")
    print(f"Indexed {stats.wads_indexed} WADs with {stats.errors} errors")
"""

__all__ = [
    "WADIndexer",
    "IndexLoader",
    "ArchiveExtractor",
    "IdGamesLookup",
    "NullLookup",
    "RunStatistics",
    "parse_wad",
    "keysum",
]
