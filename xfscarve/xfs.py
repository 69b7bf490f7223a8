"""Reading of XFS on-disk metadata: superblock, AG free-space headers and bno B+tree leaves."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import BinaryIO

logger = logging.getLogger(__name__)

SECTORLEN = 512
XFS_MAGICNO = 0x58465342
XFS_AGMAGICNO = 0x58414746
XFS_BNO = (0x41425442, 0x41423342)
SH_OFFSET = 12
BNO_BLOCK_SIZE = 4096

_SUPERBLOCK_FORMAT = struct.Struct(">IIQQQ16sQQQQIIIIIHHHH12s8BQQQQ64sI")
_AGF_FORMAT = struct.Struct(">16I16s4I")
_BTREE_FORMAT = struct.Struct(">IHH126I")


class XfsError(Exception):
    """Raised when XFS metadata cannot be read or is not valid."""


def _require(data: bytes, size: int, what: str) -> None:
    if len(data) < size:
        raise XfsError(f"Failed to read {what}. Read: {len(data)}")


@dataclass(frozen=True)
class Superblock:
    """The XFS superblock, as found in the first sector of the filesystem."""

    magicnum: int
    blocksize: int
    dblocks: int
    rblocks: int
    rextents: int
    uuid: bytes
    logstart: int
    rootino: int
    rbmino: int
    rsumino: int
    rextsize: int
    agblocks: int
    agcount: int
    rbmblocks: int
    logblocks: int
    versionnum: int
    sectsize: int
    inodesize: int
    inopblock: int
    fname: bytes
    blocklog: int
    sectlog: int
    inodelog: int
    inopblog: int
    agblklog: int
    rextslog: int
    inprogress: int
    imax_pct: int
    icount: int
    ifree: int
    fdblocks: int
    frextents: int
    crc: int

    @classmethod
    def from_bytes(cls, data: bytes) -> Superblock:
        """Parse a superblock from one sector of big-endian data."""
        _require(data, SECTORLEN, "superblock")
        values = list(_SUPERBLOCK_FORMAT.unpack_from(data))
        del values[-2]  # padding before the CRC
        return cls(*values)


@dataclass(frozen=True)
class AllocationGroup:
    """The free-space header (AGF) of one allocation group."""

    magicnum: int
    versionnum: int
    seqno: int
    length: int
    bnoroot: int
    cntroot: int
    rmaproot: int
    bnolevel: int
    cntlevel: int
    rmaplevel: int
    flfirst: int
    fllast: int
    flcount: int
    freeblks: int
    longest: int
    btreeblks: int
    uuid: bytes
    rmap_blocks: int
    refcount_blocks: int
    refcount_root: int
    refcount_level: int

    @classmethod
    def from_bytes(cls, data: bytes) -> AllocationGroup:
        """Parse an AGF from one sector of big-endian data."""
        _require(data, SECTORLEN, "Allocation group")
        return cls(*_AGF_FORMAT.unpack_from(data))


@dataclass(frozen=True)
class FreeSpaceBTree:
    """A block of the free-space-by-block-number B+tree."""

    magicno: int
    level: int
    numrecs: int
    data: tuple[int, ...]

    @classmethod
    def from_bytes(cls, data: bytes) -> FreeSpaceBTree:
        """Parse a B+tree block header and its 32-bit words."""
        _require(data, SECTORLEN, "block number b+tree")
        magic, level, numrecs, *words = _BTREE_FORMAT.unpack_from(data)
        return cls(magic, level, numrecs, tuple(words))


@dataclass(frozen=True)
class FreeSpaceKey:
    """One free extent: allocation group, starting block and length in blocks."""

    agno: int
    start: int
    count: int


ERROR_KEY = FreeSpaceKey(0, 0, 0)


def _read_sector(fs: BinaryIO, offset: int) -> bytes:
    fs.seek(offset)
    return fs.read(SECTORLEN)


def read_superblock(fs: BinaryIO) -> Superblock:
    """Read and validate the superblock at the start of *fs*."""
    sb = Superblock.from_bytes(_read_sector(fs, 0))
    if sb.magicnum != XFS_MAGICNO:
        raise XfsError("Invalid Magic No.")
    logger.info("Successfully read superblock.")
    return sb


def agblk_offset(agno: int, superblock: Superblock) -> int:
    """Byte offset of the start of allocation group *agno*."""
    return agno * superblock.blocksize * superblock.agblocks


def read_agf(fs: BinaryIO, superblock: Superblock, agno: int) -> AllocationGroup:
    """Read and validate the AGF of allocation group *agno*."""
    offset = agblk_offset(agno, superblock) + SECTORLEN
    agf = AllocationGroup.from_bytes(_read_sector(fs, offset))
    if agf.magicnum != XFS_AGMAGICNO:
        raise XfsError("Invalid Magic No.")
    logger.info("Successfully read Allocation Group: %d", agno)
    return agf


def read_bnobtree(
    fs: BinaryIO, agf: AllocationGroup, superblock: Superblock
) -> FreeSpaceBTree:
    """Read the root block of the bno B+tree of *agf*'s allocation group."""
    root = agf.bnoroot
    logger.info(
        "Found Block Number B+Tree root at: %d with level: %d", root, agf.bnolevel
    )
    offset = agblk_offset(agf.seqno, superblock) + BNO_BLOCK_SIZE * root
    logger.info("Found BnoB+Tree at actual offset %d", offset)
    btree = FreeSpaceBTree.from_bytes(_read_sector(fs, offset))
    if btree.magicno not in XFS_BNO:
        raise XfsError("Invalid Magic No.")
    logger.info("Found %d locations of free space.", btree.numrecs)
    return btree


def append_keys(
    btree: FreeSpaceBTree, agf: AllocationGroup, locations: int, level: int
) -> list[FreeSpaceKey]:
    """Collect the free-extent records of a leaf block.

    Only leaf blocks (level 1) are read; other levels yield no keys.
    """
    if level != 1:
        return []
    end = SH_OFFSET + 2 * locations
    if locations < 0 or end > len(btree.data):
        raise XfsError(f"Record count {locations} exceeds block capacity")
    words = btree.data[SH_OFFSET:end]
    return [
        FreeSpaceKey(agf.seqno, start, count)
        for start, count in zip(words[::2], words[1::2])
    ]


def is_error_key(key: FreeSpaceKey) -> bool:
    """True when *key* is the empty extent marking an error."""
    return key.start == ERROR_KEY.start and key.count == ERROR_KEY.count


def format_superblock(superblock: Superblock) -> str:
    """Render the superblock fields, one per line."""
    sb = superblock
    fname = sb.fname.rstrip(b"\0").decode("latin-1")
    lines = [
        f"sb_magicnum: 0x{sb.magicnum:x}",
        f"sb_blocksize: {sb.blocksize}",
        f"sb_dblocks: {sb.dblocks}",
        f"sb_rblocks: {sb.rblocks}",
        f"sb_rextents: {sb.rextents}",
        f"sb_uuid: {sb.uuid.hex()}",
        f"sb_logstart: {sb.logstart}",
        f"sb_rootino: {sb.rootino}",
        f"sb_rbmino: {sb.rbmino}",
        f"sb_rsumino: {sb.rsumino}",
        f"sb_rextsize: {sb.rextsize}",
        f"sb_agblocks: {sb.agblocks}",
        f"sb_agcount: {sb.agcount}",
        f"sb_rbmblocks: {sb.rbmblocks}",
        f"sb_logblocks: {sb.logblocks}",
        f"sb_versionnum: 0x{sb.versionnum:x}",
        f"sb_sectsize: {sb.sectsize}",
        f"sb_inodesize: {sb.inodesize}",
        f"sb_inopblock: {sb.inopblock}",
        f"sb_fname: {fname}",
        f"sb_blocklog: {sb.blocklog}",
        f"sb_sectlog: {sb.sectlog}",
        f"sb_inodelog: {sb.inodelog}",
        f"sb_inopblog: {sb.inopblog}",
        f"sb_agblklog: {sb.agblklog}",
        f"sb_rextslog: {sb.rextslog}",
        f"sb_inprogress: {sb.inprogress}",
        f"sb_imax_pct: {sb.imax_pct}",
        f"sb_icount: {sb.icount}",
        f"sb_ifree: {sb.ifree}",
        f"sb_fdblocks: {sb.fdblocks}",
        f"sb_frextents: {sb.frextents}",
        f"sb_crc: 0x{sb.crc:x}",
    ]
    return "\n".join(lines) + "\n"


def format_agf(agf: AllocationGroup) -> str:
    """Render the AGF fields, one per line."""
    lines = [
        f"agf_magicnum: 0x{agf.magicnum:x}",
        f"agf_versionnum: {agf.versionnum}",
        f"agf_seqno: {agf.seqno}",
        f"agf_length: {agf.length}",
        f"agf_bnoroots: {agf.bnoroot}",
        f"agf_cntroots: {agf.cntroot}",
        f"agf_rmaproots: {agf.rmaproot}",
        f"agf_bnolevel: {agf.bnolevel}",
        f"agf_cntlevel: {agf.cntlevel}",
        f"agf_rmaplevel: {agf.rmaplevel}",
        f"agf_flfirst: {agf.flfirst}",
        f"agf_fllast: {agf.fllast}",
        f"agf_flcount: {agf.flcount}",
        f"agf_freeblks: {agf.freeblks}",
        f"agf_longest: {agf.longest}",
        f"agf_btreeblks: {agf.btreeblks}",
        f"agf_uuid: {agf.uuid.hex()}",
        f"agf_rmap_blocks: {agf.rmap_blocks}",
        f"agf_refcount_blocks: {agf.refcount_blocks}",
        f"agf_refcount_root: {agf.refcount_root}",
        f"agf_refcount_level: {agf.refcount_level}",
    ]
    return "\n".join(lines) + "\n"