import io
import struct

import pytest

from xfscarve.xfs import (
    SECTORLEN,
    XFS_AGMAGICNO,
    XFS_BNO,
    XFS_MAGICNO,
    AllocationGroup,
    FreeSpaceBTree,
    FreeSpaceKey,
    Superblock,
    XfsError,
    agblk_offset,
    append_keys,
    format_agf,
    format_superblock,
    is_error_key,
    read_agf,
    read_bnobtree,
    read_superblock,
)

BLOCKSIZE = 4096
AGBLOCKS = 4


def sector(data: bytes) -> bytes:
    return data + b"\0" * (SECTORLEN - len(data))


def superblock_bytes(magic=XFS_MAGICNO, blocksize=BLOCKSIZE, agblocks=AGBLOCKS):
    head = struct.pack(">IIQQQ", magic, blocksize, 1000, 0, 0)
    head += bytes(range(16))
    head += struct.pack(">QQQQ", 7, 128, 129, 130)
    head += struct.pack(">IIIII", 1, agblocks, 2, 0, 50)
    head += struct.pack(">HHHH", 0xB4A5, 512, 512, 8)
    head += b"scratch".ljust(12, b"\0")
    head += bytes([12, 9, 9, 3, 2, 0, 0, 25])
    head += struct.pack(">QQQQ", 64, 61, 900, 0)
    head += b"\0" * 64
    head += struct.pack(">I", 0xDEADBEEF)
    return sector(head)


def agf_bytes(seqno=0, magic=XFS_AGMAGICNO, bnoroot=1, bnolevel=1):
    words = [magic, 1, seqno, AGBLOCKS, bnoroot, 2, 3, bnolevel, 1, 1,
             0, 3, 4, 100, 80, 0]
    data = struct.pack(">16I", *words) + bytes(16) + struct.pack(">4I", 0, 0, 0, 0)
    return sector(data)


def btree_bytes(records, magic=XFS_BNO[1]):
    data = [0] * 126
    for i, (start, count) in enumerate(records):
        data[12 + 2 * i] = start
        data[12 + 2 * i + 1] = count
    return struct.pack(">IHH126I", magic, 0, len(records), *data)


def build_image(records=((10, 5), (30, 2))):
    image = bytearray(BLOCKSIZE * AGBLOCKS * 2)
    image[0:SECTORLEN] = superblock_bytes()
    image[SECTORLEN:2 * SECTORLEN] = agf_bytes(seqno=0)
    image[BLOCKSIZE:BLOCKSIZE + SECTORLEN] = btree_bytes(records)
    ag1 = BLOCKSIZE * AGBLOCKS
    image[ag1 + SECTORLEN:ag1 + 2 * SECTORLEN] = agf_bytes(seqno=1)
    return io.BytesIO(bytes(image))


def test_superblock_parses_fields():
    sb = Superblock.from_bytes(superblock_bytes())
    assert sb.magicnum == XFS_MAGICNO
    assert sb.blocksize == BLOCKSIZE
    assert sb.agblocks == AGBLOCKS
    assert sb.uuid == bytes(range(16))
    assert sb.fname.rstrip(b"\0") == b"scratch"
    assert sb.crc == 0xDEADBEEF


def test_superblock_short_data_raises():
    with pytest.raises(XfsError):
        Superblock.from_bytes(b"\0" * 100)


def test_read_superblock_ok():
    sb = read_superblock(build_image())
    assert sb.magicnum == XFS_MAGICNO
    assert sb.dblocks == 1000


def test_read_superblock_bad_magic():
    fs = io.BytesIO(superblock_bytes(magic=0x12345678))
    with pytest.raises(XfsError, match="Magic"):
        read_superblock(fs)


def test_read_superblock_truncated():
    with pytest.raises(XfsError, match="Failed"):
        read_superblock(io.BytesIO(b"XFSB"))


def test_agblk_offset_scales_with_agno():
    sb = Superblock.from_bytes(superblock_bytes())
    assert agblk_offset(0, sb) == 0
    assert agblk_offset(3, sb) == 3 * agblk_offset(1, sb)
    assert agblk_offset(1, sb) == BLOCKSIZE * AGBLOCKS


def test_read_agf_for_each_group():
    fs = build_image()
    sb = read_superblock(fs)
    for agno in (0, 1):
        agf = read_agf(fs, sb, agno)
        assert agf.magicnum == XFS_AGMAGICNO
        assert agf.seqno == agno


def test_read_agf_bad_magic():
    fs = io.BytesIO(superblock_bytes() + agf_bytes(magic=0))
    sb = read_superblock(fs)
    with pytest.raises(XfsError):
        read_agf(fs, sb, 0)


def test_read_agf_beyond_end():
    fs = io.BytesIO(superblock_bytes())
    sb = read_superblock(fs)
    with pytest.raises(XfsError):
        read_agf(fs, sb, 5)


def test_read_bnobtree_and_keys():
    records = [(10, 5), (30, 2), (44, 9)]
    fs = build_image(records)
    sb = read_superblock(fs)
    agf = read_agf(fs, sb, 0)
    btree = read_bnobtree(fs, agf, sb)
    assert btree.numrecs == len(records)
    keys = append_keys(btree, agf, btree.numrecs, agf.bnolevel)
    assert keys == [FreeSpaceKey(0, s, c) for s, c in records]


def test_read_bnobtree_accepts_both_magics():
    for magic in XFS_BNO:
        bt = FreeSpaceBTree.from_bytes(btree_bytes([(1, 1)], magic=magic))
        assert bt.magicno == magic


def test_read_bnobtree_bad_magic():
    image = bytearray(build_image().getvalue())
    image[BLOCKSIZE:BLOCKSIZE + SECTORLEN] = btree_bytes([(1, 1)], magic=0)
    fs = io.BytesIO(bytes(image))
    sb = read_superblock(fs)
    agf = read_agf(fs, sb, 0)
    with pytest.raises(XfsError):
        read_bnobtree(fs, agf, sb)


def test_append_keys_non_leaf_yields_nothing():
    btree = FreeSpaceBTree.from_bytes(btree_bytes([(1, 2)]))
    agf = AllocationGroup.from_bytes(agf_bytes())
    assert append_keys(btree, agf, 1, 2) == []


def test_append_keys_uses_agf_seqno():
    btree = FreeSpaceBTree.from_bytes(btree_bytes([(5, 6)]))
    agf = AllocationGroup.from_bytes(agf_bytes(seqno=3))
    keys = append_keys(btree, agf, 1, 1)
    assert [k.agno for k in keys] == [3]


def test_append_keys_too_many_records():
    btree = FreeSpaceBTree.from_bytes(btree_bytes([]))
    agf = AllocationGroup.from_bytes(agf_bytes())
    with pytest.raises(XfsError):
        append_keys(btree, agf, 58, 1)


def test_is_error_key():
    assert is_error_key(FreeSpaceKey(4, 0, 0)) is True
    assert is_error_key(FreeSpaceKey(0, 1, 0)) is False
    assert is_error_key(FreeSpaceKey(0, 0, 1)) is False


def test_format_superblock():
    text = format_superblock(Superblock.from_bytes(superblock_bytes()))
    assert text.splitlines()[0] == "sb_magicnum: 0x58465342"
    assert f"sb_blocksize: {BLOCKSIZE}" in text.splitlines()
    assert "sb_fname: scratch" in text.splitlines()


def test_format_agf():
    text = format_agf(AllocationGroup.from_bytes(agf_bytes(seqno=1)))
    lines = text.splitlines()
    assert lines[0] == "agf_magicnum: 0x58414746"
    assert "agf_seqno: 1" in lines
    assert len(lines) == 21