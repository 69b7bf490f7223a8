# xfscarve

A library for looking inside raw XFS filesystem images, aimed at finding
the free space that a recovery or carving tool should scan.

## XFS metadata: `xfscarve.xfs`

All reading functions take a binary file object opened on the image.

- `read_superblock(fs)` reads the first 512-byte sector, checks the magic
  number `XFSB` and returns a frozen `Superblock` dataclass.
- `read_agf(fs, superblock, agno)` reads the free-space header of
  allocation group `agno` (one sector past the start of the group), checks
  the `XAGF` magic number and returns an `AllocationGroup`.
- `read_bnobtree(fs, agf, superblock)` reads the root block of the
  block-number free-space B+tree and returns a `FreeSpaceBTree` with its
  `magicno`, `level`, `numrecs` and the remaining 32-bit words in `data`.
- `append_keys(btree, agf, locations, level)` returns a list of
  `FreeSpaceKey(agno, start, count)` records read from a leaf block. Only
  `level == 1` yields records; for any other level the list is empty.
- `agblk_offset(agno, superblock)` gives the byte offset of an allocation
  group; `is_error_key(key)` is true for a key with zero start and count.
- `format_superblock(superblock)` and `format_agf(agf)` return the header
  fields as text, one `name: value` line each.
- `Superblock.from_bytes`, `AllocationGroup.from_bytes` and
  `FreeSpaceBTree.from_bytes` parse a 512-byte big-endian buffer directly.

Short reads, bad magic numbers and record counts that do not fit in a block
raise `XfsError`. Progress messages go to the `xfscarve.xfs` logger.

```python
from xfscarve.xfs import read_superblock, read_agf, read_bnobtree, append_keys

with open("disk.img", "rb") as fs:
    sb = read_superblock(fs)
    agf = read_agf(fs, sb, 0)
    btree = read_bnobtree(fs, agf, sb)
    for key in append_keys(btree, agf, btree.numrecs, agf.bnolevel):
        print(key.agno, key.start, key.count)
```

## JSON output

- `xfscarve.serializer.dumps(value, indent=-1, indent_char=" ",
  ensure_ascii=False, error_handler=ErrorHandler.STRICT)` returns JSON text;
  a non-negative `indent` pretty-prints. `None`, booleans, integers, floats
  (non-finite ones become `null`), strings, bytes, mappings with string
  keys, lists, tuples and `Binary(data, subtype)` values are supported.
- `Serializer(output, indent_char, error_handler).dump(...)` writes to an
  adapter from `xfscarve.output`: `StringOutput`, `BufferOutput` (a list or
  bytearray) or `StreamOutput` (anything with `write`); `output_adapter`
  picks one for a target.
- `xfscarve.escape.escape_string` escapes a string or byte string. Invalid
  UTF-8 in byte strings is handled by `ErrorHandler.STRICT` (raises
  `JsonTypeError`), `REPLACE` or `IGNORE`.

## Ordered map

`xfscarve.ordered_map.OrderedMap` is a mutable mapping that keeps insertion
order and compares keys with `==` only, with `emplace`, `at`, `count`,
`find`, `erase`, `erase_range`, `insert` and `insert_many`.

## What it does not do

- There is no command-line program; everything is used from Python.
- Multi-level free-space B+trees are not walked: only the root block is
  read, and records are returned only when that block is a leaf.
- It does not copy or carve data out of the free extents it finds.

## Tests

```
pip install -e .[test]
pytest
```